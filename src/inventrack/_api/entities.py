"""Collection endpoints: ``/products`` and ``/suppliers``.

Both resources share one request/response shape, so a single generic
gateway serves them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from inventrack._api._common import ErrorReporter, GatewayBase, failure_from_validation_error
from inventrack._constants import PRODUCTS_PATH, SUPPLIERS_PATH
from inventrack._transport import Transport
from inventrack.models._base import IdentifiedRecord, RecordId
from inventrack.models.failure import ApiFailure, ErrorKind
from inventrack.models.product import Product
from inventrack.models.requests import ProductDraft, SupplierDraft, _Draft
from inventrack.models.supplier import Supplier

RecordT = TypeVar("RecordT", bound=IdentifiedRecord)


def _as_dict(payload: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", exclude_none=True)
    return dict(payload)


class EntityGateway(GatewayBase, Generic[RecordT]):
    """CRUD gateway for one entity collection.

    ``list`` and ``get_by_id`` return an :class:`ApiFailure` on error;
    ``create``, ``update`` and ``delete`` report the failure and then raise
    the matching :class:`~inventrack.exceptions.InventrackApiError`.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        path: str,
        model: type[RecordT],
        draft_model: type[_Draft],
        singular: str,
        plural: str,
        on_error: ErrorReporter | None = None,
    ) -> None:
        super().__init__(transport, on_error=on_error)
        self._path = path
        self._model = model
        self._draft_model = draft_model
        self._singular = singular
        self._plural = plural

    @property
    def path(self) -> str:
        return self._path

    def _item_path(self, record_id: RecordId) -> str:
        return f"{self._path}/{record_id}"

    def _parse_list(self, body: Any) -> list[RecordT]:
        if body is None:
            return []
        if not isinstance(body, list):
            raise TypeError(f"expected a list, got {type(body).__name__}")
        return [self._model.model_validate(item) for item in body]

    def _parse_record(self, body: Any) -> RecordT:
        if not isinstance(body, dict):
            raise TypeError(f"expected an object, got {type(body).__name__}")
        return self._model.model_validate(body)

    async def list(self, *, on_error: ErrorReporter | None = None) -> list[RecordT] | ApiFailure:
        """Fetch the full collection."""
        return await self._read(
            "GET",
            self._path,
            parse=self._parse_list,
            error_message=f"Error fetching {self._plural}.",
            on_error=on_error,
        )

    async def get_by_id(self, record_id: RecordId, *, on_error: ErrorReporter | None = None) -> RecordT | ApiFailure:
        """Fetch one record; a missing id yields a NOT_FOUND failure."""
        return await self._read(
            "GET",
            self._item_path(record_id),
            parse=self._parse_record,
            error_message=f"Error fetching {self._singular} by ID.",
            on_error=on_error,
        )

    async def create(
        self,
        payload: Mapping[str, Any] | BaseModel,
        *,
        on_error: ErrorReporter | None = None,
    ) -> RecordT:
        """Create a record and return it with its server-assigned id.

        The payload is validated locally first; a rejected draft never
        reaches the network but fails exactly like a server-side rejection.
        """
        try:
            draft = self._draft_model.model_validate(_as_dict(payload))
        except ValidationError as exc:
            self._reject(failure_from_validation_error(exc, endpoint=self._path), on_error)

        record = await self._write(
            "POST",
            self._path,
            json=draft.to_payload(),
            parse=self._parse_record,
            error_message=f"Error adding {self._singular}. Please check the form inputs.",
            on_error=on_error,
        )
        if record.id is None:
            self._reject(
                ApiFailure(
                    kind=ErrorKind.SERVER,
                    message=f"Server did not assign an id to the new {self._singular}.",
                    endpoint=self._path,
                ),
                on_error,
            )
        return record

    async def update(
        self,
        record_id: RecordId,
        patch: Mapping[str, Any],
        *,
        on_error: ErrorReporter | None = None,
    ) -> RecordT:
        """Send only the changed fields in *patch*.

        Returns the record as echoed by the server, or *patch* applied to
        the id when the server answers without a body.
        """
        body = {key: value for key, value in patch.items() if key != "id"}
        if not body:
            raise ValueError("patch must contain at least one field")

        def _parse(response: Any) -> RecordT:
            if response is None:
                return self._model.model_validate({**body, "id": record_id})
            if not isinstance(response, dict):
                raise TypeError(f"expected an object, got {type(response).__name__}")
            return self._model.model_validate({"id": record_id, **response})

        return await self._write(
            "PUT",
            self._item_path(record_id),
            json=body,
            parse=_parse,
            error_message=f"Error updating {self._singular}.",
            on_error=on_error,
        )

    async def delete(self, record_id: RecordId, *, on_error: ErrorReporter | None = None) -> None:
        await self._write(
            "DELETE",
            self._item_path(record_id),
            parse=lambda _body: None,
            error_message=f"Error deleting {self._singular}.",
            on_error=on_error,
        )


def product_gateway(transport: Transport, *, on_error: ErrorReporter | None = None) -> EntityGateway[Product]:
    return EntityGateway(
        transport,
        path=PRODUCTS_PATH,
        model=Product,
        draft_model=ProductDraft,
        singular="product",
        plural="products",
        on_error=on_error,
    )


def supplier_gateway(transport: Transport, *, on_error: ErrorReporter | None = None) -> EntityGateway[Supplier]:
    return EntityGateway(
        transport,
        path=SUPPLIERS_PATH,
        model=Supplier,
        draft_model=SupplierDraft,
        singular="supplier",
        plural="suppliers",
        on_error=on_error,
    )
