"""Internal write flows for :class:`inventrack.client.InventrackClient`.

Each flow performs the network write first and touches the store only
after the server confirmed it, so a failed write leaves local state as
it was.  These functions keep `client.py` small without changing the
public API.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from inventrack._api._common import ErrorReporter, api_error_for
from inventrack._api.entities import EntityGateway
from inventrack._api.profiles import ProfileGateway
from inventrack._constants import NO_CHANGES_MESSAGE
from inventrack.diff import EditOutcome, compute_patch
from inventrack.models._base import IdentifiedRecord, RecordId
from inventrack.models.failure import ApiFailure
from inventrack.models.profile import Profile
from inventrack.state.profile import ProfileStore
from inventrack.state.store import EntityStore

RecordT = TypeVar("RecordT", bound=IdentifiedRecord)


async def create_record(
    gateway: EntityGateway[RecordT],
    store: EntityStore[RecordT],
    payload: Mapping[str, Any] | BaseModel,
    *,
    on_error: ErrorReporter | None = None,
) -> RecordT:
    record = await gateway.create(payload, on_error=on_error)
    return store.add(record)


async def edit_record(
    gateway: EntityGateway[RecordT],
    store: EntityStore[RecordT],
    record_id: RecordId,
    submitted: Mapping[str, Any] | BaseModel,
    *,
    label: str,
    on_error: ErrorReporter | None = None,
) -> EditOutcome[RecordT]:
    original = store.get(record_id)
    if original is None:
        fetched = await gateway.get_by_id(record_id, on_error=on_error)
        if isinstance(fetched, ApiFailure):
            raise api_error_for(fetched)
        original = fetched

    patch = compute_patch(original, submitted)
    if not patch:
        return EditOutcome(changed=False, message=NO_CHANGES_MESSAGE, record=original)

    confirmed = await gateway.update(record_id, patch, on_error=on_error)
    merged = store.update(record_id, patch)
    return EditOutcome(
        changed=True,
        message=f"{label} updated successfully",
        record=merged if merged is not None else confirmed,
        patch=patch,
    )


async def delete_record(
    gateway: EntityGateway[RecordT],
    store: EntityStore[RecordT],
    record_id: RecordId,
    *,
    on_error: ErrorReporter | None = None,
) -> None:
    await gateway.delete(record_id, on_error=on_error)
    store.delete(record_id)


async def edit_profile(
    gateway: ProfileGateway,
    store: ProfileStore,
    user_id: RecordId,
    submitted: Mapping[str, Any] | BaseModel,
    *,
    on_error: ErrorReporter | None = None,
) -> EditOutcome[Profile]:
    original = store.profile
    patch = compute_patch(original, submitted)
    if not patch:
        return EditOutcome(changed=False, message=NO_CHANGES_MESSAGE, record=original)

    confirmed = await gateway.update(user_id, patch, on_error=on_error)
    merged = store.update(patch)
    if merged is None:
        store.set_profile(confirmed)
        merged = confirmed
    return EditOutcome(changed=True, message="Profile updated successfully", record=merged, patch=patch)
