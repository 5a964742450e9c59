"""High-level async client: gateways, stores and session wiring in one place."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping
from typing import Any

import aiohttp
from pydantic import BaseModel

from inventrack._api._common import ErrorReporter
from inventrack._api.auth import AuthGateway
from inventrack._api.entities import product_gateway, supplier_gateway
from inventrack._api.profiles import ProfileGateway
from inventrack._client import mutations as _mutations
from inventrack._transport import HttpTransport, Transport
from inventrack.config import InventrackConfig
from inventrack.diff import EditOutcome
from inventrack.exceptions import InventrackApiError, InventrackError
from inventrack.models._base import RecordId
from inventrack.models.auth import AuthUser
from inventrack.models.failure import ApiFailure
from inventrack.models.product import Product
from inventrack.models.profile import Profile
from inventrack.models.supplier import Supplier
from inventrack.state.auth import AuthSession, AuthState
from inventrack.state.loader import SessionGatedLoader
from inventrack.state.persistence import JsonFileStorage, MemoryStorage, StorageBackend
from inventrack.state.profile import ProfileStore
from inventrack.state.store import LoadStatus, ProductStore, SupplierStore
from inventrack.summary import InventorySummary, summarize_inventory

_logger = logging.getLogger(__name__)


class InventrackClient:
    """Async client for the InvenTrack API.

    Stores are created (and rehydrated from storage) on construction, so
    persisted data is readable before any request is made.  The loaders
    start when the client is entered.

    Usage::

        async with InventrackClient(config) as client:
            await client.login("me@example.com", "secret")
            await client.wait_until_idle()
            products = client.products.snapshot.items
    """

    def __init__(
        self,
        config: InventrackConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        storage: StorageBackend | None = None,
        on_error: ErrorReporter | None = None,
        distinguish_empty: bool = False,
    ) -> None:
        self._config = config
        self._http_transport: HttpTransport | None = None
        if transport is None:
            self._http_transport = HttpTransport(config, session)
            transport = self._http_transport
        self._transport = transport

        if storage is None:
            storage = JsonFileStorage(config.storage_dir) if config.storage_dir else MemoryStorage()
        self._storage = storage

        self.auth = AuthSession()
        self._auth_api = AuthGateway(transport, on_error=on_error)
        self.product_api = product_gateway(transport, on_error=on_error)
        self.supplier_api = supplier_gateway(transport, on_error=on_error)
        self.profile_api = ProfileGateway(transport, on_error=on_error)

        version = config.persist_version
        self.products = ProductStore(self.product_api, storage=storage, persist_version=version)
        self.suppliers = SupplierStore(self.supplier_api, storage=storage, persist_version=version)
        self.profile = ProfileStore(self.profile_api, storage=storage, persist_version=version)

        self._loaders = [
            SessionGatedLoader(self.auth, self.products, distinguish_empty=distinguish_empty),
            SessionGatedLoader(self.auth, self.suppliers, distinguish_empty=distinguish_empty),
            SessionGatedLoader(
                self.auth,
                self.profile,
                trigger=self._load_profile,
                distinguish_empty=distinguish_empty,
            ),
        ]
        self._refresh_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> InventrackClient:
        if self._http_transport is not None:
            await self._http_transport.open()
        for loader in self._loaders:
            loader.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for loader in self._loaders:
            loader.stop()
        if self._http_transport is not None:
            await self._http_transport.close()

    @property
    def config(self) -> InventrackConfig:
        return self._config

    @property
    def loaders(self) -> tuple[SessionGatedLoader, ...]:
        return tuple(self._loaders)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str, *, on_error: ErrorReporter | None = None) -> AuthUser:
        """Log in; the session loaders then fill the stores."""
        try:
            user = await self._auth_api.login(email, password, on_error=on_error)
        except InventrackApiError:
            self.auth.clear()
            raise
        self._start_session(user)
        return user

    async def signup(self, payload: Mapping[str, Any], *, on_error: ErrorReporter | None = None) -> AuthUser | None:
        return await self._auth_api.signup(payload, on_error=on_error)

    async def validate_session(self, *, on_error: ErrorReporter | None = None) -> bool:
        """Check the stored session cookie, e.g. on startup."""
        self.auth.set_checking()
        result = await self._auth_api.validate_token(on_error=on_error)
        if isinstance(result, ApiFailure) or not result.authenticated:
            self.auth.clear()
            return False
        self._start_session(result.user)
        return True

    async def logout(self, *, on_error: ErrorReporter | None = None) -> None:
        """Log out and wipe every store so no data leaks into the next session.

        If the server-side logout fails the error propagates and local
        state is kept.
        """
        await self._auth_api.logout(on_error=on_error)
        self.auth.clear()
        self._reset_stores()
        if self._http_transport is not None:
            self._http_transport.clear_cookies()

    def _reset_stores(self) -> None:
        self.products.reset()
        self.suppliers.reset()
        self.profile.reset()

    def _belongs_to_other_user(self, user: AuthUser | None) -> bool:
        """Whether the held data was fetched for someone other than *user*."""
        if user is None:
            return False
        previous = self.auth.user
        if previous is not None and str(previous.id) != str(user.id):
            return True
        profile = self.profile.profile
        return profile is not None and profile.user_id is not None and str(profile.user_id) != str(user.id)

    def _start_session(self, user: AuthUser | None) -> None:
        if self._belongs_to_other_user(user):
            _logger.info("Session user changed; discarding the previous user's data")
            self._reset_stores()
        self.auth.set_authenticated(user)
        # Rehydrated data is shown right away; refresh it in the background.
        for store in (self.products, self.suppliers):
            if store.status is LoadStatus.UNLOADED and not store.is_empty:
                self._spawn_refresh(store.name, store.load())
        if user is not None and self.profile.status is LoadStatus.UNLOADED and not self.profile.is_empty:
            self._spawn_refresh(self.profile.name, self.profile.load(user.id))

    def _spawn_refresh(self, name: str, load: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(self._refresh(name, load))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _refresh(self, name: str, load: Coroutine[Any, Any, None]) -> None:
        try:
            await load
        except InventrackError:
            _logger.warning("Background refresh of %s failed", name, exc_info=True)

    async def _load_profile(self, state: AuthState) -> None:
        if state.user is None:
            _logger.debug("Profile load skipped: session has no user id")
            return
        await self.profile.load(state.user.id)

    async def wait_until_idle(self) -> None:
        """Wait for every load scheduled by the loaders or a session start."""
        for loader in self._loaders:
            await loader.wait()
        while self._refresh_tasks:
            await asyncio.gather(*list(self._refresh_tasks))

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(
        self,
        payload: Mapping[str, Any] | BaseModel,
        *,
        on_error: ErrorReporter | None = None,
    ) -> Product:
        return await _mutations.create_record(self.product_api, self.products, payload, on_error=on_error)

    async def edit_product(
        self,
        product_id: RecordId,
        submitted: Mapping[str, Any] | BaseModel,
        *,
        on_error: ErrorReporter | None = None,
    ) -> EditOutcome[Product]:
        return await _mutations.edit_record(
            self.product_api,
            self.products,
            product_id,
            submitted,
            label="Product",
            on_error=on_error,
        )

    async def delete_product(self, product_id: RecordId, *, on_error: ErrorReporter | None = None) -> None:
        await _mutations.delete_record(self.product_api, self.products, product_id, on_error=on_error)

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    async def create_supplier(
        self,
        payload: Mapping[str, Any] | BaseModel,
        *,
        on_error: ErrorReporter | None = None,
    ) -> Supplier:
        return await _mutations.create_record(self.supplier_api, self.suppliers, payload, on_error=on_error)

    async def edit_supplier(
        self,
        supplier_id: RecordId,
        submitted: Mapping[str, Any] | BaseModel,
        *,
        on_error: ErrorReporter | None = None,
    ) -> EditOutcome[Supplier]:
        return await _mutations.edit_record(
            self.supplier_api,
            self.suppliers,
            supplier_id,
            submitted,
            label="Supplier",
            on_error=on_error,
        )

    async def delete_supplier(self, supplier_id: RecordId, *, on_error: ErrorReporter | None = None) -> None:
        await _mutations.delete_record(self.supplier_api, self.suppliers, supplier_id, on_error=on_error)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def _require_user_id(self) -> RecordId:
        user = self.auth.user
        if user is not None:
            return user.id
        profile = self.profile.profile
        if profile is not None and profile.user_id is not None:
            return profile.user_id
        raise InventrackError("No authenticated user")

    async def edit_profile(
        self,
        submitted: Mapping[str, Any] | BaseModel,
        *,
        on_error: ErrorReporter | None = None,
    ) -> EditOutcome[Profile]:
        return await _mutations.edit_profile(
            self.profile_api,
            self.profile,
            self._require_user_id(),
            submitted,
            on_error=on_error,
        )

    async def upload_profile_image(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        return await self.profile.update_image(
            self._require_user_id(),
            data,
            filename=filename,
            content_type=content_type,
        )

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def summary(self) -> InventorySummary:
        return summarize_inventory(self.products)
