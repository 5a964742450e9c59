"""Profile store: at most one profile, for the authenticated user."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from inventrack._constants import PROFILE_STORAGE_KEY
from inventrack.exceptions import InventrackApiError
from inventrack.models._base import RecordId
from inventrack.models.failure import ApiFailure
from inventrack.models.profile import Profile
from inventrack.state.events import StoreAction
from inventrack.state.persistence import StorageBackend
from inventrack.state.store import LoadStatus, PersistentStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProfileSnapshot:
    profile: Profile | None = None
    loading: bool = False
    error: str | None = None
    status: LoadStatus = LoadStatus.UNLOADED
    has_loaded_once: bool = False


class ProfileSource(Protocol):
    async def get(self, user_id: RecordId) -> Profile | ApiFailure:
        ...

    async def upload_image(
        self,
        user_id: RecordId,
        data: bytes,
        *,
        filename: str,
        content_type: str = ...,
    ) -> str:
        ...


class ProfileStore(PersistentStore):
    """Holds the signed-in user's profile.

    Unlike the collection stores, ``update_image`` talks to the API itself:
    the upload result (the new image URL) is what gets merged.
    """

    def __init__(
        self,
        source: ProfileSource,
        *,
        storage: StorageBackend | None = None,
        storage_key: str = PROFILE_STORAGE_KEY,
        persist_version: int = 0,
    ) -> None:
        super().__init__(name="profile", storage=storage, storage_key=storage_key, persist_version=persist_version)
        self._source = source
        self._profile: Profile | None = None
        self._rehydrate()

    def __len__(self) -> int:
        return 0 if self._profile is None else 1

    @property
    def profile(self) -> Profile | None:
        return self._profile

    @property
    def is_empty(self) -> bool:
        return self._profile is None

    @property
    def snapshot(self) -> ProfileSnapshot:
        return ProfileSnapshot(
            profile=self._profile,
            loading=self._loading,
            error=self._error,
            status=self._status,
            has_loaded_once=self._has_loaded_once,
        )

    def _persisted_state(self) -> dict[str, Any]:
        return {
            "profile": self._profile.to_payload() if self._profile is not None else None,
            "error": self._error,
        }

    def _restore_state(self, state: dict[str, Any]) -> None:
        raw = state.get("profile")
        self._profile = Profile.model_validate(raw) if isinstance(raw, dict) else None
        error = state.get("error")
        self._error = error if isinstance(error, str) else None

    async def load(self, user_id: RecordId) -> None:
        """Fetch the profile of *user_id* unless already loading or loaded for that user."""
        if self._loading:
            _logger.debug("profile load skipped: already loading")
            return
        if (
            self._status is LoadStatus.LOADED
            and self._profile is not None
            and self._profile.user_id == user_id
        ):
            return
        await self.reload(user_id)

    async def reload(self, user_id: RecordId) -> None:
        seq = self._claim_load()
        try:
            result = await self._source.get(user_id)
        except BaseException:
            if not self._is_stale(seq):
                self._fail_load("Failed to load profile.")
            raise

        if self._is_stale(seq):
            return

        if isinstance(result, ApiFailure):
            _logger.warning("Failed to load profile for user %s: %s", user_id, result.message)
            self._fail_load(result.message)
            return

        if result.user_id is None:
            result = result.model_copy(update={"user_id": user_id})
        with self._transition(StoreAction.LOADED):
            self._profile = result
            self._error = None
            self._loading = False
            self._status = LoadStatus.LOADED
            self._has_loaded_once = True

    def set_profile(self, profile: Profile | Mapping[str, Any] | None) -> None:
        value = profile if profile is None or isinstance(profile, Profile) else Profile.model_validate(dict(profile))
        with self._transition(StoreAction.REPLACED):
            self._profile = value

    def update(self, patch: Mapping[str, Any]) -> Profile | None:
        """Shallow-merge *patch*; no-op when no profile is held."""
        if self._profile is None:
            return None
        merged = Profile.model_validate({**self._profile.model_dump(), **patch})
        with self._transition(StoreAction.UPDATED, merged.user_id):
            self._profile = merged
        return merged

    async def update_image(
        self,
        user_id: RecordId,
        data: bytes,
        *,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload a new avatar and merge its URL.

        On failure the message is kept in ``error`` and the API error is
        re-raised for the caller's notification.
        """
        try:
            url = await self._source.upload_image(user_id, data, filename=filename, content_type=content_type)
        except InventrackApiError as exc:
            with self._transition(StoreAction.MUTATION_FAILED, user_id):
                self._error = exc.failure.message
            raise
        self.update({"profile_image_url": url})
        return url

    def reset(self) -> None:
        self._load_seq += 1
        with self._transition(StoreAction.RESET):
            self._profile = None
            self._loading = False
            self._error = None
            self._status = LoadStatus.UNLOADED
            self._has_loaded_once = False
