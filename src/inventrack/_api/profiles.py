"""Profile endpoints: ``/profiles/{id}`` and the profile image upload."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from inventrack._api._common import ErrorReporter, GatewayBase
from inventrack._constants import PROFILES_PATH, STORAGE_PATH
from inventrack._transport import form_with_file
from inventrack.models._base import RecordId
from inventrack.models.failure import ApiFailure
from inventrack.models.profile import Profile


def _parse_profile(body: Any) -> Profile:
    if not isinstance(body, dict):
        raise TypeError(f"expected an object, got {type(body).__name__}")
    return Profile.model_validate(body)


def _parse_image_url(body: Any) -> str:
    url = body.get("imageUrl") if isinstance(body, dict) else None
    if not isinstance(url, str) or not url.strip():
        raise ValueError("response carries no imageUrl")
    return url


class ProfileGateway(GatewayBase):
    """Gateway for the single profile of the authenticated user."""

    async def get(self, user_id: RecordId, *, on_error: ErrorReporter | None = None) -> Profile | ApiFailure:
        return await self._read(
            "GET",
            f"{PROFILES_PATH}/{user_id}",
            parse=_parse_profile,
            error_message="Error fetching profile by ID.",
            on_error=on_error,
        )

    async def update(
        self,
        user_id: RecordId,
        patch: Mapping[str, Any],
        *,
        on_error: ErrorReporter | None = None,
    ) -> Profile:
        body = dict(patch)
        if not body:
            raise ValueError("patch must contain at least one field")

        def _parse(response: Any) -> Profile:
            if response is None:
                return Profile.model_validate({**body, "user_id": user_id})
            return _parse_profile(response)

        return await self._write(
            "PUT",
            f"{PROFILES_PATH}/{user_id}",
            json=body,
            parse=_parse,
            error_message="Error updating profile.",
            on_error=on_error,
        )

    async def upload_image(
        self,
        user_id: RecordId,
        data: bytes,
        *,
        filename: str,
        content_type: str = "application/octet-stream",
        on_error: ErrorReporter | None = None,
    ) -> str:
        """Upload a new avatar image and return its public URL."""
        form = form_with_file("file", data, filename=filename, content_type=content_type)
        return await self._write(
            "POST",
            f"{STORAGE_PATH}/{user_id}/profile-image",
            form=form,
            parse=_parse_image_url,
            error_message="Error uploading profile image.",
            on_error=on_error,
        )
