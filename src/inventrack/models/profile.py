"""User profile record."""

from __future__ import annotations

from inventrack.models._base import InventrackBaseModel, RecordId


class Profile(InventrackBaseModel):
    """The authenticated user's profile.

    There is at most one per user; the client addresses it by ``user_id``.
    """

    id: RecordId | None = None
    user_id: RecordId | None = None
    full_name: str | None = None
    cell_number: str | None = None
    email: str | None = None
    store_name: str | None = None
    profile_image_url: str | None = None
