"""Base model for InvenTrack API records.

Every record model inherits from :class:`InventrackBaseModel` which
provides:

* ``frozen=True`` so a record handed out by a store can never be
  mutated behind the store's back.
* ``extra="allow"`` so fields the client does not know about survive
  a fetch / persist / rehydrate round-trip.
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

RecordId = int | str
Number = int | float


class InventrackBaseModel(BaseModel):
    """Base for InvenTrack API records."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return InventrackBaseModel._clean_dict(values)

    def to_payload(self) -> dict[str, Any]:
        """Return the record as a JSON-ready dict, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


class IdentifiedRecord(InventrackBaseModel):
    """A record addressed by a server-assigned ``id``."""

    id: RecordId | None = None
