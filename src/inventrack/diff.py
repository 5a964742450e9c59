"""Field diffing for edit forms.

An edit submits the whole form; only the fields whose serialized value
differs from the last-fetched record are sent to the API.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


def _as_mapping(record: Mapping[str, Any] | BaseModel | None) -> dict[str, Any]:
    if record is None:
        return {}
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return dict(record)


def _normalize(value: Any) -> Any:
    # Blank form fields and unset record fields are the same thing.
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def serialize_field(value: Any) -> str:
    """Canonical JSON text of a field value, used for comparison only."""
    return json.dumps(_normalize(value), sort_keys=True, default=str)


def compute_patch(
    original: Mapping[str, Any] | BaseModel | None,
    submitted: Mapping[str, Any] | BaseModel,
) -> dict[str, Any]:
    """Return the submitted fields whose serialized value changed.

    Fields missing from *submitted* are not changes, and ``id`` is never
    part of a patch.  An empty result means there is nothing to send.
    """
    base = _as_mapping(original)
    patch: dict[str, Any] = {}
    for key, value in _as_mapping(submitted).items():
        if key == "id":
            continue
        if serialize_field(value) != serialize_field(base.get(key)):
            patch[key] = value
    return patch


@dataclass(frozen=True)
class EditOutcome(Generic[T]):
    """Result of an edit submission."""

    changed: bool
    message: str
    record: T | None = None
    patch: dict[str, Any] = field(default_factory=dict)
