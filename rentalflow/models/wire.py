"""Normalization of upstream payloads into one canonical shape.

Two backend revisions emit the same records with different key styles
(``Status`` and ``status``, ``RentalItemID`` and ``rental_item_id``). Payloads
are folded to snake_case on ingestion; when both variants are present the
snake_case value wins.
"""

import re
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake(key: str) -> str:
    """Convert ``RentalItemID`` style keys to ``rental_item_id``."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def normalize_keys(data: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
    """Fold a wire payload to canonical snake_case field names."""
    aliases = aliases or {}
    canonical: dict[str, Any] = {}
    # Already-canonical keys are applied last so they take precedence
    ordered = sorted(data.items(), key=lambda kv: kv[0] == to_snake(kv[0]))
    for key, value in ordered:
        name = to_snake(key)
        name = aliases.get(name, name)
        if value is None and name in canonical:
            continue
        canonical[name] = value
    return canonical


def coerce_calendar_date(value: Any) -> Any:
    """Reduce ISO datetimes to their calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


class WireModel(BaseModel):
    """Base model for records received from the marketplace server."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    wire_aliases: ClassVar[dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def _normalize_wire_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_keys(data, cls.wire_aliases)
        return data
