"""Coercion of raw suggested values into typed column values.

Coercion is lenient: a value that cannot be interpreted for its column becomes
``None`` instead of failing the suggestion. Required-field violations are
caught earlier by :mod:`leasetrack.services.entity_validation`. Pass
``strict=True`` to raise :class:`InvalidFieldValue` for unmatched enum and
timestamp values instead of nulling them.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any

from leasetrack.services.entities import EntityType, get_entity_spec

NUMERIC_FIELDS = frozenset({
    "total_sqft",
    "unit_count",
    "estimated_budget",
    "lease_rate_psf_year",
    "lease_rate_psf_month",
    "required_sqft",
    "max_budget",
    "preferred_lease_rate",
    "expected_fee",
    "broker_commission",
})

SOFT_DELETE_FIELDS = frozenset({"deleted_at"})

_TRUE_STRINGS = frozenset({"true", "yes", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "0"})
# Soft-delete values meaning "not deleted"
_CLEARED_STRINGS = _FALSE_STRINGS | {"null"}

# Strict ISO-8601 instant with an explicit UTC designator
_ISO_UTC_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]00:?00)$"
)

_FIELD_LABELS = {
    "total_sqft": "Total Sq Ft",
    "unit_count": "Unit Count",
    "estimated_budget": "Estimated Budget",
    "lease_rate_psf_year": "Lease Rate ($/sq ft/year)",
    "lease_rate_psf_month": "Lease Rate ($/sq ft/month)",
    "required_sqft": "Required Sq Ft",
    "max_budget": "Max Budget",
    "preferred_lease_rate": "Preferred Lease Rate",
    "property_type": "Property Type",
    "move_in_date": "Move-in Date",
    "deleted_at": "Deleted At",
    "created_at": "Created At",
    "updated_at": "Updated At",
    "order_key": "Order Key",
}


class InvalidFieldValue(ValueError):
    """Raised in strict mode when a value does not fit its column."""

    def __init__(self, field: str, value: Any, message: str):
        super().__init__(message)
        self.field = field
        self.value = value


def _parse_number(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and not math.isfinite(value) else value
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _underscored(value: str) -> str:
    return re.sub(r"\s+", "_", value.strip().lower())


def normalize_enum_value(value: str, allowed: tuple[str, ...]) -> str | None:
    """Exact, then case-insensitive, then whitespace-to-underscore match."""
    if value in allowed:
        return value
    lowered = value.lower()
    for member in allowed:
        if member.lower() == lowered:
            return member
    underscored = _underscored(value)
    for member in allowed:
        if _underscored(member) == underscored:
            return member
    return None


def parse_utc_timestamp(value: str) -> datetime | None:
    """Naive UTC datetime for a strict ISO-8601 UTC instant, else None."""
    if not _ISO_UTC_RE.match(value):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def _as_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _parse_soft_delete(field: str, value: Any, strict: bool) -> datetime | None:
    if isinstance(value, bool):
        return None
    text = _as_text(value)
    parsed = parse_utc_timestamp(text)
    if parsed is None and strict and text and text.lower() not in _CLEARED_STRINGS:
        raise InvalidFieldValue(field, value, f"Invalid {field}: expected an ISO-8601 UTC timestamp")
    return parsed


def parse_field_value(
    field: str,
    value: Any,
    entity_type: EntityType | str,
    *,
    strict: bool = False,
) -> Any:
    """Coerce one raw value for ``field`` on ``entity_type``; first matching rule wins."""
    if value is None:
        return None

    if field in NUMERIC_FIELDS:
        return _parse_number(value)

    # Ahead of the boolean rules: a DateTime column never takes True/False
    if field in SOFT_DELETE_FIELDS:
        return _parse_soft_delete(field, value, strict)

    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False

    text = _as_text(value)

    allowed = get_entity_spec(entity_type).enum_fields.get(field)
    if allowed is not None:
        match = normalize_enum_value(text, allowed)
        if match is None and strict and text:
            raise InvalidFieldValue(
                field, value, f"Invalid {field}: {text}. Must be one of: {', '.join(allowed)}"
            )
        return match

    return text


def get_field_label(field: str) -> str:
    """Human-readable label for a column name."""
    if field in _FIELD_LABELS:
        return _FIELD_LABELS[field]
    return " ".join(part.capitalize() for part in field.split("_"))
