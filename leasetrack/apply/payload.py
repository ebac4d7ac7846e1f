"""Insert/update payload construction for one suggestion."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from leasetrack.services.entities import get_entity_spec
from leasetrack.services.entity_validation import apply_default_values
from leasetrack.services.field_coercion import parse_field_value
from leasetrack.services.suggestions import SuggestionAction, UpdateSuggestion


def _utc_now_naive() -> datetime:
    """Naive UTC datetime for DB (TIMESTAMP WITHOUT TIME ZONE)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_database_payload(
    suggestion: UpdateSuggestion,
    *,
    strict: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Defaults + coerced values + timestamps, ready for the storage layer.

    Inserts get ``created_at``; tables that track modification time
    (projects, properties) get ``updated_at`` on every write.
    Raises ``InvalidFieldValue`` only when *strict* is set.
    """
    spec = get_entity_spec(suggestion.entity_type)
    now = now or _utc_now_naive()
    payload: dict[str, Any] = {}

    if suggestion.action == SuggestionAction.INSERT:
        payload["created_at"] = now
    if spec.tracks_updated_at:
        payload["updated_at"] = now

    for name, value in apply_default_values(suggestion).items():
        payload[name] = parse_field_value(name, value, spec.entity_type, strict=strict)

    return payload
