"""Suggestion data model, ingestion (id de-duplication) and review state."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from leasetrack.services.entities import EntityType

logger = logging.getLogger(__name__)

RawValue = Union[str, int, float, bool, None]


class SuggestionAction(str, Enum):
    UPDATE = "update"
    INSERT = "insert"


@dataclass(frozen=True)
class UpdateSuggestion:
    """A proposed change to one record, pending human approval.

    ``values`` is the complete set of columns to write. ``entity_id`` is
    required for updates and ``None`` for inserts. ``reasoning`` is
    descriptive only.
    """

    id: str
    entity_type: EntityType
    action: SuggestionAction
    entity_id: str | None = None
    entity_name: str = ""
    values: Mapping[str, RawValue] = field(default_factory=dict)
    reasoning: str = ""

    def __post_init__(self) -> None:
        # Accept raw tags; reject anything outside the closed sets.
        try:
            object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        except ValueError:
            raise ValueError(f"Unknown entity type: {self.entity_type}") from None
        try:
            object.__setattr__(self, "action", SuggestionAction(self.action))
        except ValueError:
            raise ValueError(f"Unknown action: {self.action}") from None
        if self.values is not None and not isinstance(self.values, Mapping):
            raise ValueError("Suggestion values must be an object")
        object.__setattr__(self, "values", dict(self.values or {}))

    @property
    def label(self) -> str:
        return self.entity_name or self.entity_id or self.id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UpdateSuggestion":
        """Build from upstream JSON (camelCase or snake_case keys)."""
        def _get(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            id=str(data.get("id") or ""),
            entity_type=_get("entity_type", "entityType"),
            action=data.get("action"),
            entity_id=_get("entity_id", "entityId"),
            entity_name=_get("entity_name", "entityName", "") or "",
            values=data.get("values") or {},
            reasoning=data.get("reasoning") or "",
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entity_type": self.entity_type.value,
            "action": self.action.value,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "values": dict(self.values),
            "reasoning": self.reasoning,
        }


def ingest_suggestions(raw: Iterable[Any]) -> list[UpdateSuggestion]:
    """Parse upstream suggestions and make their ids unique.

    A missing id becomes ``suggestion-<index>``; an id already used earlier in
    the list becomes ``<id>-<index>``. Unparseable entries are skipped.
    """
    suggestions: list[UpdateSuggestion] = []
    seen: set[str] = set()
    for idx, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.warning("[ingest] Skipping suggestion %s: not an object", idx)
            continue
        try:
            suggestion = UpdateSuggestion.from_dict(item)
        except ValueError as e:
            logger.warning("[ingest] Skipping suggestion %s: %s", idx, e)
            continue
        sid = suggestion.id
        if not sid:
            sid = f"suggestion-{idx}"
        elif sid in seen:
            sid = f"{sid}-{idx}"
        while sid in seen:
            sid = f"{sid}-{idx}"
        seen.add(sid)
        if sid != suggestion.id:
            suggestion = replace(suggestion, id=sid)
        suggestions.append(suggestion)
    return suggestions


class SuggestionReview:
    """Approval/rejection state keyed by suggestion id."""

    def __init__(self) -> None:
        self.approved: set[str] = set()
        self.rejected: set[str] = set()

    def approve(self, suggestion_id: str) -> None:
        self.approved.add(suggestion_id)
        self.rejected.discard(suggestion_id)

    def reject(self, suggestion_id: str) -> None:
        self.rejected.add(suggestion_id)
        self.approved.discard(suggestion_id)

    def clear(self) -> None:
        self.approved.clear()
        self.rejected.clear()

    def approved_from(self, suggestions: Iterable[UpdateSuggestion]) -> list[UpdateSuggestion]:
        return [s for s in suggestions if s.id in self.approved]
