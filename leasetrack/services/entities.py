"""
Closed registry of the entity types a suggestion can target.

Each :class:`EntitySpec` carries everything the pipeline needs to know about
one destination table: the ORM model, required insert fields, insert defaults,
enumerated columns and whether the table tracks ``updated_at``. Adding an
entity type means adding one entry here.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from leasetrack.models import ClientRequirement, Project, Property


class EntityType(str, Enum):
    PROJECT = "project"
    PROPERTY = "property"
    CLIENT_REQUIREMENT = "client_requirement"


PROJECT_STATUSES: tuple[str, ...] = ("Active", "Pending", "Completed", "On Hold")
PROPERTY_STATUSES: tuple[str, ...] = (
    "new",
    "active",
    "pending",
    "under_review",
    "negotiating",
    "on_hold",
    "declined",
    "accepted",
)
PROPERTY_CURRENT_STATES: tuple[str, ...] = (
    "Available",
    "Under Review",
    "Negotiating",
    "On Hold",
    "Declined",
)
TOUR_STATUSES: tuple[str, ...] = ("Scheduled", "Completed", "Cancelled", "Rescheduled")

MIN_REQUIREMENT_TEXT_LENGTH = 10

StructuralCheck = Callable[[Mapping[str, Any], list[str], list[str]], None]


@dataclass(frozen=True)
class EntitySpec:
    entity_type: EntityType
    model: type
    required_fields: tuple[str, ...]
    default_values: Mapping[str, Any] = field(default_factory=dict)
    enum_fields: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    tracks_updated_at: bool = False
    check: StructuralCheck | None = None

    @property
    def table_name(self) -> str:
        return self.model.__tablename__


# ---------------------------------------------------------------------------
# Entity-specific structural checks (inserts only)
# ---------------------------------------------------------------------------

def _check_project(values: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    if not values.get("title") and not values.get("name"):
        errors.append("Project must have a title or name")
    status = values.get("status")
    if status and status not in PROJECT_STATUSES:
        errors.append(
            f"Invalid project status: {status}. Must be one of: {', '.join(PROJECT_STATUSES)}"
        )


def _check_property(values: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    if not values.get("project_id"):
        errors.append("Property must have a valid project_id")
    status = values.get("status")
    if status and status not in PROPERTY_STATUSES:
        errors.append(
            f"Invalid property status: {status}. Must be one of: {', '.join(PROPERTY_STATUSES)}"
        )
    current_state = values.get("current_state")
    if current_state and current_state not in PROPERTY_CURRENT_STATES:
        errors.append(
            f"Invalid property current_state: {current_state}. "
            f"Must be one of: {', '.join(PROPERTY_CURRENT_STATES)}"
        )
    if not values.get("address"):
        warnings.append("Property address not provided")


def _check_client_requirement(values: Mapping[str, Any], errors: list[str], warnings: list[str]) -> None:
    category = values.get("category")
    if not isinstance(category, str) or not category.strip():
        errors.append("Client requirement must have a valid category")
    text = values.get("requirement_text")
    if not isinstance(text, str) or not text.strip():
        errors.append("Client requirement must have requirement_text")
    elif len(text.strip()) < MIN_REQUIREMENT_TEXT_LENGTH:
        warnings.append("Requirement text is very short, consider adding more detail")
    if not values.get("project_id"):
        errors.append("Client requirement must have a valid project_id")


ENTITY_SPECS: dict[EntityType, EntitySpec] = {
    EntityType.PROJECT: EntitySpec(
        entity_type=EntityType.PROJECT,
        model=Project,
        required_fields=("title",),
        default_values={"status": "Active"},
        enum_fields={"status": PROJECT_STATUSES},
        tracks_updated_at=True,
        check=_check_project,
    ),
    EntityType.PROPERTY: EntitySpec(
        entity_type=EntityType.PROPERTY,
        model=Property,
        required_fields=("name", "project_id"),
        default_values={"status": "new", "current_state": "Available"},
        enum_fields={
            "status": PROPERTY_STATUSES,
            "current_state": PROPERTY_CURRENT_STATES,
            "tour_status": TOUR_STATUSES,
        },
        tracks_updated_at=True,
        check=_check_property,
    ),
    EntityType.CLIENT_REQUIREMENT: EntitySpec(
        entity_type=EntityType.CLIENT_REQUIREMENT,
        model=ClientRequirement,
        required_fields=("category", "project_id", "requirement_text"),
        check=_check_client_requirement,
    ),
}


def get_entity_spec(entity_type: EntityType | str) -> EntitySpec:
    """Resolve an entity type (enum or raw tag) to its spec."""
    try:
        return ENTITY_SPECS[EntityType(entity_type)]
    except (ValueError, KeyError):
        raise ValueError(f"Unknown entity type: {entity_type}") from None
