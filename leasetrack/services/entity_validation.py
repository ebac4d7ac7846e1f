"""Structural validation of suggestions and insert default values."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from leasetrack.services.entities import EntityType, get_entity_spec
from leasetrack.services.suggestions import SuggestionAction, UpdateSuggestion

if TYPE_CHECKING:
    from leasetrack.services.project_access import ProjectAccessValidator

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class AccessAwareValidationResult(ValidationResult):
    project_validation_errors: list[str] = field(default_factory=list)

    @property
    def all_errors(self) -> list[str]:
        return [*self.errors, *self.project_validation_errors]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def validate_suggestion(suggestion: UpdateSuggestion) -> ValidationResult:
    """Local structural validation (no I/O).

    Updates are partial and always pass here. Inserts must carry every
    required field of their entity type plus pass the entity's own checks.
    """
    if suggestion.action == SuggestionAction.UPDATE:
        return ValidationResult(is_valid=True)

    spec = get_entity_spec(suggestion.entity_type)
    errors: list[str] = []
    warnings: list[str] = []

    for name in spec.required_fields:
        if _is_blank(suggestion.values.get(name)):
            errors.append(f"Missing required field: {name}")

    if spec.check is not None:
        spec.check(suggestion.values, errors, warnings)

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def project_ids_to_validate(suggestion: UpdateSuggestion) -> list[str]:
    """Project references a suggestion depends on."""
    ids: list[str] = []
    if suggestion.entity_type in (EntityType.PROPERTY, EntityType.CLIENT_REQUIREMENT):
        project_id = suggestion.values.get("project_id")
        if project_id:
            ids.append(str(project_id))
    if (
        suggestion.entity_type == EntityType.PROJECT
        and suggestion.action == SuggestionAction.UPDATE
        and suggestion.entity_id
    ):
        ids.append(suggestion.entity_id)
    return ids


async def validate_suggestion_with_project_access(
    suggestion: UpdateSuggestion,
    validator: "ProjectAccessValidator",
) -> AccessAwareValidationResult:
    """Structural validation plus existence/access checks of referenced projects."""
    basic = validate_suggestion(suggestion)
    project_errors: list[str] = []

    project_ids = project_ids_to_validate(suggestion)
    if project_ids:
        try:
            results = await validator.validate_many(project_ids)
            for project_id, result in results.items():
                if result.is_valid:
                    continue
                if result.error:
                    project_errors.append(f"Project {project_id}: {result.error}")
                elif not result.exists:
                    project_errors.append(f"Project {project_id} does not exist")
                elif not result.has_access:
                    project_errors.append(f"No access to project {project_id}")
                else:
                    project_errors.append(f"Invalid project {project_id}")
        except Exception as e:
            logger.error("[validate] Project access check failed for %s: %s", suggestion.id, e, exc_info=True)
            project_errors.append(f"Project validation failed: {e}")

    return AccessAwareValidationResult(
        is_valid=basic.is_valid and not project_errors,
        errors=basic.errors,
        warnings=basic.warnings,
        project_validation_errors=project_errors,
    )


def apply_default_values(suggestion: UpdateSuggestion) -> dict[str, Any]:
    """Insert values with entity defaults filling absent/None fields, plus an id.

    Explicitly supplied values are never overwritten. Update values are
    returned as a plain copy so an update cannot reset a column to its default.
    """
    values = dict(suggestion.values)
    if suggestion.action != SuggestionAction.INSERT:
        return values
    spec = get_entity_spec(suggestion.entity_type)
    for name, default in spec.default_values.items():
        if values.get(name) is None:
            values[name] = default
    if not values.get("id"):
        values["id"] = str(uuid.uuid4())
    return values
