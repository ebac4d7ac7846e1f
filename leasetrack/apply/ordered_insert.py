"""
Ordered-insert path: new properties with fractional ``order_key`` assignment.

Properties are grouped by project. Each project's keys are computed
sequentially against the existing siblings *plus every key assigned earlier in
this call*, then the whole group is written in a single insert. Key assignment
for one project is a single-writer computation, so groups are never split
across concurrent writes.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from leasetrack import storage as db_handler
from leasetrack.apply.config import PLACEMENT_END
from leasetrack.apply.context import BatchRunContext
from leasetrack.apply.errors import record_item_failure
from leasetrack.apply.payload import build_database_payload
from leasetrack.services.entities import EntityType
from leasetrack.services.entity_validation import validate_suggestion_with_project_access
from leasetrack.services.error_tracker import error_text, storage_error_message
from leasetrack.services.field_coercion import InvalidFieldValue
from leasetrack.services.order_key import key_after_all, key_before_all
from leasetrack.services.suggestions import UpdateSuggestion

logger = logging.getLogger(__name__)


def assign_order_keys(
    existing: list[dict[str, str]],
    count: int,
    *,
    placement: str = "start",
) -> list[str]:
    """Keys for *count* new siblings, each computed against all earlier ones.

    With ``start`` placement the most recently assigned key sorts first; with
    ``end`` it sorts last. Never returns duplicates.
    """
    next_key: Callable[[list[dict[str, str]]], str] = (
        key_after_all if placement == PLACEMENT_END else key_before_all
    )
    running = list(existing)
    keys: list[str] = []
    for _ in range(count):
        key = next_key(running)
        running.append({"order_key": key})
        keys.append(key)
    return keys


async def _validate_and_group(
    ctx: BatchRunContext,
    suggestions: list[UpdateSuggestion],
) -> dict[str, list[UpdateSuggestion]]:
    by_project: dict[str, list[UpdateSuggestion]] = {}
    for suggestion in suggestions:
        validation = await validate_suggestion_with_project_access(suggestion, ctx.validator)
        if not validation.is_valid:
            record_item_failure(
                ctx,
                f'Property "{suggestion.entity_name}" validation failed: '
                f'{", ".join(validation.all_errors)}',
                details={
                    "suggestion_id": suggestion.id,
                    "project_id": suggestion.values.get("project_id"),
                },
            )
            continue

        project_id = suggestion.values.get("project_id")
        if not project_id:
            record_item_failure(ctx, f'Property "{suggestion.entity_name}" missing project_id')
            continue
        by_project.setdefault(str(project_id), []).append(suggestion)
    return by_project


async def _insert_project_group(
    ctx: BatchRunContext,
    project_id: str,
    group: list[UpdateSuggestion],
) -> None:
    async with ctx.session_factory() as db:
        try:
            existing = await db_handler.fetch_sibling_order_keys(db, project_id)
        except Exception as e:
            record_item_failure(
                ctx,
                f"Failed to fetch existing properties for project {project_id}: {error_text(e)}",
                count=len(group),
                error=e,
            )
            return

        keys = assign_order_keys(existing, len(group), placement=ctx.config.ordered_placement)
        rows: list[dict[str, Any]] = []
        for suggestion, key in zip(group, keys):
            payload = build_database_payload(suggestion, strict=ctx.config.strict_enums)
            payload["order_key"] = key
            rows.append(payload)

        try:
            await db_handler.insert_rows(db, EntityType.PROPERTY, rows)
        except Exception as e:
            record_item_failure(
                ctx,
                f"Failed to insert properties for project {project_id}: "
                f"{storage_error_message(e, EntityType.PROPERTY.value)}",
                count=len(group),
                error=e,
                details={"project_id": project_id, "rows": len(rows)},
            )
            return

    logger.info("[ordered] Inserted %s properties for project %s", len(group), project_id)
    ctx.record_success(len(group))


async def process_property_inserts(ctx: BatchRunContext, suggestions: list[UpdateSuggestion]) -> None:
    """Validate, key and insert new properties, one write per project."""
    by_project = await _validate_and_group(ctx, suggestions)

    for project_id, group in by_project.items():
        try:
            await _insert_project_group(ctx, project_id, group)
        except InvalidFieldValue as e:
            record_item_failure(
                ctx,
                f"Failed to insert properties for project {project_id}: Validation failed: {e}",
                count=len(group),
            )
        except Exception as e:
            logger.error("[ordered] Unexpected error for project %s: %s", project_id, e, exc_info=True)
            record_item_failure(
                ctx,
                f"Error processing properties for project {project_id}: {str(e) or 'Unknown error'}",
                count=len(group),
                error=e,
            )
