"""
Generic path: updates of any entity type and non-property inserts.

Every suggestion is validated, coerced and written on its own session,
concurrently with its siblings. Outcomes are collected all-settle style: one
failure never cancels or blocks another.
"""
from __future__ import annotations

import asyncio
import logging

from leasetrack import storage as db_handler
from leasetrack.apply.context import BatchRunContext
from leasetrack.apply.errors import record_item_failure
from leasetrack.apply.payload import build_database_payload
from leasetrack.services.entity_validation import validate_suggestion_with_project_access
from leasetrack.services.error_tracker import storage_error_message
from leasetrack.services.field_coercion import InvalidFieldValue
from leasetrack.services.suggestions import SuggestionAction, UpdateSuggestion

logger = logging.getLogger(__name__)


class ItemFailure(Exception):
    """A per-suggestion failure whose message is already user-facing."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


async def process_single_suggestion(ctx: BatchRunContext, suggestion: UpdateSuggestion) -> None:
    """Validate, coerce and write one suggestion. Raises ItemFailure on any failure."""
    validation = await validate_suggestion_with_project_access(suggestion, ctx.validator)
    if not validation.is_valid:
        raise ItemFailure(f"Validation failed: {', '.join(validation.all_errors)}")
    for warning in validation.warnings:
        logger.info("[generic] %s %s: %s", suggestion.entity_type.value, suggestion.label, warning)

    if suggestion.action == SuggestionAction.UPDATE and not suggestion.entity_id:
        raise ItemFailure("Missing entity ID for update")

    try:
        payload = build_database_payload(suggestion, strict=ctx.config.strict_enums)
    except InvalidFieldValue as e:
        raise ItemFailure(f"Validation failed: {e}", e) from e
    if suggestion.action == SuggestionAction.UPDATE and not payload:
        raise ItemFailure("No fields to update")

    entity_type = suggestion.entity_type.value
    try:
        async with ctx.session_factory() as db:
            if suggestion.action == SuggestionAction.UPDATE:
                matched = await db_handler.update_row(db, entity_type, suggestion.entity_id, payload)
                if not matched:
                    # Missing and inaccessible rows look the same; last write wins.
                    logger.warning(
                        "[generic] Update of %s %s matched no rows", entity_type, suggestion.entity_id
                    )
            else:
                await db_handler.insert_rows(db, entity_type, [payload])
    except Exception as e:
        raise ItemFailure(storage_error_message(e, entity_type, suggestion.action.value), e) from e


async def process_group(ctx: BatchRunContext, suggestions: list[UpdateSuggestion]) -> None:
    """Run every suggestion of the group concurrently and record each outcome."""
    outcomes = await asyncio.gather(
        *(process_single_suggestion(ctx, s) for s in suggestions),
        return_exceptions=True,
    )
    for suggestion, outcome in zip(suggestions, outcomes):
        if not isinstance(outcome, BaseException):
            ctx.record_success()
            continue
        if isinstance(outcome, ItemFailure):
            reason, cause = str(outcome), outcome.cause
        else:
            logger.error("[generic] Unexpected error for %s: %r", suggestion.id, outcome)
            reason, cause = str(outcome) or "Unknown error", outcome
        record_item_failure(
            ctx,
            f'Failed to {suggestion.action.value} {suggestion.entity_type.value} '
            f'"{suggestion.entity_name}": {reason}',
            error=cause,
            details={"suggestion_id": suggestion.id},
        )
