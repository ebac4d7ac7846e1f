"""
Batch item error helpers.

Centralises the "format -> log -> record in context" pattern so the
ordered-insert path, the generic path and the coordinator all report failures
the same way.
"""
from __future__ import annotations

import logging

from leasetrack.apply.context import BatchRunContext
from leasetrack.services.error_tracker import classify_storage_error, error_text

logger = logging.getLogger(__name__)


def record_item_failure(
    ctx: BatchRunContext,
    message: str,
    *,
    count: int = 1,
    error: Exception | str | None = None,
    details: dict | None = None,
) -> None:
    """Log and record a failure covering *count* suggestions.

    *message* is the user-facing text that ends up in ``BatchResult.errors``;
    *error* (when given) is the underlying cause, classified for the log.
    """
    category = classify_storage_error(error) if error is not None else "validation"
    logger.warning(
        "[apply] %s item(s) failed (%s): %s | cause=%s details=%s",
        count,
        category,
        message,
        error_text(error) if error is not None else None,
        details or {},
    )
    ctx.record_failure(message, count=count)
