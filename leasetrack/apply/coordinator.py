"""
Suggestion batch coordinator.

The single orchestration entry point that:
1. Short-circuits an empty batch.
2. Constructs a :class:`BatchRunContext` (one access cache per batch).
3. Groups suggestions by ``(entity_type, action)`` in first-seen order.
4. Delegates ``(property, insert)`` to the ordered-insert path and every other
   group to the generic all-settle path.
5. Aggregates one :class:`BatchResult`.

Nothing raises past :meth:`SuggestionBatchProcessor.apply_approved_suggestions`;
an unexpected error fails every item not yet accounted for.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import async_sessionmaker

from leasetrack.apply import generic, ordered_insert
from leasetrack.apply.config import ApplyConfig, load_apply_config
from leasetrack.apply.context import BatchResult, BatchRunContext
from leasetrack.services.entities import EntityType
from leasetrack.services.project_access import ProjectAccessCache, ProjectAccessValidator
from leasetrack.services.suggestions import SuggestionAction, UpdateSuggestion

logger = logging.getLogger(__name__)

GroupKey = tuple[EntityType, SuggestionAction]


def group_suggestions(
    suggestions: Iterable[UpdateSuggestion],
) -> dict[GroupKey, list[UpdateSuggestion]]:
    """Partition by (entity_type, action), preserving first-seen order."""
    grouped: dict[GroupKey, list[UpdateSuggestion]] = {}
    for suggestion in suggestions:
        grouped.setdefault((suggestion.entity_type, suggestion.action), []).append(suggestion)
    return grouped


class SuggestionBatchProcessor:
    """Applies user-approved suggestions; one instance per batch session."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        owner_user_id: str | None = None,
        config: ApplyConfig | None = None,
        validator: ProjectAccessValidator | None = None,
    ):
        self.session_factory = session_factory
        self.config = config or load_apply_config()
        self.validator = validator or ProjectAccessValidator(
            session_factory,
            owner_user_id=owner_user_id,
            cache=ProjectAccessCache(ttl_seconds=self.config.access_cache_ttl_seconds),
        )

    async def apply_approved_suggestions(self, suggestions: list[UpdateSuggestion]) -> BatchResult:
        """Apply exactly the suggestions given; approval is not re-derived here."""
        if not suggestions:
            return BatchResult(success=True)

        ctx = BatchRunContext(
            session_factory=self.session_factory,
            validator=self.validator,
            config=self.config,
            total=len(suggestions),
        )
        grouped = group_suggestions(suggestions)
        logger.info(
            "[apply] Applying %s suggestion(s) in %s group(s)", len(suggestions), len(grouped)
        )

        try:
            for (entity_type, action), group in grouped.items():
                logger.debug("[apply] Group %s/%s: %s item(s)", entity_type.value, action.value, len(group))
                if entity_type == EntityType.PROPERTY and action == SuggestionAction.INSERT:
                    await ordered_insert.process_property_inserts(ctx, group)
                else:
                    await generic.process_group(ctx, group)
        except Exception as exc:
            logger.error("[apply] Unhandled error: %s", exc, exc_info=True)
            ctx.record_failure(str(exc) or "Unexpected error occurred", count=ctx.remaining)

        result = ctx.result()
        logger.info(
            "[apply] Done: processed=%s failed=%s", result.processed_count, result.failed_count
        )
        return result


async def apply_approved_suggestions(
    suggestions: list[UpdateSuggestion],
    session_factory: async_sessionmaker,
    *,
    owner_user_id: str | None = None,
    config: ApplyConfig | None = None,
) -> BatchResult:
    """Apply one batch with a fresh processor (and so a fresh access cache)."""
    processor = SuggestionBatchProcessor(
        session_factory, owner_user_id=owner_user_id, config=config
    )
    return await processor.apply_approved_suggestions(suggestions)
