"""
Batch run context.

Shared state for one ``apply_approved_suggestions`` call: the session
factory, the access validator (and so its cache), configuration and the
running success/failure tally that becomes the :class:`BatchResult`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from leasetrack.apply.config import ApplyConfig
from leasetrack.services.project_access import ProjectAccessValidator

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    success: bool
    processed_count: int = 0
    failed_count: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "processed_count": self.processed_count,
            "failed_count": self.failed_count,
            "errors": list(self.errors),
        }


@dataclass
class BatchRunContext:
    """Holds run-scoped state for one batch of approved suggestions."""

    session_factory: async_sessionmaker
    validator: ProjectAccessValidator
    config: ApplyConfig
    total: int = 0

    processed_count: int = 0
    failed_count: int = 0
    errors: list[str] = field(default_factory=list)

    # --------------------------------------------------------- bookkeeping
    def record_success(self, count: int = 1) -> None:
        self.processed_count += count

    def record_failure(self, message: str, count: int = 1) -> None:
        self.failed_count += count
        self.errors.append(message)

    @property
    def remaining(self) -> int:
        return max(self.total - self.processed_count - self.failed_count, 0)

    def result(self) -> BatchResult:
        return BatchResult(
            success=self.failed_count == 0,
            processed_count=self.processed_count,
            failed_count=self.failed_count,
            errors=list(self.errors),
        )
