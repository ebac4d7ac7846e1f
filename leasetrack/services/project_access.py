"""
Project existence/access validation with a short-lived per-session cache.

A project reference is valid iff the storage layer returns it for the caller.
"Does not exist" and "exists but not visible to you" are deliberately
indistinguishable and produce the same message.

Validators never raise: query failures are reported per id and are not
cached, so the next batch retries them.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import async_sessionmaker

from leasetrack import storage as db_handler

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class ProjectAccessResult:
    is_valid: bool
    exists: bool
    has_access: bool
    error: str | None = None

    def as_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "exists": self.exists,
            "has_access": self.has_access,
            "error": self.error,
        }


_VALID = ProjectAccessResult(is_valid=True, exists=True, has_access=True)


def _invalid(error: str) -> ProjectAccessResult:
    return ProjectAccessResult(is_valid=False, exists=False, has_access=False, error=error)


class ProjectAccessCache:
    """Affirmative/negative project cache with one TTL for the whole cache.

    The window starts at construction (or the last :meth:`invalidate`); once
    it has elapsed every entry is dropped at once.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._valid: set[str] = set()
        self._invalid: set[str] = set()
        self.created_at = clock()

    def is_expired(self) -> bool:
        return self._clock() - self.created_at > self.ttl_seconds

    def invalidate(self) -> None:
        self._valid.clear()
        self._invalid.clear()
        self.created_at = self._clock()

    def lookup(self, project_id: str) -> ProjectAccessResult | None:
        if self.is_expired():
            self.invalidate()
            return None
        if project_id in self._valid:
            return _VALID
        if project_id in self._invalid:
            return _invalid("Project not found (cached)")
        return None

    def remember_valid(self, project_id: str) -> None:
        self._valid.add(project_id)
        self._invalid.discard(project_id)

    def remember_invalid(self, project_id: str) -> None:
        self._invalid.add(project_id)
        self._valid.discard(project_id)

    def __len__(self) -> int:
        return len(self._valid) + len(self._invalid)


class ProjectAccessValidator:
    """Checks that referenced projects exist and are visible to the caller.

    One instance per batch-processing session; the cache is never shared.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        owner_user_id: str | None = None,
        cache: ProjectAccessCache | None = None,
    ):
        self.session_factory = session_factory
        self.owner_user_id = owner_user_id
        self.cache = cache if cache is not None else ProjectAccessCache()

    async def validate_access(self, project_id: str) -> ProjectAccessResult:
        if not project_id or not isinstance(project_id, str):
            return _invalid("Invalid project ID format")

        cached = self.cache.lookup(project_id)
        if cached is not None:
            return cached

        try:
            async with self.session_factory() as db:
                found = await db_handler.fetch_project(
                    db, project_id, owner_user_id=self.owner_user_id
                )
        except Exception as e:
            logger.error("[access] Project lookup failed for %s: %s", project_id, e)
            return _invalid(f"Database error: {e}")

        if found is None:
            self.cache.remember_invalid(project_id)
            return _invalid("Project not found")

        self.cache.remember_valid(project_id)
        return _VALID

    async def validate_many(self, project_ids: Iterable[str]) -> dict[str, ProjectAccessResult]:
        results: dict[str, ProjectAccessResult] = {}
        unique_ids = list(dict.fromkeys(pid for pid in project_ids if pid))
        if not unique_ids:
            return results

        uncached: list[str] = []
        for project_id in unique_ids:
            cached = self.cache.lookup(project_id)
            if cached is not None:
                results[project_id] = cached
            else:
                uncached.append(project_id)

        if not uncached:
            return results

        try:
            async with self.session_factory() as db:
                found = await db_handler.fetch_project_ids(
                    db, uncached, owner_user_id=self.owner_user_id
                )
        except Exception as e:
            logger.error("[access] Batch project lookup failed for %s: %s", uncached, e)
            for project_id in uncached:
                results[project_id] = _invalid(f"Database error: {e}")
            return {pid: results[pid] for pid in unique_ids}

        for project_id in uncached:
            if project_id in found:
                self.cache.remember_valid(project_id)
                results[project_id] = _VALID
            else:
                self.cache.remember_invalid(project_id)
                results[project_id] = _invalid("Project not found")
        logger.debug("[access] Looked up %s project(s), %s visible", len(uncached), len(found))
        return {pid: results[pid] for pid in unique_ids}

    def clear_cache(self) -> None:
        self.cache.invalidate()
