#!/usr/bin/env python3
"""
Match Orchestrator - scores a page's job list for one viewer.

Loads the viewer's match cache once, reuses cached entries verbatim, scores
the misses with the shared match engine and persists the cache once at the
end if anything changed. Anonymous viewers (no user or no profile) get a
zero score for every job and the cache is never touched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from core.matching.engine import calculate_total, safe_score_job
from core.matching.models import CacheEntry, MatchBreakdown
from core.matching.normalize import get_field

if TYPE_CHECKING:
    from core.cache.match_cache import MatchCacheService

logger = logging.getLogger(__name__)


class SortOrder(Enum):
    MATCH = "match"
    DATE = "date"


@dataclass
class ScoredJob:
    """A job paired with the viewer's match score."""
    job: Any
    job_id: Optional[str]
    score: int = 0
    breakdown: Optional[MatchBreakdown] = None
    computed_at: Optional[datetime] = None
    from_cache: bool = False

    @property
    def calculated_total(self) -> int:
        return calculate_total(self.breakdown)

    @property
    def posted_date(self) -> Optional[date]:
        return _as_date(get_field(self.job, 'posted_date'))


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _job_id(job: Any) -> Optional[str]:
    job_id = get_field(job, 'id')
    return str(job_id) if job_id is not None else None


class MatchOrchestrator:
    """
    Client-side match orchestration over the shared engine.

    Per-job scoring runs on a small thread pool; the cache read-modify-write
    happens exactly once around the whole batch.
    """

    def __init__(self, cache: "MatchCacheService", max_workers: int = 4):
        self.cache = cache
        self.max_workers = max(1, max_workers)

    def score_jobs(
        self,
        jobs: Sequence[Any],
        user_id: Optional[str],
        profile: Optional[Any]
    ) -> List[ScoredJob]:
        """Score every job in `jobs` for the viewer.

        Args:
            jobs: Job records (JobRecord models or mappings with an 'id')
            user_id: Viewer id, None for anonymous visitors
            profile: Viewer's onboarding profile, None if not onboarded

        Returns:
            ScoredJob per input job, in input order
        """
        if not user_id or profile is None:
            return [ScoredJob(job=job, job_id=_job_id(job)) for job in jobs]

        cached = self.cache.load_match_cache(user_id)
        updated_cache = dict(cached)

        results: List[Optional[ScoredJob]] = [None] * len(jobs)
        misses = []

        for index, job in enumerate(jobs):
            job_id = _job_id(job)
            entry = cached.get(job_id) if job_id is not None else None
            if entry is not None:
                results[index] = ScoredJob(
                    job=job,
                    job_id=job_id,
                    score=entry.score,
                    breakdown=entry.breakdown,
                    computed_at=entry.cached_at,
                    from_cache=True,
                )
            else:
                misses.append((index, job, job_id))

        logger.debug(f"User {user_id}: {len(jobs) - len(misses)} cache hits, {len(misses)} misses")

        cache_dirty = False
        if misses:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(misses))) as executor:
                scored = list(executor.map(
                    lambda item: safe_score_job(item[1], profile, context=f"job {item[2]}"),
                    misses
                ))

            for (index, job, job_id), result in zip(misses, scored):
                results[index] = ScoredJob(
                    job=job,
                    job_id=job_id,
                    score=result.score,
                    breakdown=result.breakdown,
                    computed_at=result.computed_at,
                )
                if job_id is not None and result.breakdown is not None:
                    updated_cache[job_id] = CacheEntry.from_result(result)
                    cache_dirty = True

        if cache_dirty:
            self.cache.save_match_cache(user_id, updated_cache)

        return results


def sort_scored_jobs(
    scored_jobs: Sequence[ScoredJob],
    sort_by: SortOrder = SortOrder.MATCH
) -> List[ScoredJob]:
    """Sort by calculated total or by posting date, both descending.

    Stable: ties keep input order. Jobs without a posting date sort last.
    """
    if sort_by == SortOrder.DATE:
        return sorted(
            scored_jobs,
            key=lambda s: (s.posted_date is not None, s.posted_date or date.min),
            reverse=True
        )
    return sorted(scored_jobs, key=lambda s: s.calculated_total, reverse=True)
