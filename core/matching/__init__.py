#!/usr/bin/env python3
"""
Matching Module - job/candidate match scoring.

Public API:
- score_job: The shared, pure scoring function
- MatchOrchestrator: Cached scoring of a job list for one viewer
- Data contracts: JobRecord, UserProfile, MatchResult, MatchBreakdown, CacheEntry

Layout:

- normalize.py: Canonical tokens for job and profile fields
- models.py: Pydantic data contracts
- engine.py: score_job() and the weighting constants
- orchestrator.py: MatchOrchestrator, ScoredJob, sort_scored_jobs
"""

from core.matching.engine import score_job, safe_score_job, calculate_total
from core.matching.models import (
    JobRecord,
    UserProfile,
    MatchResult,
    MatchBreakdown,
    CacheEntry,
    PremiumSubscription,
)
from core.matching.orchestrator import MatchOrchestrator, ScoredJob, SortOrder, sort_scored_jobs

__all__ = [
    'score_job',
    'safe_score_job',
    'calculate_total',
    'JobRecord',
    'UserProfile',
    'MatchResult',
    'MatchBreakdown',
    'CacheEntry',
    'PremiumSubscription',
    'MatchOrchestrator',
    'ScoredJob',
    'SortOrder',
    'sort_scored_jobs',
]
