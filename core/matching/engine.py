#!/usr/bin/env python3
"""
Match Engine - deterministic, weighted, capped job/profile scoring.

score_job() is the one scoring implementation in the codebase. The
interactive orchestrator and the server match pipeline both import it, so
the two call sites cannot drift apart.

Factors (summed, then clamped to [0, 100]):
- Roles (50/25/15): primary role, related role, AI-enhanced role. Highest tier only.
- Skills (max 30): 6 per required skill, then 3 per AI skill up to the cap.
- Sector (30): exact normalized match only.
- Location (10), Experience (5), Salary (5), Employment type (5).

Roles + Skills + Sector are capped at 80 before the remaining factors are added.
"""

import logging
from typing import Any, Optional

from core.matching.models import MatchBreakdown, MatchResult
from core.matching.normalize import (
    NormalizedJob,
    NormalizedProfile,
    normalize_job,
    normalize_profile,
)

logger = logging.getLogger(__name__)

ROLE_EXACT_POINTS = 50
ROLE_RELATED_POINTS = 25
ROLE_AI_POINTS = 15

REQUIRED_SKILL_POINTS = 6
AI_SKILL_POINTS = 3
SKILLS_CAP = 30

SECTOR_POINTS = 30
LOCATION_POINTS = 10
EXPERIENCE_POINTS = 5
SALARY_POINTS = 5
TYPE_POINTS = 5

ROLES_SKILLS_SECTOR_CAP = 80
MAX_SCORE = 100


def _score_roles(job: NormalizedJob, profile: NormalizedProfile):
    if job.primary_roles & profile.target_roles:
        return ROLE_EXACT_POINTS, 'role exact'
    if job.related_roles & profile.target_roles:
        return ROLE_RELATED_POINTS, 'role related'
    if job.ai_roles & profile.target_roles:
        return ROLE_AI_POINTS, 'role ai'
    return 0, 'no role match'


def _score_skills(job: NormalizedJob, profile: NormalizedProfile):
    required_matches = len(job.required_skills & profile.skills)
    subtotal = required_matches * REQUIRED_SKILL_POINTS

    ai_matches = 0
    if subtotal < SKILLS_CAP:
        ai_matches = len(job.ai_skills & profile.skills)
        additional = min(ai_matches, (SKILLS_CAP - subtotal) // AI_SKILL_POINTS)
        subtotal += additional * AI_SKILL_POINTS

    parts = []
    if required_matches:
        parts.append(f"{required_matches} required")
    if ai_matches:
        parts.append(f"{ai_matches} ai")
    reason = f"{' + '.join(parts)} skills matched" if parts else 'no skills match'

    return min(SKILLS_CAP, subtotal), reason


def _score_sector(job: NormalizedJob, profile: NormalizedProfile):
    if job.sector and profile.sector and job.sector == profile.sector:
        return SECTOR_POINTS, 'sector exact match'
    return 0, 'no sector match'


def _score_location(job: NormalizedJob, profile: NormalizedProfile) -> int:
    return LOCATION_POINTS if job.locations & profile.preferred_locations else 0


def _score_experience(job: NormalizedJob, profile: NormalizedProfile) -> int:
    if job.experience_level and job.experience_level == profile.experience_level:
        return EXPERIENCE_POINTS
    return 0


def _score_salary(job: NormalizedJob, profile: NormalizedProfile) -> int:
    # One-sided on purpose: can the job's ceiling meet the user's floor.
    if job.salary_max is None or profile.salary_min is None:
        return 0
    return SALARY_POINTS if job.salary_max >= profile.salary_min else 0


def _score_type(job: NormalizedJob, profile: NormalizedProfile) -> int:
    if job.employment_type == 'any':
        return TYPE_POINTS
    if job.employment_type and job.employment_type == profile.job_type:
        return TYPE_POINTS
    return 0


def score_normalized(job: NormalizedJob, profile: NormalizedProfile) -> MatchResult:
    """Score already-normalized token views."""
    roles, roles_reason = _score_roles(job, profile)
    skills, skills_reason = _score_skills(job, profile)
    sector, sector_reason = _score_sector(job, profile)
    location = _score_location(job, profile)
    experience = _score_experience(job, profile)
    salary = _score_salary(job, profile)
    type_score = _score_type(job, profile)

    rs_capped = min(ROLES_SKILLS_SECTOR_CAP, roles + skills + sector)
    total = rs_capped + location + experience + salary + type_score

    breakdown = MatchBreakdown(
        roles=roles,
        roles_reason=roles_reason,
        skills=skills,
        skills_reason=skills_reason,
        sector=sector,
        sector_reason=sector_reason,
        location=location,
        experience=experience,
        salary=salary,
        type=type_score,
        rs_capped=rs_capped,
        total=total,
    )
    return MatchResult(score=max(0, min(MAX_SCORE, total)), breakdown=breakdown)


def score_job(job: Any, user_profile: Any) -> MatchResult:
    """Score a job against a user profile.

    Accepts JobRecord / UserProfile models or plain mappings. Malformed or
    missing fields lower the score, they never raise.

    Args:
        job: Job record (model or mapping)
        user_profile: User profile (model or mapping)

    Returns:
        MatchResult with an integer score in [0, 100] and the full breakdown
    """
    return score_normalized(normalize_job(job), normalize_profile(user_profile))


def safe_score_job(job: Any, user_profile: Any, context: str = "") -> MatchResult:
    """score_job() guarded against totally unexpected shapes.

    Falls back to a zero score with no breakdown and logs the failure.
    """
    try:
        return score_job(job, user_profile)
    except Exception as e:
        logger.error(f"Scoring failed{' for ' + context if context else ''}: {e}", exc_info=True)
        return MatchResult.empty()


def calculate_total(breakdown: Optional[Any]) -> int:
    """Re-sum the display total from breakdown fields, not the stored score.

    Mirrors the capping rule but applies no final clamp.
    """
    if breakdown is None:
        return 0
    if isinstance(breakdown, dict):
        breakdown = MatchBreakdown.model_validate(breakdown)

    rs_capped = min(ROLES_SKILLS_SECTOR_CAP, breakdown.roles + breakdown.skills + breakdown.sector)
    return rs_capped + breakdown.location + breakdown.experience + breakdown.salary + breakdown.type
