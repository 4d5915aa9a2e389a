#!/usr/bin/env python3
"""
Matching Models - Data contracts for the match engine, cache and orchestrator.

JobRecord and UserProfile describe the inputs. Their loosely-typed JSON
fields (location, salary_range, application) are modelled as optional
structured types; the normalizer still accepts plain mappings so rows read
straight from storage can be scored without validation.
"""

from datetime import date, datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Location(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    remote: bool = False


class SalaryRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    period: Optional[str] = None
    currency: Optional[str] = None


class Application(BaseModel):
    method: Optional[str] = None
    email: Optional[str] = None
    url: Optional[str] = None
    phone: Optional[str] = None


class JobRecord(BaseModel):
    """A posted job, read-only input to matching."""
    id: Optional[str] = None
    role: Optional[str] = None
    related_roles: Union[List[str], str, None] = None
    ai_enhanced_roles: Union[List[str], str, None] = None
    skills_required: Union[List[str], str, None] = None
    ai_enhanced_skills: Union[List[str], str, None] = None
    location: Union[Location, str, None] = None
    experience_level: Optional[str] = None
    salary_range: Optional[SalaryRange] = None
    employment_type: Optional[str] = None
    sector: Optional[str] = None
    application: Optional[Application] = None
    posted_date: Optional[date] = None


class UserProfile(BaseModel):
    """Onboarding answers for one user, read-only input to matching."""
    user_id: Optional[str] = None
    target_roles: Union[List[str], str, None] = None
    cv_skills: Union[List[str], str, None] = None
    preferred_locations: Union[List[str], str, None] = None
    experience_level: Optional[str] = None
    salary_min: Union[float, str, None] = None
    salary_max: Union[float, str, None] = None
    job_type: Optional[str] = None
    sector: Optional[str] = None


class MatchBreakdown(BaseModel):
    """Per-factor contributions behind a match score.

    Every field defaults to zero so breakdowns persisted by older releases
    still load.
    """
    roles: int = 0
    roles_reason: str = 'no role match'
    skills: int = 0
    skills_reason: str = 'no skills match'
    sector: int = 0
    sector_reason: str = 'no sector match'
    location: int = 0
    experience: int = 0
    salary: int = 0
    type: int = 0
    rs_capped: int = 0
    total: int = 0


class MatchResult(BaseModel):
    score: int = 0
    breakdown: Optional[MatchBreakdown] = None
    computed_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def empty(cls) -> "MatchResult":
        """Zero score with no breakdown, used when scoring is skipped or fails."""
        return cls(score=0, breakdown=None)


class CacheEntry(BaseModel):
    """One cached match result for a (user, job) pair."""
    score: int = 0
    breakdown: Optional[MatchBreakdown] = None
    cached_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_result(cls, result: MatchResult) -> "CacheEntry":
        return cls(score=result.score, breakdown=result.breakdown, cached_at=result.computed_at)


class PremiumSubscription(BaseModel):
    """Billing read model. Only plan type and activity drive ranking."""
    plan_type: str
    monthly_application_limit: Optional[int] = None
    applications_used_this_month: int = 0
    monthly_reset_date: Optional[date] = None
    is_active: bool = False

