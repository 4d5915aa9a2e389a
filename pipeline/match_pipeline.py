"""Server match pipeline.

Runs once per newly posted job: scores the job against every onboarded
user, persists qualifying matches, flags premium users' top matches as
auto-apply eligible and finally applies the retention window.
"""

import logging
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, date
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from core.config_loader import MatchingConfig
from core.matching.engine import safe_score_job
from core.matching.models import PremiumSubscription
from core.matching.normalize import has_email_application, normalize_array_strings
from database.uow import match_uow

logger = logging.getLogger(__name__)

SubscriptionLookup = Callable[[str], Optional[PremiumSubscription]]


class JobNotFoundError(LookupError):
    """Raised when the triggering job does not exist."""


@dataclass
class MatchPipelineResult:
    """Result of running the match pipeline for one job."""
    job_id: str
    matched: int = 0
    saved: int = 0
    premium_marked: int = 0
    cleaned_up: int = 0
    errors: int = 0
    job_has_email_application: bool = False
    users_considered: int = 0
    execution_time: float = 0.0


@dataclass
class _UserOutcome:
    user_id: str
    score: int = 0
    saved: bool = False
    subscription: Optional[PremiumSubscription] = None
    error: Optional[str] = None


def _has_matchable_fields(profile: Dict[str, Any]) -> bool:
    return bool(
        normalize_array_strings(profile.get('target_roles'))
        or normalize_array_strings(profile.get('cv_skills'))
    )


class ServerMatchPipeline:
    """
    Scores a posted job for every candidate user.

    Per-user work (score, persist, subscription lookup) runs on a bounded
    thread pool; each worker owns its own unit of work and returns an
    outcome, so no state is shared between workers.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        config: Optional[MatchingConfig] = None,
        subscription_lookup: Optional[SubscriptionLookup] = None,
    ):
        self.session_factory = session_factory
        self.config = config or MatchingConfig()
        self.subscription_lookup = subscription_lookup or self._lookup_subscription

    def _lookup_subscription(self, user_id: str) -> Optional[PremiumSubscription]:
        with match_uow(self.session_factory) as repo:
            row = repo.subscriptions.get_active_subscription(user_id)
            if row is None:
                return None
            return PremiumSubscription(
                plan_type=row.plan_type,
                monthly_application_limit=row.monthly_application_limit,
                applications_used_this_month=row.applications_used_this_month or 0,
                monthly_reset_date=row.monthly_reset_date,
                is_active=bool(row.is_active),
            )

    def _load_inputs(self, job_id: str) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        with match_uow(self.session_factory) as repo:
            job = repo.jobs.get_by_id(job_id)
            if job is None:
                raise JobNotFoundError(f"Job not found: {job_id}")
            job_record = job.to_record()
            profiles = [row.to_profile() for row in repo.profiles.get_all_onboarding()]

        candidates = [p for p in profiles if _has_matchable_fields(p)]
        skipped = len(profiles) - len(candidates)
        if skipped:
            logger.info(f"Skipping {skipped} profiles with no target roles or skills")
        return job_record, candidates

    def _persist_match(self, user_id: str, job_id: str, score: int, today: date, now: datetime) -> None:
        try:
            with match_uow(self.session_factory) as repo:
                repo.matches.upsert_match(user_id, job_id, score, today, now)
        except IntegrityError:
            # A concurrent trigger inserted the pair first; the retry sees its row and updates it
            logger.info(f"Upsert race for user={user_id} job={job_id}, retrying as update")
            with match_uow(self.session_factory) as repo:
                repo.matches.upsert_match(user_id, job_id, score, today, now)

    def _process_user(
        self,
        job_record: Dict[str, Any],
        profile: Dict[str, Any],
        job_has_email: bool,
        today: date,
        now: datetime,
    ) -> _UserOutcome:
        user_id = profile['user_id']
        job_id = job_record['id']
        outcome = _UserOutcome(user_id=user_id)

        result = safe_score_job(job_record, profile, context=f"user={user_id} job={job_id}")
        outcome.score = result.score
        if result.score < self.config.min_match_score:
            return outcome

        logger.info(
            f"User {user_id} scored {result.score} for job {job_id}: "
            f"{result.breakdown.model_dump() if result.breakdown else {}}"
        )

        try:
            self._persist_match(user_id, job_id, result.score, today, now)
            outcome.saved = True
        except Exception as e:
            logger.error(f"Failed to persist match user={user_id} job={job_id}: {e}")
            outcome.error = str(e)
            return outcome

        if job_has_email:
            try:
                subscription = self.subscription_lookup(user_id)
            except Exception as e:
                logger.warning(f"Subscription lookup failed for user={user_id}, treating as not premium: {e}")
                subscription = None
            if subscription is not None and subscription.is_active:
                outcome.subscription = subscription

        return outcome

    def _mark_top_matches(
        self,
        user_id: str,
        plan_type: str,
        matches: List[Tuple[str, int]],
        now: datetime,
    ) -> int:
        top_n = self.config.auto_apply_top_n.get(plan_type, 0)
        ranked = sorted(matches, key=lambda m: m[1], reverse=True)[:top_n]
        if not ranked:
            return 0

        marked = 0
        with match_uow(self.session_factory) as repo:
            for rank, (job_id, score) in enumerate(ranked, start=1):
                marked += repo.matches.mark_auto_apply(user_id, job_id, rank, plan_type, now)
                logger.info(f"Auto-apply rank {rank} for user={user_id} job={job_id} score={score} ({plan_type})")
        return marked

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Delete persisted matches computed more than `retention_hours` ago."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=self.config.retention_hours)
        with match_uow(self.session_factory) as repo:
            return repo.matches.delete_computed_before(cutoff)

    def process_job_posted(self, job_id: str, now: Optional[datetime] = None) -> MatchPipelineResult:
        """
        Score one newly posted job against every candidate user.

        Raises:
            JobNotFoundError: the job id does not exist.
        """
        pipeline_start = time.time()
        now = now or datetime.now(timezone.utc)
        today = now.date()
        job_id = str(job_id)

        logger.info("=" * 60)
        logger.info(f"MATCH PIPELINE: job {job_id}")
        logger.info("=" * 60)

        job_record, profiles = self._load_inputs(job_id)
        job_has_email = has_email_application(job_record.get('application'))
        result = MatchPipelineResult(
            job_id=job_id,
            job_has_email_application=job_has_email,
            users_considered=len(profiles),
        )
        logger.info(f"Scoring {len(profiles)} profiles (email application: {job_has_email})")

        premium_matches: Dict[str, List[Tuple[str, int]]] = defaultdict(list)
        premium_plans: Dict[str, str] = {}

        workers = max(1, self.config.max_workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._process_user, job_record, profile, job_has_email, today, now)
                for profile in profiles
            ]
            for profile, future in zip(profiles, futures):
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.error(f"Unexpected failure for user={profile.get('user_id')} job={job_id}: {e}")
                    result.errors += 1
                    continue

                if outcome.score >= self.config.min_match_score:
                    result.matched += 1
                if outcome.saved:
                    result.saved += 1
                if outcome.error:
                    result.errors += 1
                if outcome.subscription is not None:
                    premium_matches[outcome.user_id].append((job_id, outcome.score))
                    premium_plans[outcome.user_id] = outcome.subscription.plan_type

        for user_id, matches in premium_matches.items():
            try:
                result.premium_marked += self._mark_top_matches(user_id, premium_plans[user_id], matches, now)
            except Exception as e:
                logger.error(f"Auto-apply ranking failed for user={user_id}: {e}")
                result.errors += 1

        try:
            result.cleaned_up = self.cleanup_expired(now)
        except Exception as e:
            logger.error(f"Retention cleanup failed: {e}")
            result.errors += 1

        result.execution_time = time.time() - pipeline_start
        logger.info(
            f"MATCH PIPELINE complete for job {job_id}: matched={result.matched} saved={result.saved} "
            f"premium_marked={result.premium_marked} cleaned_up={result.cleaned_up} errors={result.errors} "
            f"({result.execution_time:.2f}s)"
        )
        return result
