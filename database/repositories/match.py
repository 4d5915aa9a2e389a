import logging
from datetime import date, datetime
from typing import List, Optional, Iterable

from sqlalchemy import select, update, delete

from database.models import ServerMatchResult
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class MatchResultRepository(BaseRepository):
    def get_match(self, user_id: str, job_id: str) -> Optional[ServerMatchResult]:
        stmt = select(ServerMatchResult).where(
            ServerMatchResult.user_id == user_id,
            ServerMatchResult.job_id == job_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_matches_for_user(self, user_id: str) -> List[ServerMatchResult]:
        stmt = (
            select(ServerMatchResult)
            .where(ServerMatchResult.user_id == user_id)
            .order_by(ServerMatchResult.match_score.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def upsert_match(
        self,
        user_id: str,
        job_id: str,
        match_score: int,
        notification_date: date,
        computed_at: datetime,
    ) -> ServerMatchResult:
        """
        Insert a match row, or refresh the existing (user_id, job_id) row.

        A refreshed row is reset to notification_sent=False so a re-trigger
        makes the pair eligible for the next sweep again. The caller retries
        the whole unit on IntegrityError if a concurrent writer wins the race.
        """
        match = self.get_match(user_id, job_id)
        if match is None:
            match = ServerMatchResult(
                user_id=user_id,
                job_id=job_id,
                match_score=match_score,
                notification_sent=False,
                notification_date=notification_date,
                computed_at=computed_at,
                is_auto_apply_eligible=False,
            )
            self.db.add(match)
        else:
            match.match_score = match_score
            match.notification_sent = False
            match.notification_sent_at = None
            match.notification_date = notification_date
            match.computed_at = computed_at

        self.db.flush()
        return match

    def mark_auto_apply(
        self,
        user_id: str,
        job_id: str,
        rank: int,
        plan_type: str,
        queued_at: datetime,
    ) -> int:
        stmt = (
            update(ServerMatchResult)
            .where(
                ServerMatchResult.user_id == user_id,
                ServerMatchResult.job_id == job_id,
            )
            .values(
                is_auto_apply_eligible=True,
                auto_apply_rank=rank,
                plan_type=plan_type,
                queued_for_auto_apply_at=queued_at,
            )
        )
        return self.db.execute(stmt).rowcount

    def delete_computed_before(self, cutoff: datetime) -> int:
        stmt = delete(ServerMatchResult).where(ServerMatchResult.computed_at < cutoff)
        deleted = self.db.execute(stmt).rowcount
        if deleted:
            logger.info(f"Deleted {deleted} match results computed before {cutoff.isoformat()}")
        return deleted

    def get_unnotified_matches(
        self,
        user_id: str,
        job_ids: Iterable[str],
        min_score: int,
    ) -> List[ServerMatchResult]:
        job_ids = list(job_ids)
        if not job_ids:
            return []
        stmt = (
            select(ServerMatchResult)
            .where(
                ServerMatchResult.user_id == user_id,
                ServerMatchResult.job_id.in_(job_ids),
                ServerMatchResult.notification_sent.is_(False),
                ServerMatchResult.match_score >= min_score,
            )
            .order_by(ServerMatchResult.match_score.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def mark_notified(self, match_ids: Iterable[str], sent_at: datetime) -> int:
        match_ids = list(match_ids)
        if not match_ids:
            return 0
        stmt = (
            update(ServerMatchResult)
            .where(ServerMatchResult.id.in_(match_ids))
            .values(notification_sent=True, notification_sent_at=sent_at)
        )
        return self.db.execute(stmt).rowcount
