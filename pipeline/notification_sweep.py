"""Daily notification sweep.

Reads matches persisted by the server match pipeline for jobs posted today
and sends each user a single push digest. Nothing is rescored here.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from core.config_loader import MatchingConfig, NotificationConfig
from database.uow import match_uow
from notification.channels import NotificationChannel
from notification.message_builder import NotificationMessageBuilder

logger = logging.getLogger(__name__)

DELIVERY_FAILED = "Push delivery failed"


@dataclass
class NotificationSweepResult:
    """Result of one daily sweep."""
    date: date
    processed: int = 0
    notifications_sent: int = 0
    errors: int = 0
    jobs_checked: int = 0


class DailyNotificationSweep:
    def __init__(
        self,
        session_factory: sessionmaker,
        channel: NotificationChannel,
        config: Optional[NotificationConfig] = None,
        matching_config: Optional[MatchingConfig] = None,
        message_builder: Optional[NotificationMessageBuilder] = None,
    ):
        self.session_factory = session_factory
        self.channel = channel
        self.config = config or NotificationConfig()
        self.min_match_score = (matching_config or MatchingConfig()).min_match_score
        self.message_builder = message_builder or NotificationMessageBuilder(title=self.config.title)

    def _record_failure(self, user_id: str, today: date, error: str) -> None:
        try:
            with match_uow(self.session_factory) as repo:
                repo.notification_logs.upsert_log(
                    user_id, today, jobs_matched_count=0, notification_sent=False, error_message=error,
                )
        except Exception as e:
            logger.error(f"Could not write notification log for user={user_id}: {e}")

    def _notify_user(self, user_id: str, job_ids: List[str], today: date, now: datetime) -> Optional[bool]:
        """
        Send one user's digest.

        Returns None when there was nothing to send, otherwise the delivery
        outcome. Included rows are marked notified either way.
        """
        with match_uow(self.session_factory) as repo:
            push_token = repo.profiles.get_push_token(user_id)
            if not push_token:
                logger.debug(f"User {user_id} has no push token, skipping")
                return None

            viewed = repo.profiles.get_viewed_job_ids(user_id)
            matches = repo.matches.get_unnotified_matches(user_id, job_ids, self.min_match_score)
            match_ids = [m.id for m in matches if m.job_id not in viewed]

        if not match_ids:
            logger.debug(f"No new matches for user {user_id}")
            return None

        message = self.message_builder.build_message(push_token, len(match_ids))
        sent = self.channel.send_message(message)
        if not sent:
            logger.warning(f"Push delivery failed for user {user_id} ({len(match_ids)} matches)")

        with match_uow(self.session_factory) as repo:
            repo.matches.mark_notified(match_ids, now)
            repo.notification_logs.upsert_log(
                user_id,
                today,
                jobs_matched_count=len(match_ids),
                notification_sent=sent,
                sent_at=now if sent else None,
                error_message=None if sent else DELIVERY_FAILED,
            )
        return sent

    def run(self, today: Optional[date] = None, now: Optional[datetime] = None) -> NotificationSweepResult:
        now = now or datetime.now(timezone.utc)
        today = today or now.date()
        result = NotificationSweepResult(date=today)

        logger.info("=" * 60)
        logger.info(f"DAILY NOTIFICATION SWEEP: {today.isoformat()}")
        logger.info("=" * 60)

        if not self.config.enabled:
            logger.info("Notifications disabled in config, skipping sweep")
            return result

        with match_uow(self.session_factory) as repo:
            job_ids = repo.jobs.get_ids_posted_on(today)
            user_ids = repo.profiles.get_notification_enabled_user_ids()

        result.jobs_checked = len(job_ids)
        if not job_ids:
            logger.info("No jobs posted today, nothing to notify")
            return result

        logger.info(f"Checking {len(user_ids)} users against {len(job_ids)} jobs posted today")

        for user_id in user_ids:
            result.processed += 1
            try:
                sent = self._notify_user(user_id, job_ids, today, now)
            except Exception as e:
                logger.error(f"Notification sweep failed for user {user_id}: {e}")
                result.errors += 1
                self._record_failure(user_id, today, str(e))
                continue

            if sent:
                result.notifications_sent += 1

        logger.info(
            f"DAILY NOTIFICATION SWEEP complete: processed={result.processed} "
            f"sent={result.notifications_sent} errors={result.errors}"
        )
        return result
