from datetime import date, datetime
from typing import Optional

from sqlalchemy import select

from database.models import DailyNotificationLog
from database.repositories.base import BaseRepository


class NotificationLogRepository(BaseRepository):
    def get_log(self, user_id: str, notification_date: date) -> Optional[DailyNotificationLog]:
        stmt = select(DailyNotificationLog).where(
            DailyNotificationLog.user_id == user_id,
            DailyNotificationLog.notification_date == notification_date,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert_log(
        self,
        user_id: str,
        notification_date: date,
        jobs_matched_count: int,
        notification_sent: bool,
        sent_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> DailyNotificationLog:
        entry = self.get_log(user_id, notification_date)
        if entry is None:
            entry = DailyNotificationLog(user_id=user_id, notification_date=notification_date)
            self.db.add(entry)

        entry.jobs_matched_count = jobs_matched_count
        entry.notification_sent = notification_sent
        entry.sent_at = sent_at
        entry.error_message = error_message
        self.db.flush()
        return entry
