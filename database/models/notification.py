import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Integer, Date, UniqueConstraint, Index

from .base import Base


class DailyNotificationLog(Base):
    """
    One row per user per day recording the outcome of the notification sweep.

    Written once per (user, date); a second sweep on the same day updates
    the existing row.
    """
    __tablename__ = 'daily_notification_log'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False)
    notification_date = Column(Date, nullable=False)

    jobs_matched_count = Column(Integer, nullable=False, default=0)
    notification_sent = Column(Boolean, nullable=False, default=False)
    sent_at = Column(TIMESTAMP(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'notification_date', name='uq_daily_notification_user_date'),
        Index('idx_daily_notification_user', 'user_id'),
    )
