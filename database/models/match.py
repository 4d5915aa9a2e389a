import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Integer, Date, UniqueConstraint, Index

from .base import Base


class ServerMatchResult(Base):
    """
    Match score persisted by the server pipeline for one (user, job) pair.

    Lifecycle:
    - Written (upserted) when a newly posted job scores >= threshold for a user
    - Flagged auto-apply eligible with a rank for premium users' top matches
    - Marked notification_sent by the daily sweep
    - Deleted by the retention sweep once computed_at is older than 72h
    """
    __tablename__ = 'server_match_results'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False)
    job_id = Column(Text, nullable=False)

    match_score = Column(Integer, nullable=False)

    notification_sent = Column(Boolean, nullable=False, default=False)
    notification_date = Column(Date, nullable=False)
    notification_sent_at = Column(TIMESTAMP(timezone=True), nullable=True)

    computed_at = Column(TIMESTAMP(timezone=True), nullable=False)

    is_auto_apply_eligible = Column(Boolean, nullable=False, default=False)
    auto_apply_rank = Column(Integer, nullable=True)
    plan_type = Column(Text, nullable=True)
    queued_for_auto_apply_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'job_id', name='uq_server_match_user_job'),
        Index('idx_server_match_user', 'user_id'),
        Index('idx_server_match_computed', 'computed_at'),
        Index('idx_server_match_notified', 'notification_sent'),
        Index('idx_server_match_date', 'notification_date'),
    )
