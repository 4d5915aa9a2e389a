from sqlalchemy.orm import Session

from database.repositories import (
    JobPostRepository,
    ProfileRepository,
    SubscriptionRepository,
    MatchResultRepository,
    NotificationLogRepository,
)


class Repository:
    """Aggregate of the per-table repositories sharing one Session."""

    def __init__(self, db: Session):
        self.db = db
        self.jobs = JobPostRepository(db)
        self.profiles = ProfileRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.matches = MatchResultRepository(db)
        self.notification_logs = NotificationLogRepository(db)
