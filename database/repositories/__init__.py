from database.repositories.base import BaseRepository
from database.repositories.job_post import JobPostRepository
from database.repositories.profile import ProfileRepository
from database.repositories.subscription import SubscriptionRepository
from database.repositories.match import MatchResultRepository
from database.repositories.notification import NotificationLogRepository

__all__ = [
    'BaseRepository',
    'JobPostRepository',
    'ProfileRepository',
    'SubscriptionRepository',
    'MatchResultRepository',
    'NotificationLogRepository',
]
