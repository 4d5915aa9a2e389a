from .base import Base, JSONType
from .job import JobPost
from .profile import OnboardingData, Profile, UserPushToken, UserViewedJob
from .subscription import UserSubscription
from .match import ServerMatchResult
from .notification import DailyNotificationLog

__all__ = [
    'Base',
    'JSONType',
    'JobPost',
    'OnboardingData',
    'Profile',
    'UserPushToken',
    'UserViewedJob',
    'UserSubscription',
    'ServerMatchResult',
    'DailyNotificationLog',
]
