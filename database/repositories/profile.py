import logging
from typing import List, Optional, Set

from sqlalchemy import select

from database.models import OnboardingData, Profile, UserPushToken, UserViewedJob
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository):
    def get_all_onboarding(self) -> List[OnboardingData]:
        stmt = select(OnboardingData).order_by(OnboardingData.user_id)
        return list(self.db.execute(stmt).scalars().all())

    def get_onboarding(self, user_id: str) -> Optional[OnboardingData]:
        stmt = select(OnboardingData).where(OnboardingData.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_notification_enabled_user_ids(self) -> List[str]:
        stmt = (
            select(Profile.id)
            .where(Profile.notifications_enabled.is_(True))
            .order_by(Profile.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_push_token(self, user_id: str) -> Optional[str]:
        stmt = select(UserPushToken.expo_push_token).where(UserPushToken.user_id == user_id)
        token = self.db.execute(stmt).scalar_one_or_none()
        return token or None

    def get_viewed_job_ids(self, user_id: str) -> Set[str]:
        stmt = select(UserViewedJob.job_id).where(UserViewedJob.user_id == user_id)
        return set(self.db.execute(stmt).scalars().all())
