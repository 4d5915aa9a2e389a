from typing import Optional

from sqlalchemy import select

from database.models import UserSubscription
from database.repositories.base import BaseRepository


class SubscriptionRepository(BaseRepository):
    def get_active_subscription(self, user_id: str) -> Optional[UserSubscription]:
        stmt = (
            select(UserSubscription)
            .where(
                UserSubscription.user_id == user_id,
                UserSubscription.status == 'active',
                UserSubscription.is_active.is_(True),
            )
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()
