import uuid

from sqlalchemy import Column, Text, Boolean, Integer, Date, Index

from .base import Base


class UserSubscription(Base):
    """
    Premium subscription as maintained by billing.

    Read-only to matching: plan_type and is_active decide auto-apply
    eligibility and how many top matches are flagged.
    """
    __tablename__ = 'user_subscriptions'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False)

    plan_type = Column(Text, nullable=False)  # Pro | Max | Elite
    status = Column(Text, nullable=False, default='active')
    is_active = Column(Boolean, nullable=False, default=True)

    monthly_application_limit = Column(Integer, nullable=True)
    applications_used_this_month = Column(Integer, nullable=False, default=0)
    monthly_reset_date = Column(Date, nullable=True)

    __table_args__ = (
        Index('idx_user_subscriptions_user_status', 'user_id', 'status'),
    )
