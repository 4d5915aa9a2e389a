from sqlalchemy import Column, Text, Boolean, Numeric, TIMESTAMP, UniqueConstraint, Index, func

from .base import Base, JSONType


class OnboardingData(Base):
    """
    Onboarding answers per user - the profile side of matching.
    """
    __tablename__ = 'onboarding_data'

    user_id = Column(Text, primary_key=True)

    target_roles = Column(JSONType)
    cv_skills = Column(JSONType)
    preferred_locations = Column(JSONType)

    experience_level = Column(Text)
    salary_min = Column(Numeric(14, 2, asdecimal=False), nullable=True)
    salary_max = Column(Numeric(14, 2, asdecimal=False), nullable=True)
    job_type = Column(Text)
    sector = Column(Text)  # may literally contain the string "null"

    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_profile(self) -> dict:
        """Plain mapping consumed by the match engine."""
        return {
            'user_id': self.user_id,
            'target_roles': self.target_roles,
            'cv_skills': self.cv_skills,
            'preferred_locations': self.preferred_locations,
            'experience_level': self.experience_level,
            'salary_min': self.salary_min,
            'salary_max': self.salary_max,
            'job_type': self.job_type,
            'sector': self.sector,
        }


class Profile(Base):
    """User account settings relevant to notifications."""
    __tablename__ = 'profiles'

    id = Column(Text, primary_key=True)
    notifications_enabled = Column(Boolean, nullable=False, default=False)


class UserPushToken(Base):
    """Registered push token for a user's device."""
    __tablename__ = 'user_push_tokens'

    user_id = Column(Text, primary_key=True)
    expo_push_token = Column(Text, nullable=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class UserViewedJob(Base):
    """Jobs a user has already opened."""
    __tablename__ = 'user_viewed_jobs'

    user_id = Column(Text, primary_key=True)
    job_id = Column(Text, primary_key=True)
    viewed_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'job_id', name='uq_user_viewed_job'),
        Index('idx_user_viewed_jobs_user', 'user_id'),
    )
