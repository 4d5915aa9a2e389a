"""
Pytest configuration and fixtures.

Database fixtures create a fresh SQLite file in tmp_path and build the
schema with init_db(), so the same tables the pipeline uses in production
exist for every test.
"""

from datetime import date, datetime, timezone

import pytest

from database.database import create_session_factory, db_session_scope, init_db
from database.models import (
    JobPost,
    OnboardingData,
    Profile,
    UserPushToken,
    UserViewedJob,
    UserSubscription,
    ServerMatchResult,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def session_factory(tmp_path):
    factory = create_session_factory(f"sqlite:///{tmp_path / 'matches.db'}")
    engine = factory.kw['bind']
    init_db(engine)
    yield factory
    engine.dispose()


class Seeder:
    """Small helper for writing fixture rows."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def job(self, job_id: str, posted_date: date = None, **fields) -> str:
        with db_session_scope(self.session_factory) as session:
            session.add(JobPost(id=job_id, posted_date=posted_date, **fields))
        return job_id

    def user(self, user_id: str, **onboarding) -> str:
        with db_session_scope(self.session_factory) as session:
            session.add(OnboardingData(user_id=user_id, **onboarding))
        return user_id

    def subscription(self, user_id: str, plan_type: str, status: str = 'active', is_active: bool = True):
        with db_session_scope(self.session_factory) as session:
            session.add(UserSubscription(
                user_id=user_id,
                plan_type=plan_type,
                status=status,
                is_active=is_active,
                monthly_application_limit=100,
            ))

    def notifiable(self, user_id: str, push_token: str = None, enabled: bool = True):
        with db_session_scope(self.session_factory) as session:
            session.add(Profile(id=user_id, notifications_enabled=enabled))
            if push_token:
                session.add(UserPushToken(user_id=user_id, expo_push_token=push_token))

    def viewed(self, user_id: str, job_id: str):
        with db_session_scope(self.session_factory) as session:
            session.add(UserViewedJob(user_id=user_id, job_id=job_id))

    def match(
        self,
        user_id: str,
        job_id: str,
        score: int,
        computed_at: datetime = None,
        notification_sent: bool = False,
    ) -> str:
        computed_at = computed_at or datetime.now(timezone.utc)
        with db_session_scope(self.session_factory) as session:
            row = ServerMatchResult(
                user_id=user_id,
                job_id=job_id,
                match_score=score,
                notification_sent=notification_sent,
                notification_date=computed_at.date(),
                computed_at=computed_at,
            )
            session.add(row)
            session.flush()
            return row.id


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)
