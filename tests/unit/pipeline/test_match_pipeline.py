"""
Tests for the server match pipeline against an SQLite database.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import select

from core.config_loader import MatchingConfig
from core.matching.models import PremiumSubscription
from database.database import db_session_scope
from database.models import ServerMatchResult
from database.repositories.match import MatchResultRepository
from pipeline.match_pipeline import JobNotFoundError, ServerMatchPipeline

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)

JOB = {
    "role": "Backend Engineer",
    "skills_required": ["python", "sql", "docker", "aws", "go"],
    "sector": "Technology",
    "location": {"city": "Berlin", "country": "Germany", "remote": False},
    "experience_level": "Senior",
    "salary_range": {"max": 90000},
    "employment_type": "Full-time",
    "application": {"method": "email", "email": "jobs@acme.io"},
}

# role 50 + skills 12 + location 10
USER_72 = {
    "target_roles": ["backend engineer"],
    "cv_skills": ["Python", "SQL"],
    "preferred_locations": ["berlin"],
    "sector": "Finance",
    "experience_level": "Junior",
    "job_type": "Part-time",
}
# role 50 + experience 5
USER_55 = {"target_roles": ["Backend Engineer"], "experience_level": "senior"}
# sector 30 only
USER_30 = {"target_roles": ["Designer"], "sector": "technology"}


def _rows(session_factory):
    with db_session_scope(session_factory) as session:
        rows = session.execute(select(ServerMatchResult).order_by(ServerMatchResult.user_id)).scalars().all()
        return [
            {
                "user_id": r.user_id,
                "job_id": r.job_id,
                "match_score": r.match_score,
                "notification_sent": r.notification_sent,
                "notification_date": r.notification_date,
                "is_auto_apply_eligible": r.is_auto_apply_eligible,
                "auto_apply_rank": r.auto_apply_rank,
                "plan_type": r.plan_type,
                "queued_for_auto_apply_at": r.queued_for_auto_apply_at,
            }
            for r in rows
        ]


def _pipeline(session_factory, **kwargs):
    config = MatchingConfig(max_workers=kwargs.pop("max_workers", 1))
    return ServerMatchPipeline(session_factory, config, **kwargs)


@pytest.mark.db
class TestServerMatchPipeline:
    def test_scores_persists_and_ranks_premium(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.user("user-b", **USER_55)
        seed.user("user-c", **USER_30)
        seed.subscription("user-b", "Pro")

        result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.job_has_email_application is True
        assert result.users_considered == 3
        assert result.matched == 2
        assert result.saved == 2
        assert result.premium_marked == 1
        assert result.errors == 0

        rows = _rows(session_factory)
        assert [(r["user_id"], r["match_score"]) for r in rows] == [("user-a", 72), ("user-b", 55)]

        user_a, user_b = rows
        assert user_a["is_auto_apply_eligible"] is False
        assert user_a["auto_apply_rank"] is None
        assert user_a["notification_sent"] is False
        assert user_a["notification_date"] == NOW.date()

        assert user_b["is_auto_apply_eligible"] is True
        assert user_b["auto_apply_rank"] == 1
        assert user_b["plan_type"] == "Pro"
        assert user_b["queued_for_auto_apply_at"] is not None

    def test_two_max_users_are_both_flagged(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.user("user-b", **USER_55)
        seed.subscription("user-a", "Max")
        seed.subscription("user-b", "Max")

        result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.premium_marked == 2
        rows = _rows(session_factory)
        assert all(r["is_auto_apply_eligible"] for r in rows)
        assert all(r["plan_type"] == "Max" for r in rows)
        # ranking is per user; each user has a single match for this job
        assert [r["auto_apply_rank"] for r in rows] == [1, 1]

    def test_premium_ignored_without_email_application(self, session_factory, seed):
        job = dict(JOB, application={"method": "url", "url": "https://acme.io/apply"})
        seed.job("job-1", posted_date=NOW.date(), **job)
        seed.user("user-b", **USER_55)
        seed.subscription("user-b", "Elite")

        result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.job_has_email_application is False
        assert result.premium_marked == 0
        assert _rows(session_factory)[0]["is_auto_apply_eligible"] is False

    def test_inactive_subscription_is_not_premium(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-b", **USER_55)
        seed.subscription("user-b", "Pro", status="cancelled", is_active=False)

        result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.premium_marked == 0

    def test_unknown_plan_flags_nothing(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-b", **USER_55)

        lookup = Mock(return_value=PremiumSubscription(plan_type="Starter", is_active=True))
        result = _pipeline(session_factory, subscription_lookup=lookup).process_job_posted("job-1", now=NOW)

        lookup.assert_called_once_with("user-b")
        assert result.premium_marked == 0

    def test_subscription_lookup_failure_still_persists(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-b", **USER_55)

        lookup = Mock(side_effect=RuntimeError("billing unavailable"))
        result = _pipeline(session_factory, subscription_lookup=lookup).process_job_posted("job-1", now=NOW)

        assert result.saved == 1
        assert result.premium_marked == 0
        assert _rows(session_factory)[0]["is_auto_apply_eligible"] is False

    def test_null_sector_sentinel_is_absent(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), role="Nurse", sector="null")
        seed.user("user-n", target_roles=["nurse"], sector="null")

        _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        # role only; the sentinel must not count as a sector match
        assert _rows(session_factory)[0]["match_score"] == 50

    def test_profiles_without_roles_or_skills_are_skipped(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.user("user-empty", target_roles=[], cv_skills=None, sector="Technology")

        result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.users_considered == 1

    def test_retrigger_updates_existing_row(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.match("user-a", "job-1", 51, computed_at=NOW - timedelta(hours=5), notification_sent=True)

        _pipeline(session_factory).process_job_posted("job-1", now=NOW)
        _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        rows = _rows(session_factory)
        assert len(rows) == 1
        assert rows[0]["match_score"] == 72
        assert rows[0]["notification_sent"] is False

    def test_upsert_race_falls_back_to_update(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.match("user-a", "job-1", 60, computed_at=NOW)

        original_get = MatchResultRepository.get_match
        calls = {"count": 0}

        def stale_get(self, user_id, job_id):
            # first lookup misses the concurrent writer's row
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return original_get(self, user_id, job_id)

        with patch.object(MatchResultRepository, "get_match", stale_get):
            result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.saved == 1
        assert result.errors == 0
        rows = _rows(session_factory)
        assert len(rows) == 1
        assert rows[0]["match_score"] == 72

    def test_persist_failure_is_isolated(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.user("user-b", **USER_55)
        seed.subscription("user-b", "Pro")

        original_upsert = MatchResultRepository.upsert_match

        def flaky_upsert(self, user_id, *args, **kwargs):
            if user_id == "user-a":
                raise RuntimeError("disk full")
            return original_upsert(self, user_id, *args, **kwargs)

        with patch.object(MatchResultRepository, "upsert_match", flaky_upsert):
            result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.errors == 1
        assert result.saved == 1
        assert result.premium_marked == 1
        assert [r["user_id"] for r in _rows(session_factory)] == ["user-b"]

    def test_ranking_failure_does_not_block_other_users(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.user("user-a", **USER_72)
        seed.user("user-b", **USER_55)
        seed.subscription("user-a", "Pro")
        seed.subscription("user-b", "Pro")

        original_mark = MatchResultRepository.mark_auto_apply

        def flaky_mark(self, user_id, *args, **kwargs):
            if user_id == "user-a":
                raise RuntimeError("deadlock")
            return original_mark(self, user_id, *args, **kwargs)

        with patch.object(MatchResultRepository, "mark_auto_apply", flaky_mark):
            result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.premium_marked == 1
        assert result.errors == 1
        flags = {r["user_id"]: r["is_auto_apply_eligible"] for r in _rows(session_factory)}
        assert flags == {"user-a": False, "user-b": True}

    def test_retention_window(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        seed.match("user-old", "job-0", 80, computed_at=NOW - timedelta(hours=73))
        seed.match("user-recent", "job-0", 80, computed_at=NOW - timedelta(hours=71))
        seed.match("user-notified", "job-0", 80, computed_at=NOW - timedelta(hours=100), notification_sent=True)

        result = _pipeline(session_factory).process_job_posted("job-1", now=NOW)

        assert result.cleaned_up == 2
        assert [r["user_id"] for r in _rows(session_factory)] == ["user-recent"]

    def test_parallel_workers_collect_every_premium_user(self, session_factory, seed):
        seed.job("job-1", posted_date=NOW.date(), **JOB)
        for i in range(12):
            seed.user(f"user-{i:02d}", **USER_55)

        lookup = Mock(return_value=PremiumSubscription(plan_type="Elite", is_active=True))
        pipeline = _pipeline(session_factory, max_workers=8, subscription_lookup=lookup)

        with patch.object(ServerMatchPipeline, "_persist_match"), \
                patch.object(ServerMatchPipeline, "_mark_top_matches", return_value=1) as mock_mark:
            result = pipeline.process_job_posted("job-1", now=NOW)

        assert result.saved == 12
        assert result.premium_marked == 12
        marked = sorted(call.args[0] for call in mock_mark.call_args_list)
        assert marked == [f"user-{i:02d}" for i in range(12)]
        for call in mock_mark.call_args_list:
            assert call.args[1] == "Elite"
            assert call.args[2] == [("job-1", 55)]

    def test_missing_job_raises(self, session_factory):
        with pytest.raises(JobNotFoundError):
            _pipeline(session_factory).process_job_posted("does-not-exist", now=NOW)


@pytest.mark.db
class TestAutoApplyRanking:
    def _seed_matches(self, seed, count, base_score=50):
        matches = []
        for i in range(count):
            seed.match("user-p", f"job-{i}", base_score + i, computed_at=NOW)
            matches.append((f"job-{i}", base_score + i))
        return matches

    def _ranks(self, session_factory):
        return {
            r["job_id"]: (r["auto_apply_rank"], r["is_auto_apply_eligible"])
            for r in _rows(session_factory)
        }

    def test_pro_keeps_top_five_by_score(self, session_factory, seed):
        matches = self._seed_matches(seed, 7)

        marked = _pipeline(session_factory)._mark_top_matches("user-p", "Pro", matches, NOW)

        assert marked == 5
        ranks = self._ranks(session_factory)
        assert ranks == {
            "job-6": (1, True),
            "job-5": (2, True),
            "job-4": (3, True),
            "job-3": (4, True),
            "job-2": (5, True),
            "job-1": (None, False),
            "job-0": (None, False),
        }

    @pytest.mark.parametrize("plan_type,count", [("Max", 7), ("Elite", 12)])
    def test_fewer_matches_than_plan_limit_ranks_all(self, session_factory, seed, plan_type, count):
        matches = self._seed_matches(seed, count)

        marked = _pipeline(session_factory)._mark_top_matches("user-p", plan_type, matches, NOW)

        assert marked == count
        ranks = self._ranks(session_factory)
        for i in range(count):
            assert ranks[f"job-{i}"] == (count - i, True)
        plans = {r["plan_type"] for r in _rows(session_factory)}
        assert plans == {plan_type}
