import yaml
import os
from typing import Dict, Optional
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str


class RedisConfig(BaseModel):
    url: str = "redis://localhost:6379/0"
    password: Optional[str] = None


class CacheConfig(BaseModel):
    """Configuration for the per-user match cache."""
    enabled: bool = True
    key_prefix: str = "match_cache:"


def _default_top_n() -> Dict[str, int]:
    return {"Pro": 5, "Max": 10, "Elite": 20}


class MatchingConfig(BaseModel):
    """
    Configuration for the server match pipeline.

    Scoring weights are not configurable: they live in the match engine so
    every caller scores identically.
    """
    min_match_score: int = 50  # Persist/notify threshold (inclusive)
    max_workers: int = 8  # Concurrent per-user scoring/persistence
    retention_hours: int = 72  # Persisted results older than this are deleted

    # Auto-apply matches flagged per trigger, by plan tier
    auto_apply_top_n: Dict[str, int] = Field(default_factory=_default_top_n)

    # Client orchestrator thread pool
    orchestrator_workers: int = 4


class NotificationConfig(BaseModel):
    """
    Configuration for the daily push notification sweep.
    """
    enabled: bool = True
    push_url: str = "https://exp.host/--/api/v2/push/send"
    title: str = "🎉 New Job Matches!"
    request_timeout_seconds: int = 10
    dry_run: bool = False  # Log messages instead of sending


class QueueConfig(BaseModel):
    """RQ settings for the job-posted trigger."""
    use_async_queue: bool = True
    name: str = "matching"
    job_timeout: str = "10m"


class AppConfig(BaseModel):
    database: DatabaseConfig
    redis: RedisConfig = Field(default_factory=RedisConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from root), try the repository root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data.setdefault('database', {})
        data['database']['url'] = env_db_url

    # Allow env var override for Redis URL
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        if not data.get('redis'):
            data['redis'] = {}
        data['redis']['url'] = env_redis_url

    # Allow env var override for push dry-run mode
    env_dry_run = os.environ.get("NOTIFICATION_DRY_RUN")
    if env_dry_run:
        if not data.get('notifications'):
            data['notifications'] = {}
        data['notifications']['dry_run'] = env_dry_run.lower() in ('true', '1', 'yes')

    return AppConfig(**data)
