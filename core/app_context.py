from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from core.cache.match_cache import MatchCacheService
from core.config_loader import AppConfig, load_config
from core.matching.orchestrator import MatchOrchestrator
from database.database import create_session_factory
from notification.channels import NotificationChannel, NotificationChannelFactory
from notification.message_builder import NotificationMessageBuilder
from pipeline.match_pipeline import ServerMatchPipeline
from pipeline.notification_sweep import DailyNotificationSweep
from pipeline.triggers import JobMatchTrigger


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Only the session factory is shared; each pipeline step opens its own
    unit of work via match_uow(). Nothing here connects to Redis or the
    database until it is first used, except build_trigger() which pings
    Redis to choose between queued and synchronous mode.
    """
    config: AppConfig
    session_factory: sessionmaker
    match_cache: MatchCacheService
    orchestrator: MatchOrchestrator
    match_pipeline: ServerMatchPipeline
    notification_sweep: DailyNotificationSweep

    @classmethod
    def build(cls, config: Optional[AppConfig] = None) -> "AppContext":
        """Build an AppContext from config (config.yaml when omitted)."""
        config = config or load_config()

        session_factory = create_session_factory(config.database.url)

        match_cache = MatchCacheService.from_url(
            config.redis.url,
            password=config.redis.password,
            key_prefix=config.cache.key_prefix,
        )
        orchestrator = MatchOrchestrator(match_cache, max_workers=config.matching.orchestrator_workers)

        match_pipeline = ServerMatchPipeline(session_factory, config.matching)

        notification_sweep = DailyNotificationSweep(
            session_factory,
            cls._build_channel(config),
            config=config.notifications,
            matching_config=config.matching,
            message_builder=NotificationMessageBuilder(title=config.notifications.title),
        )

        return cls(
            config=config,
            session_factory=session_factory,
            match_cache=match_cache,
            orchestrator=orchestrator,
            match_pipeline=match_pipeline,
            notification_sweep=notification_sweep,
        )

    @staticmethod
    def _build_channel(config: AppConfig) -> NotificationChannel:
        notification_config = config.notifications
        return NotificationChannelFactory.get_channel(
            'expo',
            push_url=notification_config.push_url,
            timeout=notification_config.request_timeout_seconds,
            dry_run=notification_config.dry_run,
        )

    def build_trigger(self) -> JobMatchTrigger:
        queue_config = self.config.queue
        return JobMatchTrigger(
            self.match_pipeline,
            redis_url=self.config.redis.url,
            queue_name=queue_config.name,
            use_async_queue=queue_config.use_async_queue,
            job_timeout=queue_config.job_timeout,
        )
