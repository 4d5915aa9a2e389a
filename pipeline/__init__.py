"""Match pipeline and notification sweep."""

from .match_pipeline import ServerMatchPipeline, MatchPipelineResult, JobNotFoundError
from .notification_sweep import DailyNotificationSweep, NotificationSweepResult

__all__ = [
    'ServerMatchPipeline',
    'MatchPipelineResult',
    'JobNotFoundError',
    'DailyNotificationSweep',
    'NotificationSweepResult',
]
