"""
"On job posted" trigger.

Enqueues the server match pipeline on an RQ queue so posting a job never
waits for scoring. When the queue is disabled or Redis is unreachable the
pipeline runs synchronously instead.

Usage:
    trigger = JobMatchTrigger(pipeline, redis_url=config.redis.url)
    trigger.on_job_posted(job_id)
"""

import logging
from typing import Optional

from redis import Redis
from rq import Queue, Retry

from core.cache.match_cache import sanitize_url
from pipeline.match_pipeline import ServerMatchPipeline, MatchPipelineResult

logger = logging.getLogger(__name__)


def process_job_posted_task(job_id: str) -> dict:
    """
    Run the match pipeline for one job (called by the RQ worker).

    The worker process builds its own context from config.yaml; nothing but
    the job id travels through the queue.
    """
    from core.app_context import AppContext

    ctx = AppContext.build()
    result = ctx.match_pipeline.process_job_posted(job_id)
    return {
        'job_id': result.job_id,
        'matched': result.matched,
        'saved': result.saved,
        'premium_marked': result.premium_marked,
        'cleaned_up': result.cleaned_up,
        'errors': result.errors,
    }


class JobMatchTrigger:
    def __init__(
        self,
        pipeline: ServerMatchPipeline,
        redis_url: str = 'redis://localhost:6379/0',
        queue_name: str = 'matching',
        use_async_queue: bool = True,
        job_timeout: str = '10m',
    ):
        self.pipeline = pipeline
        self.job_timeout = job_timeout

        if not use_async_queue:
            logger.info("Async queue disabled via config. Using sync mode.")
            self.redis_conn = None
            self.queue = None
            self.async_mode = False
            return

        try:
            self.redis_conn = Redis.from_url(redis_url)
            self.redis_conn.ping()
            self.queue = Queue(queue_name, connection=self.redis_conn)
            self.async_mode = True
            logger.info(f"Match trigger connected to Redis at {sanitize_url(redis_url)}")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}. Falling back to sync mode.")
            self.redis_conn = None
            self.queue = None
            self.async_mode = False

    def on_job_posted(self, job_id: str) -> Optional[MatchPipelineResult]:
        """
        Schedule matching for a newly posted job.

        Returns the pipeline result when run synchronously, None when queued.
        """
        if self.async_mode:
            job = self.queue.enqueue(
                process_job_posted_task,
                str(job_id),
                job_timeout=self.job_timeout,
                result_ttl=86400,
                retry=Retry(max=3, interval=[30, 60, 120]),
            )
            logger.info(f"Queued matching for job {job_id} as {job.id}")
            return None

        return self.pipeline.process_job_posted(job_id)
