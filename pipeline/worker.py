#!/usr/bin/env python3
"""
RQ worker for the match pipeline queue.

Redis URL and queue name default to the `redis` and `queue` sections of
config.yaml, so the worker listens where JobMatchTrigger enqueues.

Usage:
    python -m pipeline.worker
    python -m pipeline.worker --burst
    python -m pipeline.worker --config config.yaml --verbose
"""

import argparse
import logging
import sys

from redis import Redis
from rq import Worker

from core.cache.match_cache import sanitize_url
from core.config_loader import load_config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def start_worker(burst: bool = False, queues: list = None, config_path: str = 'config.yaml'):
    """Start the RQ worker."""
    config = load_config(config_path)
    redis_url = config.redis.url

    if not queues:
        queues = [config.queue.name]

    logger.info("Starting RQ Worker")
    logger.info(f"Redis URL: {sanitize_url(redis_url)}")
    logger.info(f"Queues: {', '.join(queues)}")
    logger.info(f"Burst mode: {burst}")

    try:
        redis_conn = Redis.from_url(redis_url)
        redis_conn.ping()
        logger.info("Connected to Redis")

        worker = Worker(queues, connection=redis_conn)
        worker.work(burst=burst)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Match pipeline worker')
    parser.add_argument('--config', default='config.yaml', help='Path to config.yaml')
    parser.add_argument('--burst', action='store_true', help='Process all and exit')
    parser.add_argument('--queues', nargs='+', help='Queues to listen on (default: queue.name from config)')
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    start_worker(burst=args.burst, queues=args.queues, config_path=args.config)


if __name__ == '__main__':
    main()
