import argparse
import json
import logging
import sys
from datetime import date

from core.config_loader import load_config
from core.matching.engine import score_job
from database.database import create_db_engine, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_json_file(path: str) -> dict:
    logger.info(f"Loading {path}")
    with open(path, 'r') as f:
        return json.load(f)


def cmd_init_db(args) -> int:
    config = load_config(args.config)
    init_db(create_db_engine(config.database.url))
    return 0


def cmd_match_job(args) -> int:
    from core.app_context import AppContext
    from pipeline.match_pipeline import JobNotFoundError

    ctx = AppContext.build(load_config(args.config))
    try:
        if args.enqueue:
            # None means queued; otherwise the trigger ran the pipeline in-process
            result = ctx.build_trigger().on_job_posted(args.job_id)
            if result is None:
                return 0
        else:
            result = ctx.match_pipeline.process_job_posted(args.job_id)
    except JobNotFoundError as e:
        logger.error(str(e))
        return 1

    print(json.dumps({
        'job_id': result.job_id,
        'matched': result.matched,
        'saved': result.saved,
        'premium_marked': result.premium_marked,
        'cleaned_up': result.cleaned_up,
        'errors': result.errors,
        'job_has_email_application': result.job_has_email_application,
    }, indent=2))
    return 0 if result.errors == 0 else 2


def cmd_daily_sweep(args) -> int:
    from core.app_context import AppContext

    ctx = AppContext.build(load_config(args.config))
    today = date.fromisoformat(args.date) if args.date else None
    result = ctx.notification_sweep.run(today=today)

    print(json.dumps({
        'date': result.date.isoformat(),
        'processed': result.processed,
        'notifications_sent': result.notifications_sent,
        'errors': result.errors,
        'jobs_checked': result.jobs_checked,
    }, indent=2))
    return 0 if result.errors == 0 else 2


def cmd_score(args) -> int:
    try:
        job = load_json_file(args.job)
        profile = load_json_file(args.profile)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        return 1

    result = score_job(job, profile)
    print(json.dumps({
        'score': result.score,
        'breakdown': result.breakdown.model_dump() if result.breakdown else None,
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Job match scoring and notifications")
    parser.add_argument('--config', default='config.yaml', help='Path to config.yaml')
    parser.add_argument('--verbose', action='store_true')
    subparsers = parser.add_subparsers(dest='command', required=True)

    init_parser = subparsers.add_parser('init-db', help='Create database tables')
    init_parser.set_defaults(func=cmd_init_db)

    match_parser = subparsers.add_parser('match-job', help='Run the match pipeline for a posted job')
    match_parser.add_argument('job_id')
    match_parser.add_argument('--enqueue', action='store_true',
                              help='Queue the job on RQ instead of running it here')
    match_parser.set_defaults(func=cmd_match_job)

    sweep_parser = subparsers.add_parser('daily-sweep', help='Send the daily match notifications')
    sweep_parser.add_argument('--date', help='Day to sweep (YYYY-MM-DD), default today (UTC)')
    sweep_parser.set_defaults(func=cmd_daily_sweep)

    score_parser = subparsers.add_parser('score', help='Score a job JSON file against a profile JSON file')
    score_parser.add_argument('job')
    score_parser.add_argument('profile')
    score_parser.set_defaults(func=cmd_score)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
