import contextlib

from sqlalchemy.orm import sessionmaker

from database.repository import Repository


@contextlib.contextmanager
def match_uow(session_factory: sessionmaker):
    """Transaction scope for one pipeline step.

    Opens a Session from `session_factory` and yields the aggregate
    Repository over it. The transaction commits when the block exits
    cleanly and rolls back if it raises; the session is closed either way.

    Usage:
        with match_uow(session_factory) as repo:
            repo.matches.upsert_match(user_id, job_id, score, today, now)
    """
    session = session_factory()
    try:
        yield Repository(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
