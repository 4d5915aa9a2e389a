import contextlib
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from tenacity import retry, stop_after_attempt, wait_fixed

from database.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, **engine_kwargs) -> Engine:
    if database_url.startswith('sqlite'):
        # pipeline worker threads each open their own session
        engine_kwargs.setdefault('connect_args', {'check_same_thread': False})
    else:
        engine_kwargs.setdefault('pool_pre_ping', True)

    return create_engine(database_url, **engine_kwargs)


def create_session_factory(database_url: str, **engine_kwargs) -> sessionmaker:
    """Build an engine for `database_url` and return a bound session factory."""
    engine = create_db_engine(database_url, **engine_kwargs)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextlib.contextmanager
def db_session_scope(session_factory: sessionmaker):
    """Provide a transactional scope around a series of operations."""
    session: Session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2), reraise=True)
def init_db(engine: Engine) -> None:
    logger.info("Initializing database...")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created or verified.")
    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise
