import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from models import Base, Setting
from config import DATABASE_URL, VOTING_OPEN_KEY
from errors import StorageFault

logger = logging.getLogger(__name__)


def make_engine(url=DATABASE_URL, **kwargs):
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine)


def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    # ensure the voting_open row exists; a fresh install starts closed
    session = sessionmaker(bind=bind)()
    try:
        if session.get(Setting, VOTING_OPEN_KEY) is None:
            session.add(Setting(key=VOTING_OPEN_KEY, value="false"))
            session.commit()
    finally:
        session.close()


@contextmanager
def session_scope(session_factory, action="accessing the database"):
    """Yield a session; any SQLAlchemy error rolls back and surfaces as StorageFault."""
    session = session_factory()
    try:
        yield session
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception(f"Storage failure while {action}")
        raise StorageFault() from exc
    finally:
        session.close()
