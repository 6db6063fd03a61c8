"""
Database engine, session factory and declarative base
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from quizboard.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Mirrors a 5s busy timeout so concurrent writers wait on the file lock
SQLITE_BUSY_TIMEOUT_SECONDS = 5


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
        }
    return create_engine(
        database_url,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, future=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)


def init_db(bind: Engine = None) -> None:
    """Create all tables that do not exist yet"""
    # Register models on Base.metadata before create_all
    import quizboard.models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database schema ready ({bind.url.get_backend_name()})")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
