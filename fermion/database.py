import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import Config

logger = logging.getLogger(__name__)

engine = create_engine(
    Config.DATABASE_URL,
    connect_args={"check_same_thread": False} if Config.DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db() -> None:
    """Create all tables (safe for SQLite / local use)."""
    # models register themselves on Base when imported
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.debug("Database schema ensured for %s", engine.url.render_as_string(hide_password=True))


def get_db():
    """Dependency generator that yields a SQLAlchemy Session.

    Usage:
        as a FastAPI dependency: db: Session = Depends(get_db)

    Yields:
        sqlalchemy.orm.Session: closed once the request is done.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
