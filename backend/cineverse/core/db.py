from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import Session

from cineverse.core.config import settings

engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_recycle=settings.DB_CONN_MAX_LIFETIME_SECONDS,
    pool_pre_ping=True,
)


def new_session(bind: Engine | None = None) -> Session:
    """
    Open a session whose loaded objects stay readable after commit and close.
    Movies are handed across tiers (cache, resolver, API) after their session ends.
    """
    return Session(bind or engine, expire_on_commit=False)

