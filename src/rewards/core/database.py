"""Database engine, session factory and declarative base."""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings


def build_engine(database_url: str, **kwargs):
    """Create an engine, allowing SQLite connections to cross threads."""

    if make_url(database_url).get_backend_name() == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(database_url, future=True, **kwargs)


settings = get_settings()

engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create every mapped table that does not exist yet."""

    from .. import models  # noqa: F401  registers mappers on Base.metadata

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for request lifetime."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
