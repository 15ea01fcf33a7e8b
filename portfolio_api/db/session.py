from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from portfolio_api.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """
    Main DB dependency: one Session per request.

    Authorization is not attached to the session; services receive the
    request's Ability explicitly and scope their own queries with
    `portfolio_api.db.filters.accessible_by`.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
