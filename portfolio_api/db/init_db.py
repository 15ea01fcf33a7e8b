from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_api.db.base import Base
from portfolio_api.db.session import SessionLocal, engine
from portfolio_api.models import Instrument, Portfolio, Token, User  # noqa: F401  (register tables)
from portfolio_api.security.context import Role
from portfolio_api.security.passwords import hash_password
from portfolio_api.settings import get_settings

logger = logging.getLogger(__name__)


def init_db() -> None:
    """
    Create tables and, when APP_ADMIN_EMAIL / APP_ADMIN_PASSWORD are set,
    make sure that admin account exists.

    Admins can only be created by other admins through the API, so the first
    one has to come from here.
    """

    Base.metadata.create_all(bind=engine)

    settings = get_settings()
    if not (settings.admin_email and settings.admin_password):
        return

    with SessionLocal() as db:
        seed_admin(db, settings.admin_email, settings.admin_password)


def seed_admin(db: Session, email: str, password: str) -> User:
    email = email.strip().lower()
    existing = db.scalars(select(User).where(User.email == email)).first()
    if existing is not None:
        return existing

    admin = User(name="Admin", email=email, password_hash=hash_password(password), role=Role.ADMIN.value)
    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.info("Seeded admin user id=%s", admin.id)
    return admin
