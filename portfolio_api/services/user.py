from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_api.db.filters import accessible_by
from portfolio_api.db.pagination import QueryOptions, QueryResult, paginate
from portfolio_api.models.user import User
from portfolio_api.security.ability import Ability, Action, Resource
from portfolio_api.security.passwords import hash_password
from portfolio_api.services.base import apply_filters, get_or_404, merged_state
from portfolio_api.services.errors import BadRequestError

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def is_email_taken(db: Session, email: str, exclude_user_id: int | None = None) -> bool:
    stmt = select(User.id).where(User.email == _normalize_email(email))
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return db.execute(stmt.limit(1)).first() is not None


def _to_columns(data: Mapping[str, Any]) -> dict[str, Any]:
    """Request fields -> column values (email normalized, password hashed)."""
    columns = dict(data)
    if "email" in columns:
        columns["email"] = _normalize_email(columns["email"])
    if "password" in columns:
        columns["password_hash"] = hash_password(columns.pop("password"))
    return columns


def create_user(db: Session, ability: Ability, body: Mapping[str, Any]) -> User:
    ability.throw_unless_can(Action.CREATE, Resource.USER, body)

    if is_email_taken(db, body["email"]):
        raise BadRequestError("Email already taken")

    user = User(**_to_columns(body))
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("User created id=%s role=%s", user.id, user.role)
    return user


def query_users(
    db: Session,
    ability: Ability,
    filters: Mapping[str, Any] | None = None,
    options: QueryOptions | None = None,
) -> QueryResult:
    stmt = select(User).where(accessible_by(ability, Action.READ, User))
    stmt = apply_filters(stmt, User, filters)
    return paginate(db, stmt, User, options)


def get_user_by_id(db: Session, ability: Ability, user_id: int) -> User:
    user = get_or_404(db, User, user_id, "User not found")
    ability.throw_unless_can(Action.READ, Resource.USER, user)
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    """Unauthorized lookup, only for authentication."""
    return db.scalars(select(User).where(User.email == _normalize_email(email))).first()


def update_user_by_id(db: Session, ability: Ability, user_id: int, changes: Mapping[str, Any]) -> User:
    user = get_or_404(db, User, user_id, "User not found")

    # Every field sent must be individually allowed; one bad field rejects the whole update.
    ability.throw_unless_can(Action.UPDATE, Resource.USER, merged_state(user, changes), changes.keys())

    if changes.get("email") and is_email_taken(db, changes["email"], exclude_user_id=user.id):
        raise BadRequestError("Email already taken")

    for key, value in _to_columns(changes).items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)

    logger.info("User updated id=%s fields=%s", user.id, sorted(changes))
    return user


def delete_user_by_id(db: Session, ability: Ability, user_id: int) -> User:
    user = get_or_404(db, User, user_id, "User not found")
    ability.throw_unless_can(Action.DELETE, Resource.USER, user)

    db.delete(user)
    db.commit()

    logger.info("User deleted id=%s", user_id)
    return user
