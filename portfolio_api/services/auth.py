from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_api.models.user import Token, User
from portfolio_api.security.passwords import verify_password
from portfolio_api.security.tokens import TokenError, TokenType
from portfolio_api.services import token as token_service
from portfolio_api.services import user as user_service
from portfolio_api.services.errors import NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)


def login_user_with_email_and_password(db: Session, email: str, password: str) -> User:
    user = user_service.get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise UnauthorizedError("Incorrect email or password")
    return user


def refresh_auth(db: Session, refresh_token: str) -> dict[str, dict[str, object]]:
    """Exchange a refresh token for a new token pair; the used token is consumed."""
    try:
        row = token_service.verify_token(db, refresh_token, TokenType.REFRESH)
    except TokenError as exc:
        raise UnauthorizedError() from exc

    user = db.get(User, row.user_id)
    if user is None:
        raise UnauthorizedError()

    db.delete(row)
    db.commit()

    return token_service.generate_auth_tokens(db, user)


def logout(db: Session, refresh_token: str) -> None:
    row = db.scalars(
        select(Token).where(
            Token.token == refresh_token,
            Token.type == TokenType.REFRESH.value,
            Token.blacklisted.is_(False),
        )
    ).first()
    if row is None:
        raise NotFoundError("Not found")

    user_id = row.user_id
    db.delete(row)
    db.commit()
    logger.info("Refresh token revoked user_id=%s", user_id)
