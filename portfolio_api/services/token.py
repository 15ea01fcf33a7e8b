from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_api.models.user import Token, User
from portfolio_api.security.tokens import TokenError, TokenType, decode_token, generate_token
from portfolio_api.settings import get_settings

logger = logging.getLogger(__name__)


def save_token(
    db: Session,
    token: str,
    user_id: int,
    expires: datetime,
    token_type: TokenType,
    blacklisted: bool = False,
) -> Token:
    row = Token(
        token=token,
        user_id=user_id,
        # Stored naive UTC, like every other timestamp column.
        expires=expires.astimezone(timezone.utc).replace(tzinfo=None),
        type=token_type.value,
        blacklisted=blacklisted,
    )
    db.add(row)
    db.commit()
    return row


def verify_token(db: Session, token: str, token_type: TokenType) -> Token:
    """
    Check the signature and return the stored, non-blacklisted row.

    Raises TokenError when the token is invalid or was never issued (or was
    already used / revoked).
    """

    payload = decode_token(token, expected_type=token_type)
    row = db.scalars(
        select(Token).where(
            Token.token == token,
            Token.type == token_type.value,
            Token.user_id == payload.user_id,
            Token.blacklisted.is_(False),
        )
    ).first()
    if row is None:
        raise TokenError("Token not found")
    return row


def generate_auth_tokens(db: Session, user: User) -> dict[str, dict[str, object]]:
    """Access token (stateless) + refresh token (persisted)."""
    settings = get_settings()
    now = datetime.now(timezone.utc)

    access_expires = now + timedelta(minutes=settings.jwt_access_expiration_minutes)
    access_token = generate_token(user.id, access_expires, TokenType.ACCESS)

    refresh_expires = now + timedelta(days=settings.jwt_refresh_expiration_days)
    refresh_token = generate_token(user.id, refresh_expires, TokenType.REFRESH)
    save_token(db, refresh_token, user.id, refresh_expires, TokenType.REFRESH)

    logger.debug("Issued auth tokens user_id=%s", user.id)
    return {
        "access": {"token": access_token, "expires": access_expires},
        "refresh": {"token": refresh_token, "expires": refresh_expires},
    }
