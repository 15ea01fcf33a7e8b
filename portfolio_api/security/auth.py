from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.orm import Session

from portfolio_api.models.user import User
from portfolio_api.security.config import SecurityConfig
from portfolio_api.security.tokens import TokenError, TokenType, decode_token
from portfolio_api.services.errors import BadRequestError, UnauthorizedError

logger = logging.getLogger(__name__)


def extract_token(request: Request, config: SecurityConfig) -> str | None:
    """
    Extract the bearer token from the configured header.

    - Input: `Authorization: Bearer <token>`
    - Returns None when the header is absent; malformed headers are a 400.
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header (auth required) path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise BadRequestError(f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.")

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise BadRequestError(f"Invalid {header_name}. Missing token after '{bearer_prefix}'.")

    return token


def authenticate(db: Session, token: str) -> User:
    """Verify an access token and load the user it was issued to."""
    try:
        payload = decode_token(token, expected_type=TokenType.ACCESS)
    except TokenError as exc:
        raise UnauthorizedError() from exc

    return load_user(db, payload.user_id)


def load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        logger.info("Token subject has no user user_id=%s", user_id)
        raise UnauthorizedError()
    return user
