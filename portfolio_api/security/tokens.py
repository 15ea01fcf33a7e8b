"""
Issue and verify the API's own bearer tokens (HS256 JWT).

Every token carries:
    sub   user id (string, per RFC 7519)
    jti   random token id
    iat   issued-at
    exp   expiry
    type  "access" or "refresh"

Only after signature, expiry and type checks pass is `sub` trusted and turned
into a TokenPayload for the rest of the app.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import logging
import uuid

import jwt

from portfolio_api.settings import get_settings

logger = logging.getLogger(__name__)


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token validation fails. Do not log the token."""


@dataclass(frozen=True)
class TokenPayload:
    user_id: int
    type: TokenType
    expires: datetime


def generate_token(
    user_id: int,
    expires: datetime,
    token_type: TokenType = TokenType.ACCESS,
    secret: str | None = None,
) -> str:
    settings = get_settings()
    payload = {
        "sub": str(user_id),
        "iat": datetime.now(timezone.utc),
        "exp": expires,
        "type": token_type.value,
        # Two tokens issued in the same second must still differ.
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, expected_type: TokenType = TokenType.ACCESS) -> TokenPayload:
    """
    Verify signature, expiry and token type, then extract the subject.

    Raises TokenError on any failure.
    """

    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError as e:
        logger.info("Token expired")
        raise TokenError("Token expired") from e
    except jwt.InvalidTokenError as e:
        logger.info("Token invalid: %s", type(e).__name__)
        raise TokenError("Invalid token") from e

    if payload.get("type") != expected_type.value:
        logger.info("Token type mismatch expected=%s", expected_type.value)
        raise TokenError("Invalid token type")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenError("Invalid token subject") from e

    return TokenPayload(
        user_id=user_id,
        type=expected_type,
        expires=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
