from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    # Stored naive (UTC) so sqlite and postgres round-trip the same value.
    return datetime.now(timezone.utc).replace(tzinfo=None)
