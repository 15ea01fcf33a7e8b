from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Platform role carried by a principal."""

    ADMIN = "admin"
    USER = "user"
    ANONYMOUS = "anonymous"

    @classmethod
    def parse(cls, value: str | None) -> Role:
        # Unknown or missing roles get no abilities at all.
        try:
            return cls(value)
        except ValueError:
            return cls.ANONYMOUS


@dataclass(frozen=True)
class Principal:
    """
    Per-request authenticated identity.

    Built once from a verified token subject and the stored user's role,
    then used to derive the request's Ability. Never shared across requests.
    """

    id: int | None
    role: Role

    @classmethod
    def anonymous(cls) -> Principal:
        return cls(id=None, role=Role.ANONYMOUS)

    @property
    def is_anonymous(self) -> bool:
        return self.role is Role.ANONYMOUS
