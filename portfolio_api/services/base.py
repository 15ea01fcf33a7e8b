from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from portfolio_api.services.errors import BadRequestError, NotFoundError

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: type[ModelT], id: int, message: str) -> ModelT:
    instance = db.get(model, id)
    if instance is None:
        raise NotFoundError(message)
    return instance


def merged_state(instance: Any, changes: Mapping[str, Any]) -> dict[str, Any]:
    """
    Column values of `instance` with `changes` applied on top.

    Used as the subject of update checks so conditions see the record as it
    would look after the update.
    """

    state = {column.key: getattr(instance, column.key) for column in instance.__table__.columns}
    state.update(changes)
    return state


def reject_immutable(changes: Mapping[str, Any], immutable: frozenset[str], message: str) -> None:
    if immutable & set(changes):
        raise BadRequestError(message)


def apply_filters(
    stmt: Select,
    model: type[Any],
    filters: Mapping[str, Any] | None,
    aliases: Mapping[str, str] | None = None,
) -> Select:
    """Add `column == value` for every filter whose value is not None."""
    aliases = aliases or {}
    for key, value in (filters or {}).items():
        if value is None:
            continue
        column = getattr(model, aliases.get(key, key), None)
        if column is None:
            raise BadRequestError(f"Invalid filter: {key}")
        stmt = stmt.where(column == value)
    return stmt
