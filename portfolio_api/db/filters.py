from __future__ import annotations

from typing import Any

from sqlalchemy import and_, false, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from portfolio_api.security.ability import Ability, Condition


def _condition_clause(model: type[Any], condition: Condition) -> ColumnElement[bool]:
    return and_(*[getattr(model, name) == expected for name, expected in condition.attributes])


def accessible_by(ability: Ability, action: str, model: type[Any]) -> ColumnElement[bool]:
    """
    WHERE criterion selecting the rows of `model` the ability allows `action` on.

    The resource name is the mapped class name (User, Portfolio, ...). This is
    the query-side twin of `Ability.can`: list endpoints add it to their
    statement explicitly instead of loading rows and checking them one by one.

        select(Portfolio).where(accessible_by(ability, "read", Portfolio))
    """

    scope = ability.query_scope(action, model.__name__)
    if scope is None:
        return false()

    granted: list[ColumnElement[bool]] = []
    for grant in scope.grants:
        clauses = [not_(_condition_clause(model, c)) for c in grant.unless]
        if grant.condition is not None:
            clauses.insert(0, _condition_clause(model, grant.condition))
        if not clauses:
            return true()
        granted.append(and_(*clauses))
    return or_(*granted)
