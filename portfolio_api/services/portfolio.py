"""
Portfolio service.

Every function receives the request's Ability explicitly. Loading happens
before authorization, so a missing id is always a 404 and an existing but
inaccessible one is always a 403.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_api.db.filters import accessible_by
from portfolio_api.db.pagination import QueryOptions, QueryResult, paginate
from portfolio_api.models.portfolio import Portfolio
from portfolio_api.security.ability import Ability, Action, Resource
from portfolio_api.services.base import apply_filters, get_or_404, merged_state, reject_immutable
from portfolio_api.services.errors import BadRequestError

logger = logging.getLogger(__name__)

# Relation fields fixed at creation time.
IMMUTABLE_FIELDS = frozenset({"owner", "owner_id"})

# Request-facing names -> model attributes.
_FILTER_ALIASES = {"owner": "owner_id"}


def create_portfolio(db: Session, ability: Ability, owner_id: int, body: Mapping[str, Any]) -> Portfolio:
    data = {key: value for key, value in body.items() if key not in IMMUTABLE_FIELDS}
    data["owner_id"] = owner_id

    ability.throw_unless_can(Action.CREATE, Resource.PORTFOLIO, data)

    portfolio = Portfolio(**data)
    db.add(portfolio)
    db.commit()
    db.refresh(portfolio)

    logger.info("Portfolio created id=%s owner_id=%s public=%s", portfolio.id, owner_id, portfolio.public)
    return portfolio


def query_portfolios(
    db: Session,
    ability: Ability,
    filters: Mapping[str, Any] | None = None,
    options: QueryOptions | None = None,
) -> QueryResult:
    """Every portfolio the principal can read (own + public), narrowed by `filters`."""
    stmt = select(Portfolio).where(accessible_by(ability, Action.READ, Portfolio))
    stmt = apply_filters(stmt, Portfolio, filters, _FILTER_ALIASES)
    return paginate(db, stmt, Portfolio, options)


def query_my_portfolios(
    db: Session,
    ability: Ability,
    owner_id: int,
    filters: Mapping[str, Any] | None = None,
    options: QueryOptions | None = None,
) -> QueryResult:
    filters = dict(filters or {})
    if filters.get("owner") is not None or filters.get("owner_id") is not None:
        raise BadRequestError("Filtering on owner is not allowed here")

    filters["owner"] = owner_id
    return query_portfolios(db, ability, filters, options)


def get_portfolio_by_id(db: Session, ability: Ability, portfolio_id: int) -> Portfolio:
    portfolio = get_or_404(db, Portfolio, portfolio_id, "Portfolio not found")
    ability.throw_unless_can(Action.READ, Resource.PORTFOLIO, portfolio)
    return portfolio


def update_portfolio_by_id(
    db: Session,
    ability: Ability,
    portfolio_id: int,
    changes: Mapping[str, Any],
) -> Portfolio:
    reject_immutable(changes, IMMUTABLE_FIELDS, "Portfolio owner cannot be changed")

    portfolio = get_or_404(db, Portfolio, portfolio_id, "Portfolio not found")
    ability.throw_unless_can(Action.UPDATE, Resource.PORTFOLIO, merged_state(portfolio, changes), changes.keys())

    for key, value in changes.items():
        setattr(portfolio, key, value)
    db.commit()
    db.refresh(portfolio)

    logger.info("Portfolio updated id=%s fields=%s", portfolio.id, sorted(changes))
    return portfolio


def delete_portfolio_by_id(db: Session, ability: Ability, portfolio_id: int) -> Portfolio:
    portfolio = get_or_404(db, Portfolio, portfolio_id, "Portfolio not found")
    ability.throw_unless_can(Action.DELETE, Resource.PORTFOLIO, portfolio)

    db.delete(portfolio)
    db.commit()

    logger.info("Portfolio deleted id=%s", portfolio_id)
    return portfolio
