"""
Instrument service.

Instruments declare no ability rules of their own: every operation first
resolves the parent portfolio and authorizes the action against it.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_api.db.pagination import QueryOptions, QueryResult, paginate
from portfolio_api.models.portfolio import Instrument, Portfolio
from portfolio_api.security.ability import Ability, Action, Resource
from portfolio_api.services.base import apply_filters, get_or_404, reject_immutable
from portfolio_api.services.errors import NotFoundError

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"portfolio", "portfolio_id"})


def check_portfolio_access(db: Session, ability: Ability, portfolio_id: int, action: str) -> Portfolio:
    """Load the parent portfolio (404 if missing) and require `action` on it."""
    portfolio = get_or_404(db, Portfolio, portfolio_id, "Portfolio not found")
    ability.throw_unless_can(action, Resource.PORTFOLIO, portfolio)
    return portfolio


def create_instrument(db: Session, ability: Ability, portfolio_id: int, body: Mapping[str, Any]) -> Instrument:
    check_portfolio_access(db, ability, portfolio_id, Action.MANAGE)

    data = {key: value for key, value in body.items() if key not in IMMUTABLE_FIELDS}
    instrument = Instrument(**data, portfolio_id=portfolio_id)
    db.add(instrument)
    db.commit()
    db.refresh(instrument)

    logger.info("Instrument created id=%s portfolio_id=%s", instrument.id, portfolio_id)
    return instrument


def query_instruments(
    db: Session,
    ability: Ability,
    portfolio_id: int,
    filters: Mapping[str, Any] | None = None,
    options: QueryOptions | None = None,
) -> QueryResult:
    check_portfolio_access(db, ability, portfolio_id, Action.READ)

    # Only instruments of the requested portfolio, whatever the filters say.
    stmt = apply_filters(select(Instrument), Instrument, filters)
    stmt = stmt.where(Instrument.portfolio_id == portfolio_id)
    return paginate(db, stmt, Instrument, options)


def _load_instrument(db: Session, portfolio_id: int, instrument_id: int) -> Instrument:
    instrument = db.scalars(
        select(Instrument).where(Instrument.id == instrument_id, Instrument.portfolio_id == portfolio_id)
    ).first()
    if instrument is None:
        raise NotFoundError("Instrument not found")
    return instrument


def get_instrument_by_id(db: Session, ability: Ability, portfolio_id: int, instrument_id: int) -> Instrument:
    check_portfolio_access(db, ability, portfolio_id, Action.READ)
    return _load_instrument(db, portfolio_id, instrument_id)


def update_instrument_by_id(
    db: Session,
    ability: Ability,
    portfolio_id: int,
    instrument_id: int,
    changes: Mapping[str, Any],
) -> Instrument:
    reject_immutable(changes, IMMUTABLE_FIELDS, "Instrument portfolio cannot be changed")

    check_portfolio_access(db, ability, portfolio_id, Action.MANAGE)
    instrument = _load_instrument(db, portfolio_id, instrument_id)

    for key, value in changes.items():
        setattr(instrument, key, value)
    db.commit()
    db.refresh(instrument)

    logger.info("Instrument updated id=%s fields=%s", instrument.id, sorted(changes))
    return instrument


def delete_instrument_by_id(db: Session, ability: Ability, portfolio_id: int, instrument_id: int) -> Instrument:
    check_portfolio_access(db, ability, portfolio_id, Action.MANAGE)
    instrument = _load_instrument(db, portfolio_id, instrument_id)

    db.delete(instrument)
    db.commit()

    logger.info("Instrument deleted id=%s portfolio_id=%s", instrument_id, portfolio_id)
    return instrument
