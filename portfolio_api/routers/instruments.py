from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from portfolio_api.db.pagination import QueryOptions
from portfolio_api.db.session import get_db
from portfolio_api.routers.params import get_query_options
from portfolio_api.schemas.pagination import Page
from portfolio_api.schemas.portfolio import InstrumentCreate, InstrumentOut, InstrumentUpdate
from portfolio_api.security.ability import Ability
from portfolio_api.security.dependencies import get_ability
from portfolio_api.services import instrument as instrument_service

router = APIRouter(prefix="/v1/portfolios/{portfolio_id}/instruments", tags=["instruments"])


@router.post("", response_model=InstrumentOut, status_code=status.HTTP_201_CREATED)
def create_instrument(
    portfolio_id: int,
    body: InstrumentCreate,
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return instrument_service.create_instrument(db, ability, portfolio_id, body.model_dump())


@router.get("", response_model=Page[InstrumentOut])
def list_instruments(
    portfolio_id: int,
    name: str | None = Query(None),
    symbol: str | None = Query(None),
    options: QueryOptions = Depends(get_query_options),
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    filters = {"name": name, "symbol": symbol}
    return instrument_service.query_instruments(db, ability, portfolio_id, filters, options)


@router.get("/{instrument_id}", response_model=InstrumentOut)
def get_instrument(
    portfolio_id: int,
    instrument_id: int,
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return instrument_service.get_instrument_by_id(db, ability, portfolio_id, instrument_id)


@router.patch("/{instrument_id}", response_model=InstrumentOut)
def update_instrument(
    portfolio_id: int,
    instrument_id: int,
    body: InstrumentUpdate,
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    return instrument_service.update_instrument_by_id(db, ability, portfolio_id, instrument_id, changes)


@router.delete("/{instrument_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_instrument(
    portfolio_id: int,
    instrument_id: int,
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
) -> Response:
    instrument_service.delete_instrument_by_id(db, ability, portfolio_id, instrument_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
