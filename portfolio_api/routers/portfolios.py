from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from portfolio_api.db.pagination import QueryOptions
from portfolio_api.db.session import get_db
from portfolio_api.routers.params import get_query_options
from portfolio_api.schemas.pagination import Page
from portfolio_api.schemas.portfolio import PortfolioCreate, PortfolioOut, PortfolioUpdate
from portfolio_api.security.ability import Ability
from portfolio_api.security.context import Principal
from portfolio_api.security.dependencies import get_ability, get_principal
from portfolio_api.services import portfolio as portfolio_service

router = APIRouter(prefix="/v1/portfolios", tags=["portfolios"])


@router.post("", response_model=PortfolioOut, status_code=status.HTTP_201_CREATED)
def create_portfolio(
    body: PortfolioCreate,
    principal: Principal = Depends(get_principal),
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return portfolio_service.create_portfolio(db, ability, principal.id, body.model_dump())


@router.get("", response_model=Page[PortfolioOut])
def list_portfolios(
    name: str | None = Query(None),
    owner: int | None = Query(None),
    public: bool | None = Query(None),
    options: QueryOptions = Depends(get_query_options),
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    # Scoped by the read rules: own portfolios plus public ones.
    filters = {"name": name, "owner": owner, "public": public}
    return portfolio_service.query_portfolios(db, ability, filters, options)


@router.get("/mine", response_model=Page[PortfolioOut])
def list_my_portfolios(
    name: str | None = Query(None),
    owner: int | None = Query(None),
    public: bool | None = Query(None),
    options: QueryOptions = Depends(get_query_options),
    principal: Principal = Depends(get_principal),
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    filters = {"name": name, "owner": owner, "public": public}
    return portfolio_service.query_my_portfolios(db, ability, principal.id, filters, options)


@router.get("/{portfolio_id}", response_model=PortfolioOut)
def get_portfolio(portfolio_id: int, ability: Ability = Depends(get_ability), db: Session = Depends(get_db)):
    return portfolio_service.get_portfolio_by_id(db, ability, portfolio_id)


@router.patch("/{portfolio_id}", response_model=PortfolioOut)
def update_portfolio(
    portfolio_id: int,
    body: PortfolioUpdate,
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return portfolio_service.update_portfolio_by_id(db, ability, portfolio_id, body.model_dump(exclude_unset=True))


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_portfolio(portfolio_id: int, ability: Ability = Depends(get_ability), db: Session = Depends(get_db)) -> Response:
    portfolio_service.delete_portfolio_by_id(db, ability, portfolio_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
