from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from portfolio_api.db.pagination import QueryOptions
from portfolio_api.db.session import get_db
from portfolio_api.routers.params import get_query_options
from portfolio_api.schemas.pagination import Page
from portfolio_api.schemas.user import UserCreate, UserOut, UserUpdate
from portfolio_api.security.ability import Ability
from portfolio_api.security.dependencies import get_ability
from portfolio_api.services import user as user_service

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, ability: Ability = Depends(get_ability), db: Session = Depends(get_db)):
    return user_service.create_user(db, ability, body.model_dump())


@router.get("", response_model=Page[UserOut])
def list_users(
    name: str | None = Query(None),
    role: str | None = Query(None),
    options: QueryOptions = Depends(get_query_options),
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return user_service.query_users(db, ability, {"name": name, "role": role}, options)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, ability: Ability = Depends(get_ability), db: Session = Depends(get_db)):
    return user_service.get_user_by_id(db, ability, user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    body: UserUpdate,
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return user_service.update_user_by_id(db, ability, user_id, body.model_dump(exclude_unset=True))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, ability: Ability = Depends(get_ability), db: Session = Depends(get_db)) -> Response:
    user_service.delete_user_by_id(db, ability, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
