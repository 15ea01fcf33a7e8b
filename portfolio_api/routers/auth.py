from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from portfolio_api.db.session import get_db
from portfolio_api.schemas.auth import AuthTokens, LoginRequest, LoginResponse, RefreshRequest
from portfolio_api.schemas.user import UserOut
from portfolio_api.security.ability import Ability
from portfolio_api.security.context import Principal
from portfolio_api.security.dependencies import get_ability, get_principal
from portfolio_api.services import auth as auth_service
from portfolio_api.services import token as token_service
from portfolio_api.services import user as user_service

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)) -> dict:
    user = auth_service.login_user_with_email_and_password(db, body.email, body.password)
    tokens = token_service.generate_auth_tokens(db, user)
    return {"user": user, "tokens": tokens}


@router.post("/refresh-tokens", response_model=AuthTokens)
def refresh_tokens(body: RefreshRequest, db: Session = Depends(get_db)) -> dict:
    return auth_service.refresh_auth(db, body.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(body: RefreshRequest, db: Session = Depends(get_db)) -> Response:
    auth_service.logout(db, body.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserOut)
def me(
    principal: Principal = Depends(get_principal),
    ability: Ability = Depends(get_ability),
    db: Session = Depends(get_db),
):
    return user_service.get_user_by_id(db, ability, principal.id)
