from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from portfolio_api.db.session import get_db
from portfolio_api.security.abilities import define_abilities_for
from portfolio_api.security.ability import Ability
from portfolio_api.security.auth import authenticate, extract_token
from portfolio_api.security.config import SecurityConfig
from portfolio_api.security.context import Principal, Role
from portfolio_api.services.errors import UnauthorizedError


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency.

    Resolves the request's Principal and builds its Ability once, before the
    route handler runs. Handlers never read them from globals: they declare
    `get_principal` / `get_ability` and pass the Ability on to services.
    """

    rule = config.match(request.url.path, request.method.upper())

    if not rule.auth_required:
        principal = Principal.anonymous()
        request.state.principal = principal
        request.state.ability = define_abilities_for(principal)
        return

    token = extract_token(request, config)
    if token is None:
        raise UnauthorizedError()

    user = authenticate(db, token)
    principal = Principal(id=user.id, role=Role.parse(user.role))

    request.state.principal = principal
    request.state.ability = define_abilities_for(principal)


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None or principal.is_anonymous:
        raise UnauthorizedError()
    return principal


def get_ability(request: Request) -> Ability:
    ability = getattr(request.state, "ability", None)
    if ability is None:
        raise UnauthorizedError()
    return ability
