from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr

from portfolio_api.schemas.user import UserOut


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenOut(BaseModel):
    token: str
    expires: datetime


class AuthTokens(BaseModel):
    access: TokenOut
    refresh: TokenOut


class LoginResponse(BaseModel):
    user: UserOut
    tokens: AuthTokens
