"""Global security dependency: authentication and error rendering at the HTTP boundary."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from portfolio_api.security.tokens import TokenType, generate_token


def test_missing_token_is_401(client):
    response = client.get("/v1/portfolios")
    assert response.status_code == 401
    assert response.json() == {"code": 401, "message": "Please authenticate"}


def test_malformed_header_is_400(client):
    response = client.get("/v1/portfolios", headers={"Authorization": "Token abc"})
    assert response.status_code == 400
    assert response.json()["code"] == 400


def test_invalid_token_is_401(client):
    response = client.get("/v1/portfolios", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_expired_token_is_401(client, make_user):
    user = make_user()
    token = generate_token(user.id, datetime.now(timezone.utc) - timedelta(minutes=1))
    response = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_refresh_token_cannot_be_used_as_access_token(client, make_user):
    user = make_user()
    token = generate_token(user.id, datetime.now(timezone.utc) + timedelta(days=1), TokenType.REFRESH)
    response = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_forbidden_body_is_generic(client, make_user, make_portfolio, auth_headers):
    owner, other = make_user(), make_user()
    portfolio = make_portfolio(owner, public=False)

    response = client.get(f"/v1/portfolios/{portfolio.id}", headers=auth_headers(other))

    assert response.status_code == 403
    assert response.json() == {"code": 403, "message": "Forbidden"}


def test_validation_errors_are_400(client, make_user, auth_headers):
    user = make_user()
    response = client.post("/v1/portfolios", json={"name": "No flag"}, headers=auth_headers(user))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == 400
    assert "public" in body["message"]
