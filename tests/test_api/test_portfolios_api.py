"""Portfolio routes, including the visibility scenario end to end."""
from __future__ import annotations

import pytest


@pytest.fixture
def alice(make_user):
    return make_user(name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user(name="Bob")


def test_private_then_public_portfolio_scenario(client, alice, bob, auth_headers):
    created = client.post("/v1/portfolios", json={"name": "Growth", "public": False}, headers=auth_headers(alice))
    assert created.status_code == 201
    portfolio = created.json()
    assert portfolio["owner"] == alice.id
    assert portfolio["public"] is False

    url = f"/v1/portfolios/{portfolio['id']}"
    assert client.get(url, headers=auth_headers(bob)).status_code == 403

    published = client.patch(url, json={"public": True}, headers=auth_headers(alice))
    assert published.status_code == 200
    assert published.json()["public"] is True

    seen = client.get(url, headers=auth_headers(bob))
    assert seen.status_code == 200
    assert seen.json() == {"id": portfolio["id"], "name": "Growth", "owner": alice.id, "public": True}

    assert client.patch(url, json={"name": "Hijacked"}, headers=auth_headers(bob)).status_code == 403
    assert client.delete(url, headers=auth_headers(bob)).status_code == 403


def test_owner_cannot_be_reassigned(client, alice, bob, make_portfolio, auth_headers):
    portfolio = make_portfolio(alice)

    response = client.patch(
        f"/v1/portfolios/{portfolio.id}", json={"owner": bob.id}, headers=auth_headers(alice)
    )

    assert response.status_code == 400
    assert response.json()["code"] == 400


def test_owner_in_create_body_is_rejected(client, alice, bob, auth_headers):
    response = client.post(
        "/v1/portfolios", json={"name": "x", "public": False, "owner": bob.id}, headers=auth_headers(alice)
    )
    assert response.status_code == 400


def test_empty_update_is_rejected(client, alice, make_portfolio, auth_headers):
    portfolio = make_portfolio(alice)
    response = client.patch(f"/v1/portfolios/{portfolio.id}", json={}, headers=auth_headers(alice))
    assert response.status_code == 400


def test_list_shape_and_scope(client, alice, bob, make_portfolio, auth_headers):
    make_portfolio(alice, name="a-private", public=False)
    make_portfolio(bob, name="b-private", public=False)
    make_portfolio(bob, name="b-public", public=True)

    response = client.get("/v1/portfolios", params={"sortBy": "name:asc", "limit": 1}, headers=auth_headers(alice))

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"results", "page", "limit", "totalPages", "totalResults"}
    assert body["page"] == 1
    assert body["limit"] == 1
    assert body["totalResults"] == 2
    assert body["totalPages"] == 2
    assert [p["name"] for p in body["results"]] == ["a-private"]


def test_list_filters(client, alice, bob, make_portfolio, auth_headers):
    make_portfolio(alice, name="a-public", public=True)
    make_portfolio(bob, name="b-public", public=True)

    response = client.get("/v1/portfolios", params={"owner": bob.id}, headers=auth_headers(alice))

    assert [p["name"] for p in response.json()["results"]] == ["b-public"]


def test_list_with_bad_sort_field(client, alice, auth_headers):
    response = client.get("/v1/portfolios", params={"sortBy": "password_hash"}, headers=auth_headers(alice))
    assert response.status_code == 400


def test_mine(client, alice, bob, make_portfolio, auth_headers):
    make_portfolio(alice, name="a-private")
    make_portfolio(bob, name="b-public", public=True)

    response = client.get("/v1/portfolios/mine", headers=auth_headers(alice))

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["results"]] == ["a-private"]


def test_mine_rejects_owner_filter(client, alice, auth_headers):
    response = client.get("/v1/portfolios/mine", params={"owner": alice.id}, headers=auth_headers(alice))
    assert response.status_code == 400


def test_delete(client, alice, make_portfolio, auth_headers):
    portfolio = make_portfolio(alice)
    url = f"/v1/portfolios/{portfolio.id}"

    assert client.delete(url, headers=auth_headers(alice)).status_code == 204
    assert client.get(url, headers=auth_headers(alice)).status_code == 404


def test_admin_is_forbidden_on_portfolios(client, make_user, alice, make_portfolio, auth_headers):
    admin = make_user(role="admin")
    portfolio = make_portfolio(alice, public=True)

    assert client.get(f"/v1/portfolios/{portfolio.id}", headers=auth_headers(admin)).status_code == 403
    assert client.get("/v1/portfolios", headers=auth_headers(admin)).json()["totalResults"] == 0


@pytest.mark.parametrize("body", [{"name": None}, {"public": None}, {"name": "ok", "public": None}])
def test_null_fields_in_update_are_rejected(client, alice, make_portfolio, auth_headers, body):
    portfolio = make_portfolio(alice, name="Kept", public=False)
    url = f"/v1/portfolios/{portfolio.id}"

    response = client.patch(url, json=body, headers=auth_headers(alice))

    assert response.status_code == 400
    assert response.json()["code"] == 400
    assert client.get(url, headers=auth_headers(alice)).json()["name"] == "Kept"


def test_null_owner_in_update_is_still_an_owner_change(client, alice, make_portfolio, auth_headers):
    portfolio = make_portfolio(alice)
    response = client.patch(f"/v1/portfolios/{portfolio.id}", json={"owner": None}, headers=auth_headers(alice))
    assert response.status_code == 400
    assert response.json()["message"] == "Portfolio owner cannot be changed"
