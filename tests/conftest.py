"""
Pytest fixtures for the test suite.

Every test gets an in-memory SQLite database whose outer transaction is
rolled back afterwards, so tests do not affect each other. Service commits
stay inside that transaction.

API tests use `client`, a TestClient whose `get_db` dependency yields the
same session; the lifespan does not run, so the security config is loaded
onto `app.state` here.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_api.security.abilities import define_abilities_for
from portfolio_api.security.context import Principal, Role
from portfolio_api.security.passwords import hash_password
from portfolio_api.security.tokens import TokenType, generate_token


TEST_DB_URL = "sqlite:///:memory:"
DEFAULT_PASSWORD = "password1"


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine; StaticPool keeps one connection across threads."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    import portfolio_api.models  # noqa: F401
    from portfolio_api.db.base import Base

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """Session bound to the test DB; rolled back after each test."""
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def app(db_session):
    from portfolio_api.db.session import get_db
    from portfolio_api.main import create_app
    from portfolio_api.security.config import load_security_config
    from portfolio_api.settings import get_settings

    application = create_app()
    application.state.security_config = load_security_config(get_settings().resolved_security_config_path())

    def _get_test_db():
        yield db_session

    application.dependency_overrides[get_db] = _get_test_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


# ---- Factories -----------------------------------------------------------------------


@pytest.fixture
def make_user(db_session):
    """Insert a user directly (no authorization) and return it."""
    from portfolio_api.models.user import User

    counter = {"n": 0}

    def _make_user(name: str | None = None, role: str = "user", email: str | None = None, password: str = DEFAULT_PASSWORD):
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_portfolio(db_session):
    from portfolio_api.models.portfolio import Portfolio

    def _make_portfolio(owner, name: str = "Savings", public: bool = False):
        portfolio = Portfolio(name=name, owner_id=owner.id, public=public)
        db_session.add(portfolio)
        db_session.commit()
        return portfolio

    return _make_portfolio


@pytest.fixture
def make_instrument(db_session):
    from portfolio_api.models.portfolio import Instrument

    def _make_instrument(portfolio, symbol: str = "AAPL", name: str = "Apple Inc."):
        instrument = Instrument(symbol=symbol, name=name, portfolio_id=portfolio.id)
        db_session.add(instrument)
        db_session.commit()
        return instrument

    return _make_instrument


@pytest.fixture
def ability_for():
    """Build the Ability a request by `user` would get."""

    def _ability_for(user):
        return define_abilities_for(Principal(id=user.id, role=Role.parse(user.role)))

    return _ability_for


@pytest.fixture
def auth_headers():
    """Authorization header carrying a fresh access token for `user`."""

    def _auth_headers(user) -> dict[str, str]:
        expires = datetime.now(timezone.utc) + timedelta(minutes=5)
        token = generate_token(user.id, expires, TokenType.ACCESS)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
