"""Tests for accessible_by(): rule conditions rendered as SQL criteria."""
from __future__ import annotations

from sqlalchemy import select

from portfolio_api.db.filters import accessible_by
from portfolio_api.models.portfolio import Portfolio
from portfolio_api.models.user import User
from portfolio_api.security.ability import Ability, Action, Condition, Effect, Resource, Rule
from portfolio_api.security.abilities import define_abilities_for
from portfolio_api.security.context import Principal, Role


def _names(db_session, ability, action=Action.READ):
    stmt = select(Portfolio).where(accessible_by(ability, action, Portfolio)).order_by(Portfolio.name)
    return [p.name for p in db_session.scalars(stmt)]


def _seed(make_user, make_portfolio):
    me, other = make_user(), make_user()
    make_portfolio(me, name="mine-private", public=False)
    make_portfolio(me, name="mine-public", public=True)
    make_portfolio(other, name="other-private", public=False)
    make_portfolio(other, name="other-public", public=True)
    return me, other


def test_user_reads_own_and_public(db_session, make_user, make_portfolio, ability_for):
    me, _ = _seed(make_user, make_portfolio)
    assert _names(db_session, ability_for(me)) == ["mine-private", "mine-public", "other-public"]


def test_user_updates_only_own(db_session, make_user, make_portfolio, ability_for):
    me, _ = _seed(make_user, make_portfolio)
    assert _names(db_session, ability_for(me), Action.UPDATE) == ["mine-private", "mine-public"]


def test_anonymous_sees_nothing(db_session, make_user, make_portfolio):
    _seed(make_user, make_portfolio)
    assert _names(db_session, define_abilities_for(Principal.anonymous())) == []


def test_admin_sees_every_user_but_no_portfolio(db_session, make_user, make_portfolio):
    admin = make_user(role="admin")
    _seed(make_user, make_portfolio)
    ability = define_abilities_for(Principal(id=admin.id, role=Role.ADMIN))

    users = db_session.scalars(select(User).where(accessible_by(ability, Action.READ, User))).all()
    assert len(users) == 3
    assert _names(db_session, ability) == []


def test_unrestricted_scope_with_denial(db_session, make_user, make_portfolio):
    _seed(make_user, make_portfolio)
    ability = Ability([
        Rule(Action.READ, Resource.PORTFOLIO),
        Rule(Action.READ, Resource.PORTFOLIO, Effect.DENY, condition=Condition.where({"public": False})),
    ])
    assert _names(db_session, ability) == ["mine-public", "other-public"]


def test_denial_declared_before_an_allow_does_not_hide_its_rows(db_session, make_user, make_portfolio):
    me, _ = _seed(make_user, make_portfolio)
    ability = Ability([
        Rule(Action.READ, Resource.PORTFOLIO, Effect.DENY, condition=Condition.where({"public": False})),
        Rule(Action.READ, Resource.PORTFOLIO, condition=Condition.where({"owner_id": me.id})),
    ])

    names = _names(db_session, ability)

    assert names == ["mine-private", "mine-public"]
    rows = db_session.scalars(select(Portfolio).where(Portfolio.owner_id == me.id)).all()
    assert all(ability.can(Action.READ, Resource.PORTFOLIO, row) for row in rows)


def test_denial_declared_after_an_allow_hides_its_rows(db_session, make_user, make_portfolio):
    me, _ = _seed(make_user, make_portfolio)
    ability = Ability([
        Rule(Action.READ, Resource.PORTFOLIO, condition=Condition.where({"owner_id": me.id})),
        Rule(Action.READ, Resource.PORTFOLIO, Effect.DENY, condition=Condition.where({"public": False})),
    ])
    assert _names(db_session, ability) == ["mine-public"]
