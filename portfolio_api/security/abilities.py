from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from portfolio_api.security.ability import Ability, Action, Condition, Effect, Resource, Rule
from portfolio_api.security.context import Principal, Role


class AbilityBuilder:
    """Collects rules in declaration order; later rules take precedence."""

    def __init__(self) -> None:
        self._rules: list[Rule] = []

    def can(
        self,
        action: str,
        resource: str,
        *,
        fields: Iterable[str] = (),
        where: Mapping[str, Any] | None = None,
    ) -> None:
        self._add(Effect.ALLOW, action, resource, fields, where)

    def cannot(
        self,
        action: str,
        resource: str,
        *,
        fields: Iterable[str] = (),
        where: Mapping[str, Any] | None = None,
    ) -> None:
        self._add(Effect.DENY, action, resource, fields, where)

    def _add(
        self,
        effect: Effect,
        action: str,
        resource: str,
        fields: Iterable[str],
        where: Mapping[str, Any] | None,
    ) -> None:
        self._rules.append(
            Rule(
                action=Action(action),
                resource=Resource(resource),
                effect=effect,
                fields=frozenset(fields),
                condition=Condition.where(where) if where else None,
            )
        )

    def build(self) -> tuple[Rule, ...]:
        return tuple(self._rules)


def build_rules(principal: Principal) -> tuple[Rule, ...]:
    """
    Rule set for a principal, derived from its role only.

    - admin: manage every User.
    - user: read/update (name, password) itself, manage own portfolios,
      read public portfolios.
    - anything else: denied everything.
    """

    builder = AbilityBuilder()

    if principal.role is Role.ADMIN:
        builder.can(Action.MANAGE, Resource.USER)

    elif principal.role is Role.USER:
        builder.can(Action.READ, Resource.USER, where={"id": principal.id})
        builder.can(Action.UPDATE, Resource.USER, fields=("name", "password"), where={"id": principal.id})
        builder.can(Action.MANAGE, Resource.PORTFOLIO, where={"owner_id": principal.id})
        builder.can(Action.READ, Resource.PORTFOLIO, where={"public": True})

    else:
        builder.cannot(Action.MANAGE, Resource.ALL)

    return builder.build()


def define_abilities_for(principal: Principal) -> Ability:
    return Ability(build_rules(principal))
