"""
Ability evaluator.

An Ability is an immutable, ordered list of rules answering
"may this principal perform <action> on <resource> (instance, fields)?".

Key ideas:
- Rules are plain frozen records: effect, action, resource, optional field
  subset, optional condition.
- The last defined rule that matches wins; no match means deny.
- `manage` covers every action, `all` covers every resource.
- Conditions are equality predicates evaluated against already-loaded
  instances (ORM objects or mappings of merged update state). The same
  records are rendered as SQL criteria for list scoping by
  `portfolio_api.db.filters.accessible_by`.

This module has no FastAPI or SQLAlchemy dependency.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any

from portfolio_api.services.errors import AuthorizationError

logger = logging.getLogger(__name__)


# ---- Vocabulary ----------------------------------------------------------------------


class Action(str, Enum):
    MANAGE = "manage"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Resource(str, Enum):
    ALL = "all"
    USER = "User"
    PORTFOLIO = "Portfolio"
    INSTRUMENT = "Instrument"


class Effect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


# ---- Data structures -----------------------------------------------------------------


_MISSING = object()


def _read_attribute(instance: Any, name: str) -> Any:
    if isinstance(instance, Mapping):
        return instance.get(name, _MISSING)
    return getattr(instance, name, _MISSING)


@dataclass(frozen=True)
class Condition:
    """
    Conjunction of `attribute == expected` checks.

    Callable as a predicate over an instance. A missing attribute never
    matches.
    """

    attributes: tuple[tuple[str, Any], ...]

    @classmethod
    def where(cls, attributes: Mapping[str, Any]) -> Condition:
        return cls(tuple(sorted(attributes.items())))

    def __call__(self, instance: Any) -> bool:
        for name, expected in self.attributes:
            value = _read_attribute(instance, name)
            if value is _MISSING or value != expected:
                return False
        return True


@dataclass(frozen=True)
class Rule:
    """Single allow/deny statement."""

    action: Action
    resource: Resource
    effect: Effect = Effect.ALLOW
    fields: frozenset[str] = frozenset()
    condition: Condition | None = None

    @property
    def inverted(self) -> bool:
        return self.effect is Effect.DENY

    def matches_action(self, action: str) -> bool:
        return self.action == action or self.action is Action.MANAGE

    def matches_resource(self, resource: str) -> bool:
        return self.resource == resource or self.resource is Resource.ALL

    def matches_field(self, field: str | None) -> bool:
        if not self.fields:
            return True
        # Type-level question without a field: a field-restricted grant still
        # grants "something", a field-restricted denial does not deny everything.
        if field is None:
            return not self.inverted
        return field in self.fields

    def matches_instance(self, instance: Any | None) -> bool:
        if self.condition is None:
            return True
        if instance is None:
            return not self.inverted
        return self.condition(instance)


@dataclass(frozen=True)
class Grant:
    """
    One allow rule as seen by list scoping.

    A row is granted when it matches `condition` (None matches every row)
    and none of `unless`, the conditional denials declared after this rule.
    """

    condition: Condition | None = None
    unless: tuple[Condition, ...] = ()


@dataclass(frozen=True)
class QueryScope:
    """
    List-scoping view of the rules for one (action, resource).

    A row is accessible when at least one grant accepts it.
    """

    grants: tuple[Grant, ...]


# ---- Evaluator -----------------------------------------------------------------------


def _as_field_list(fields: Iterable[str] | str | None) -> list[str]:
    if fields is None:
        return []
    if isinstance(fields, str):
        return [fields]
    return sorted(set(fields))


class Ability:
    """
    Request-scoped evaluator over an immutable rule list.

    Usage:
        ability = define_abilities_for(principal)
        ability.can("read", "Portfolio", portfolio)
        ability.throw_unless_can("update", "User", merged_state, {"name"})
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def rules_for(self, action: str, resource: str, field: str | None = None) -> list[Rule]:
        """Rules matching (action, resource, field), highest priority first. Conditions are not evaluated."""
        return [
            rule
            for rule in reversed(self._rules)
            if rule.matches_resource(resource) and rule.matches_action(action) and rule.matches_field(field)
        ]

    def relevant_rule_for(
        self,
        action: str,
        resource: str,
        instance: Any | None = None,
        field: str | None = None,
    ) -> Rule | None:
        for rule in self.rules_for(action, resource, field):
            if rule.matches_instance(instance):
                return rule
        return None

    def _can_field(self, action: str, resource: str, instance: Any | None, field: str | None) -> bool:
        rule = self.relevant_rule_for(action, resource, instance, field)
        allowed = rule is not None and not rule.inverted
        logger.debug(
            "Ability: action=%s resource=%s field=%s allowed=%s",
            action,
            resource,
            field,
            allowed,
        )
        return allowed

    def can(
        self,
        action: str,
        resource: str,
        instance: Any | None = None,
        fields: Iterable[str] | str | None = None,
    ) -> bool:
        """
        Decide a single authorization question.

        With `fields`, every field must pass on its own (no partial grants).
        Without an instance, conditional allow rules count as a grant.
        """

        requested = _as_field_list(fields)
        if not requested:
            return self._can_field(action, resource, instance, None)
        return all(self._can_field(action, resource, instance, field) for field in requested)

    def cannot(
        self,
        action: str,
        resource: str,
        instance: Any | None = None,
        fields: Iterable[str] | str | None = None,
    ) -> bool:
        return not self.can(action, resource, instance, fields)

    def throw_unless_can(
        self,
        action: str,
        resource: str,
        instance: Any | None = None,
        fields: Iterable[str] | str | None = None,
    ) -> None:
        """Same as `can`, but raises AuthorizationError instead of returning False."""
        if not self.can(action, resource, instance, fields):
            logger.info(
                "Forbidden action=%s resource=%s fields=%s",
                getattr(action, "value", action),
                getattr(resource, "value", resource),
                _as_field_list(fields),
            )
            raise AuthorizationError()

    def query_scope(self, action: str, resource: str) -> QueryScope | None:
        """
        Translate the rules for (action, resource) into a row filter.

        Returns None when no row can be accessible.
        """

        grants: list[Grant] = []
        # Conditional denials seen so far; they outrank every allow that follows.
        denials: list[Condition] = []

        for rule in self.rules_for(action, resource):
            if rule.inverted:
                if rule.condition is None:
                    # Shadows every lower-priority rule.
                    break
                denials.append(rule.condition)
                continue

            grants.append(Grant(condition=rule.condition, unless=tuple(denials)))
            if rule.condition is None:
                # Lower-priority allows cannot grant anything more.
                break

        if not grants:
            return None
        return QueryScope(grants=tuple(grants))
