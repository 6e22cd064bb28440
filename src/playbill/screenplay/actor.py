"""Actor — a named participant that performs tasks and answers questions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar, overload

from playbill.cleanup import ReleaseFailure
from playbill.errors import MissingAbility
from playbill.screenplay.registry import CapabilityKey, CapabilityRegistry, capability_name

if TYPE_CHECKING:
    from playbill.abilities.base import Ability
    from playbill.screenplay.protocols import Question, Task

logger = logging.getLogger("playbill.screenplay.actor")

A = TypeVar("A", bound="Ability")
T = TypeVar("T")


class Actor:
    """Executes tasks and answers questions through the abilities it was granted.

    The actor adds logging and nothing else: no retries, no timeouts, no
    error translation.  Whatever a task or question raises reaches the
    caller unchanged.
    """

    def __init__(self, name: str, registry: CapabilityRegistry | None = None) -> None:
        if not name or not name.strip():
            raise ValueError("Actor name must be a non-empty string")
        self._name = name
        self._registry = registry if registry is not None else CapabilityRegistry()

    @classmethod
    def named(cls, name: str) -> Actor:
        return cls(name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    def __repr__(self) -> str:
        return f"Actor({self._name!r})"

    # -- Abilities -------------------------------------------------------------

    def who_can(self, *abilities: Ability) -> Actor:
        """Grant abilities; returns the actor so construction reads as a sentence."""
        for ability in abilities:
            self._registry.register(ability)
        return self

    @overload
    def ability_to(self, key: type[A]) -> A: ...

    @overload
    def ability_to(self, key: CapabilityKey) -> Any: ...

    def ability_to(self, key):
        """Return the ability for ``key``.

        Raises MissingAbility when the actor was never granted it.  That is
        a setup defect: callers should not catch and retry it.
        """
        ability = self._registry.find(key)
        if ability is None:
            raise MissingAbility(self._name, capability_name(key))
        return ability

    get_ability = ability_to

    def has_ability(self, key: CapabilityKey) -> bool:
        return self._registry.has(key)

    # -- Tasks and questions --------------------------------------------------

    def attempts_to(self, *tasks: Task) -> None:
        """Perform tasks strictly in order; the first failure aborts the rest."""
        for task in tasks:
            if task is None:
                raise TypeError("Actor.attempts_to() received None instead of a task")
            logger.info("[%s] performs: %s", self._name, task.description)
            task.perform_as(self)

    def execute(self, task: Task) -> None:
        self.attempts_to(task)

    def asks_for(self, question: Question[T]) -> T:
        """Answer a question and return its value."""
        if question is None:
            raise TypeError("Actor.asks_for() received None instead of a question")
        logger.info("[%s] asks: %s", self._name, question.description)
        return question.answered_by(self)

    answer = asks_for

    # -- Teardown --------------------------------------------------------------

    def exit(self) -> list[ReleaseFailure]:
        """Close every ability the actor holds (best effort)."""
        logger.debug("[%s] exits, releasing %d abilities", self._name, len(self._registry))
        return self._registry.release_all()
