"""Capability registry — one ability instance per capability tag."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any, Union

from playbill.cleanup import ReleaseFailure, release_in_order
from playbill.errors import CapabilityNotFound

if TYPE_CHECKING:
    from playbill.abilities.base import Ability

logger = logging.getLogger("playbill.screenplay.registry")


class Capability(str, enum.Enum):
    """The closed set of things an actor can be able to do."""

    WEB = "web"
    API = "api"


# A lookup key: the tag itself, its string value, or an ability class.
CapabilityKey = Union[Capability, str, type]


def capability_of(key: CapabilityKey) -> Capability:
    """Turn a lookup key into its ``Capability`` tag.

    Raises ValueError for strings outside the capability set and TypeError
    for anything that is neither a tag, a string nor an ability class.
    """
    if isinstance(key, Capability):
        return key
    if isinstance(key, str):
        return Capability(key.strip().lower())
    tag = getattr(key, "capability", None)
    if isinstance(tag, Capability):
        return tag
    raise TypeError(f"Not a capability key: {key!r}")


def capability_name(key: CapabilityKey) -> str:
    """Human-readable name of what was asked for (class name or tag value)."""
    if isinstance(key, type):
        return key.__name__
    if isinstance(key, Capability):
        return key.value
    return str(key)


class CapabilityRegistry:
    """Maps each ``Capability`` to the single ability granted for it.

    Registering the same capability twice replaces the earlier instance.
    Scoped to one actor for one scenario.
    """

    def __init__(self) -> None:
        self._abilities: dict[Capability, Ability] = {}

    def register(self, key: Any, ability: Ability | None = None) -> None:
        """Register ``ability`` under ``key``.

        ``register(ability)`` takes the tag from the ability itself.
        """
        if ability is None:
            ability, key = key, getattr(key, "capability", None)
        capability = capability_of(key)
        if getattr(ability, "capability", None) is not capability:
            raise ValueError(
                f"{type(ability).__name__} provides {getattr(ability, 'capability', None)!r}, "
                f"cannot register it as {capability.value!r}"
            )
        previous = self._abilities.pop(capability, None)
        if previous is not None and previous is not ability:
            logger.debug("Replacing %s ability %s", capability.value, previous.name)
        self._abilities[capability] = ability

    def resolve(self, key: CapabilityKey) -> Ability:
        """Return the ability for ``key``; raise CapabilityNotFound when absent."""
        ability = self.find(key)
        if ability is None:
            raise CapabilityNotFound(capability_name(key))
        return ability

    def find(self, key: CapabilityKey) -> Ability | None:
        """Return the ability for ``key``, or None."""
        try:
            return self._abilities.get(capability_of(key))
        except (TypeError, ValueError):
            return None

    def has(self, key: CapabilityKey) -> bool:
        return self.find(key) is not None

    def abilities(self) -> list[Ability]:
        return list(self._abilities.values())

    def __len__(self) -> int:
        return len(self._abilities)

    def release_all(self) -> list[ReleaseFailure]:
        """Close every registered ability, attempting all even if some fail."""
        return release_in_order(
            ((ability.name, ability.close) for ability in self._abilities.values()),
            owner="registry",
        )
