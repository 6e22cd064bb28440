"""Playbill abilities — the closed set of things an actor can use.

- WebAbility: Playwright browser session (Capability.WEB)
- ApiAbility: HTTP API session over requests (Capability.API)
"""

from playbill.abilities.api import ApiAbility
from playbill.abilities.base import Ability, AbilityState, LastOperation
from playbill.abilities.web import WebAbility, resolve_browser_family

__all__ = [
    "Ability",
    "AbilityState",
    "ApiAbility",
    "LastOperation",
    "WebAbility",
    "resolve_browser_family",
]
