"""Playbill — Screenplay-pattern test harness.

Actors perform Tasks and answer Questions through Abilities:
- WebAbility: Playwright browser session with step evidence capture
- ApiAbility: HTTP API session with request/response tracking
"""

from __future__ import annotations

__version__ = "0.3.0"

from playbill.abilities import Ability, AbilityState, ApiAbility, WebAbility
from playbill.config import ApiConfig, PlaybillConfigError, WebConfig
from playbill.errors import (
    AbilityClosed,
    CapabilityNotFound,
    ElementNotFound,
    ElementTimeout,
    HttpRequestFailed,
    MissingAbility,
    PlaybillError,
)
from playbill.screenplay import Actor, Capability, CapabilityRegistry

__all__ = [
    "Ability",
    "AbilityClosed",
    "AbilityState",
    "Actor",
    "ApiAbility",
    "ApiConfig",
    "Capability",
    "CapabilityNotFound",
    "CapabilityRegistry",
    "ElementNotFound",
    "ElementTimeout",
    "HttpRequestFailed",
    "MissingAbility",
    "PlaybillConfigError",
    "PlaybillError",
    "WebAbility",
    "WebConfig",
    "__version__",
]
