"""Build actors for a scenario from configuration snapshots.

Every call returns a fresh Actor with its own registry, ability and
evidence collector; nothing is shared between scenarios except the frozen
config passed in.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Mapping

from playbill.abilities.api import ApiAbility
from playbill.abilities.web import WebAbility, resolve_browser_family
from playbill.config import ApiConfig, WebConfig
from playbill.evidence import EvidenceCollector
from playbill.screenplay.actor import Actor
from playbill.screenplay.registry import CapabilityRegistry

logger = logging.getLogger("playbill.cast")


def current_browser(config: WebConfig, environ: Mapping[str, str] | None = None) -> str:
    """Browser family for this run.

    ``CURRENT_BROWSER`` wins when it is one of ``config.browsers``; otherwise
    the first listed browser; with no list, ``config.browser_type``.
    """
    env = os.environ if environ is None else environ
    browsers = [b.strip().lower() for b in config.browsers if b.strip()]
    if not browsers:
        return resolve_browser_family(config.browser_type)
    requested = env.get("CURRENT_BROWSER", "").strip().lower()
    if requested and requested in browsers:
        return resolve_browser_family(requested)
    if requested:
        logger.warning("CURRENT_BROWSER=%s is not in the browser list %s; using %s", requested, browsers, browsers[0])
    return resolve_browser_family(browsers[0])


def web_actor(
    config: WebConfig,
    scenario: str,
    name: str = "TestUser",
    browser: str | None = None,
    engine_factory: Callable[[], Any] | None = None,
) -> Actor:
    """An actor able to browse the web, with evidence going to ``config.evidence_base_path``."""
    family = resolve_browser_family(browser) if browser else current_browser(config)
    evidence = EvidenceCollector(
        config.evidence_base_path,
        scenario,
        browser=family,
        before_step=config.screenshots_before_step,
        after_step=config.screenshots_after_step,
        on_failure=config.screenshots_on_failure,
        record_video=config.record_video,
    )
    options: dict[str, Any] = {}
    if engine_factory is not None:
        options["engine_factory"] = engine_factory
    ability = WebAbility(config, browser=family, evidence=evidence, **options)

    registry = CapabilityRegistry()
    registry.register(ability)
    return Actor(name, registry)


def api_actor(
    config: ApiConfig,
    scenario: str,
    name: str = "ApiUser",
    session_factory: Callable[[], Any] | None = None,
) -> Actor:
    """An actor able to call the configured HTTP API."""
    evidence = EvidenceCollector(config.evidence_base_path, scenario)
    options: dict[str, Any] = {}
    if session_factory is not None:
        options["session_factory"] = session_factory
    ability = ApiAbility(config, evidence=evidence, **options)

    registry = CapabilityRegistry()
    registry.register(ability)
    return Actor(name, registry)
