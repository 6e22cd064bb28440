"""Scenario scoping — tag filtering, failure evidence and guaranteed teardown.

A ``ScenarioScope`` brackets one scenario::

    with ScenarioScope.web(ScenarioInfo("Search works", tags=("smoke",)), config) as actor:
        actor.attempts_to(Navigate("https://example.com"))

On enter it decides from the tags whether the scenario runs at all; a
filtered-out scenario raises ``ScenarioSkipped`` before any ability exists,
so no browser or HTTP session is ever opened for it.  On exit it captures
failure evidence (when the scenario raised), closes every ability, and
writes the evidence manifest.  The scenario's own exception always
propagates.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, Iterable

from playbill import cast
from playbill.config import ApiConfig, WebConfig
from playbill.evidence import EvidenceCollector
from playbill.screenplay.actor import Actor
from playbill.screenplay.registry import Capability

logger = logging.getLogger("playbill.scenario")


class ScenarioSkipped(Exception):
    """The scenario's tags do not match the active tag filter."""

    def __init__(self, title: str, tag_filter: Iterable[str]) -> None:
        self.title = title
        self.tag_filter = tuple(tag_filter)
        super().__init__(f"Scenario '{title}' skipped: no tag matches filter {list(self.tag_filter)}")


@dataclasses.dataclass(frozen=True)
class ScenarioInfo:
    """Title and tags of a scenario (feature-level tags apply to every scenario in it)."""

    title: str
    tags: tuple[str, ...] = ()
    feature_tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "feature_tags", tuple(self.feature_tags))

    @property
    def all_tags(self) -> tuple[str, ...]:
        return self.tags + self.feature_tags


def normalize_tag(tag: str) -> str:
    """``" @Smoke "`` -> ``"smoke"``."""
    return tag.strip().lstrip("@").lower()


def should_run(tags: Iterable[str], tag_filter: Iterable[str]) -> bool:
    """True when the filter is empty or any tag matches it."""
    wanted = {normalize_tag(t) for t in tag_filter} - {""}
    if not wanted:
        return True
    return any(normalize_tag(t) in wanted for t in tags)


class ScenarioScope:
    """Context manager owning one scenario's actor from tag check to teardown."""

    def __init__(
        self,
        info: ScenarioInfo,
        actor_factory: Callable[[], Actor],
        tag_filter: Iterable[str] = (),
        generate_report: bool = True,
    ) -> None:
        self.info = info
        self.tag_filter = tuple(tag_filter)
        self.generate_report = generate_report
        self._actor_factory = actor_factory
        self._actor: Actor | None = None
        self.manifests: list[Path] = []

    @classmethod
    def web(cls, info: ScenarioInfo, config: WebConfig, **actor_options: Any) -> ScenarioScope:
        return cls(
            info,
            lambda: cast.web_actor(config, info.title, **actor_options),
            tag_filter=config.tags,
            generate_report=config.generate_report,
        )

    @classmethod
    def api(cls, info: ScenarioInfo, config: ApiConfig, **actor_options: Any) -> ScenarioScope:
        return cls(
            info,
            lambda: cast.api_actor(config, info.title, **actor_options),
            tag_filter=config.tags,
            generate_report=config.generate_report,
        )

    @property
    def actor(self) -> Actor | None:
        return self._actor

    def __enter__(self) -> Actor:
        if not should_run(self.info.all_tags, self.tag_filter):
            logger.info("Skipping '%s' (tags %s, filter %s)", self.info.title, list(self.info.all_tags), list(self.tag_filter))
            raise ScenarioSkipped(self.info.title, self.tag_filter)
        logger.info("Scenario start: %s", self.info.title)
        self._actor = self._actor_factory()
        return self._actor

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        actor = self._actor
        if actor is None:
            return False
        collectors = self._collectors(actor)
        try:
            if isinstance(exc, Exception):
                self._capture_failure(actor, exc)
        finally:
            actor.exit()
            if self.generate_report:
                for collector in collectors:
                    manifest = collector.write_manifest()
                    if manifest is not None:
                        self.manifests.append(manifest)
            logger.info("Scenario %s: %s", "failed" if exc is not None else "passed", self.info.title)
        return False

    def _collectors(self, actor: Actor) -> list[EvidenceCollector]:
        collectors: list[EvidenceCollector] = []
        for ability in actor.registry.abilities():
            collector = getattr(ability, "evidence", None)
            if collector is not None and collector not in collectors:
                collectors.append(collector)
        return collectors

    def _capture_failure(self, actor: Actor, exc: Exception) -> None:
        web = actor.registry.find(Capability.WEB)
        if web is not None and web.evidence is not None and web.evidence.on_failure:
            # Only an open page can be screenshotted; the detail file is written regardless.
            page = web.page if web.is_active else None
            web.evidence.capture_failure(exc, page=page, last=web.last)
        api = actor.registry.find(Capability.API)
        if api is not None and api.evidence is not None and api.evidence.on_failure:
            api.evidence.capture_failure(exc, last=api.last)
