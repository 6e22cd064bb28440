"""Playbill Evidence Collector — screenshots, video, API logs and failure detail.

Evidence is captured around ability verbs without the tasks that call those
verbs knowing about it.  Every file lands under::

    {base}/{category}/{scenario}/{browser}/{step_tag}_{timestamp}.{ext}

where category is one of screenshots, videos, errors, api (API evidence has
no browser segment).  Each file written is recorded as an
``EvidenceArtifact``; at scenario end the list is written to a JSON manifest
that an external report sink can attach.

Capture is best-effort: a failed write is logged and skipped, never raised,
so evidence can not mask the error that made a scenario fail.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import logging
import traceback
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from playbill.models import EVIDENCE_CATEGORIES, MIME_TYPES

if TYPE_CHECKING:
    from playbill.abilities.api import ApiAbility
    from playbill.abilities.base import LastOperation

logger = logging.getLogger("playbill.evidence")


def sanitize_name(name: str) -> str:
    """Replace every character that is not a letter or digit with ``_``."""
    return "".join(c if c.isalnum() else "_" for c in name.strip()) or "scenario"


def _timestamp() -> str:
    # Millisecond resolution keeps before/after snapshots of one step apart.
    return dt.datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]


@dataclasses.dataclass(frozen=True)
class EvidenceArtifact:
    """A file captured as evidence for one step of one scenario."""

    path: Path
    kind: str  # screenshot, video, request_log, response_log, error_detail
    scenario: str
    step: str = ""

    @property
    def mime_type(self) -> str:
        return MIME_TYPES.get(self.path.suffix.lower(), "application/octet-stream")

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "kind": self.kind,
            "scenario": self.scenario,
            "step": self.step,
            "mime_type": self.mime_type,
        }


class EvidenceCollector:
    """Capture policy and artifact ledger for one scenario.

    One collector per scenario; it is shared by the abilities of that
    scenario's actor and never across scenarios.
    """

    def __init__(
        self,
        base_path: Path | str,
        scenario: str,
        browser: str | None = None,
        before_step: bool = False,
        after_step: bool = False,
        on_failure: bool = True,
        record_video: bool = False,
        clock: Callable[[], str] = _timestamp,
    ) -> None:
        self._base_path = Path(base_path)
        self._scenario = sanitize_name(scenario)
        self._browser = browser
        self._clock = clock
        self.before_step = before_step
        self.after_step = after_step
        self.on_failure = on_failure
        self.record_video = record_video
        self._artifacts: list[EvidenceArtifact] = []

    @property
    def scenario(self) -> str:
        return self._scenario

    @property
    def base_path(self) -> Path:
        return self._base_path

    @property
    def artifacts(self) -> list[EvidenceArtifact]:
        return list(self._artifacts)

    # -- Naming ---------------------------------------------------------------

    def directory(self, category: str) -> Path:
        """Directory for a category, created if missing."""
        directory = self._base_path / category / self._scenario
        if self._browser and category != "api":
            directory = directory / self._browser
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def path_for(self, kind: str, step_tag: str, ext: str, category: str | None = None, timestamp: str | None = None) -> Path:
        category = category or EVIDENCE_CATEGORIES[kind]
        return self.directory(category) / f"{step_tag}_{timestamp or self._clock()}.{ext}"

    def add(self, path: Path | str, kind: str, step: str = "") -> EvidenceArtifact:
        artifact = EvidenceArtifact(path=Path(path), kind=kind, scenario=self._scenario, step=step)
        self._artifacts.append(artifact)
        return artifact

    # -- Capture --------------------------------------------------------------

    def capture_screenshot(self, page: Any, step_tag: str, category: str = "screenshots") -> EvidenceArtifact | None:
        """Screenshot ``page`` into the evidence tree.  Returns None on failure."""
        try:
            path = self.path_for("screenshot", step_tag, "png", category=category)
            page.screenshot(path=str(path), full_page=False)
        except Exception as exc:
            logger.warning("Screenshot %s failed: %s", step_tag, exc)
            return None
        logger.debug("Screenshot saved: %s", path)
        return self.add(path, "screenshot", step_tag)

    def record_exchange(self, api: ApiAbility, step_tag: str) -> list[EvidenceArtifact]:
        """Write the request and response of the API ability's last call."""
        last = api.last
        timestamp = self._clock()
        lines = [
            f"Method: {last.method or '-'}",
            f"URL: {last.target or '-'}",
            f"Status: {last.status if last.status is not None else '-'}",
        ]
        if last.payload:
            lines += ["Body:", str(last.payload)]

        artifacts: list[EvidenceArtifact] = []
        try:
            request_path = self.path_for("request_log", f"{step_tag}_request", "txt", timestamp=timestamp)
            request_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
            artifacts.append(self.add(request_path, "request_log", step_tag))

            response_path = self.path_for("response_log", f"{step_tag}_response", "json", timestamp=timestamp)
            response_path.write_text(last.raw_response or "", encoding="utf-8")
            artifacts.append(self.add(response_path, "response_log", step_tag))
        except OSError as exc:
            logger.warning("Could not write API evidence for %s: %s", step_tag, exc)
        return artifacts

    def capture_failure(
        self,
        error: BaseException,
        page: Any = None,
        last: LastOperation | None = None,
    ) -> list[EvidenceArtifact]:
        """Capture a failure screenshot (when a page is open) and the error detail."""
        artifacts: list[EvidenceArtifact] = []
        if page is not None:
            shot = self.capture_screenshot(page, "failure", category="errors")
            if shot is not None:
                artifacts.append(shot)

        detail = [
            f"Scenario: {self._scenario}",
            f"Browser: {self._browser or '-'}",
            f"Error: {type(error).__name__}: {error}",
        ]
        if last is not None and last.method:
            detail.append(f"Last operation: {last.method} {last.target or ''}".rstrip())
            if last.status is not None:
                detail.append(f"Last status: {last.status}")
        detail += ["", "".join(traceback.format_exception(type(error), error, error.__traceback__))]

        try:
            path = self.path_for("error_detail", "failure", "txt")
            path.write_text("\n".join(detail), encoding="utf-8")
            artifacts.append(self.add(path, "error_detail", "failure"))
        except OSError as exc:
            logger.warning("Could not write failure detail: %s", exc)
        return artifacts

    def write_manifest(self) -> Path | None:
        """Write the artifact list to ``{base}/manifest/{scenario}_{ts}.json``."""
        if not self._artifacts:
            return None
        try:
            directory = self._base_path / "manifest"
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / f"{self._scenario}_{self._clock()}.json"
            data = {
                "scenario": self._scenario,
                "browser": self._browser,
                "artifacts": [a.to_dict() for a in self._artifacts],
            }
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write evidence manifest: %s", exc)
            return None
        return path
