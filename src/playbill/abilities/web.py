"""Playbill Web Ability — Playwright browser session with step evidence.

Starts Playwright, launches the configured browser family, and opens one
context and one page on the first verb; the page is reused for the whole
scenario.  Each verb is instrumented: optional "before" screenshot, the
Playwright call, optional "after" screenshot, then the step counter moves
on.  Screenshots are named after the step counter (``step_03``) unless the
caller supplies a label.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar
from urllib.parse import urljoin

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from playbill.abilities.base import Ability, LastOperation
from playbill.cleanup import ReleaseFailure, release_in_order
from playbill.config import WebConfig
from playbill.errors import ElementNotFound, ElementTimeout
from playbill.models import BROWSER_FAMILIES, DEFAULT_BROWSER
from playbill.screenplay.registry import Capability

if TYPE_CHECKING:
    from playwright.sync_api import Page, Playwright

    from playbill.evidence import EvidenceCollector

logger = logging.getLogger("playbill.abilities.web")

T = TypeVar("T")


def _start_playwright() -> Playwright:
    from playwright.sync_api import sync_playwright

    return sync_playwright().start()


def resolve_browser_family(browser_type: str | None) -> str:
    """Normalize a browser name; anything unrecognized falls back to chromium."""
    family = (browser_type or "").strip().lower()
    if family in BROWSER_FAMILIES:
        return family
    logger.warning("Unknown browser '%s', falling back to %s", browser_type, DEFAULT_BROWSER)
    return DEFAULT_BROWSER


class WebAbility(Ability):
    """Browse the web through a single Playwright page."""

    capability = Capability.WEB
    name = "Playwright Web Automation"

    def __init__(
        self,
        config: WebConfig | None = None,
        browser: str | None = None,
        evidence: EvidenceCollector | None = None,
        engine_factory: Callable[[], Any] = _start_playwright,
    ) -> None:
        """
        Args:
            config: Web settings snapshot (timeouts, headless, viewport, ...).
            browser: Browser family for this scenario; defaults to config.browser_type.
            evidence: Collector receiving step screenshots and video.
            engine_factory: Returns a started Playwright instance.
        """
        super().__init__()
        self._config = config or WebConfig()
        self._browser_family = resolve_browser_family(browser or self._config.browser_type)
        self._evidence = evidence
        self._engine_factory = engine_factory

        # Managed browser lifecycle -- set by _open()/_release()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Any = None
        self._step_counter = 0
        self._video_path: Path | None = None

    @property
    def browser_family(self) -> str:
        return self._browser_family

    @property
    def step_counter(self) -> int:
        return self._step_counter

    @property
    def page(self) -> Page | None:
        """The open page, or None before the first verb / after close."""
        return self._page

    @property
    def video_path(self) -> Path | None:
        return self._video_path

    @property
    def evidence(self) -> EvidenceCollector | None:
        return self._evidence

    # -- Browser Lifecycle ---------------------------------------------------

    def _open(self) -> None:
        self._playwright = self._engine_factory()
        launcher = getattr(self._playwright, self._browser_family)
        self._browser = launcher.launch(headless=self._config.headless)

        width, height = self._config.viewport
        context_options: dict[str, Any] = {"viewport": {"width": width, "height": height}}
        if self._evidence is not None and self._evidence.record_video:
            context_options["record_video_dir"] = str(self._evidence.directory("videos"))
            context_options["record_video_size"] = {"width": width, "height": height}

        self._context = self._browser.new_context(**context_options)
        self._context.set_default_timeout(self._config.execution_timeout_ms)
        self._page = self._context.new_page()
        logger.info(
            "Browser session open: %s (headless=%s, video=%s)",
            self._browser_family,
            self._config.headless,
            "record_video_dir" in context_options,
        )

    def _release(self) -> list[ReleaseFailure]:
        video = getattr(self._page, "video", None) if self._page is not None else None

        def close_page() -> None:
            if self._page is not None:
                self._page.close()

        def close_context() -> None:
            # Closing the context finalizes the video file.
            if self._context is not None:
                self._context.close()

        def close_browser() -> None:
            if self._browser is not None:
                self._browser.close()

        def stop_playwright() -> None:
            if self._playwright is not None:
                self._playwright.stop()

        failures = release_in_order(
            [
                ("page", close_page),
                ("context", close_context),
                ("browser", close_browser),
                ("playwright", stop_playwright),
            ],
            owner=self.name,
        )
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

        if video is not None:
            try:
                self._video_path = Path(video.path())
            except Exception as exc:
                logger.warning("Video path unavailable: %s", exc)
            else:
                if self._evidence is not None:
                    self._video_path = self._name_video(self._video_path)
                    self._evidence.add(self._video_path, "video", "scenario")
        return failures

    def _name_video(self, recorded: Path) -> Path:
        """Move Playwright's randomly named recording to ``scenario_<ts>.webm``."""
        if not recorded.is_file():
            return recorded
        target = self._evidence.path_for("video", "scenario", "webm")
        try:
            return recorded.rename(target)
        except OSError as exc:
            logger.warning("Could not rename video %s: %s", recorded, exc)
            return recorded

    # -- Step instrumentation ------------------------------------------------

    def _step_tag(self, label: str | None = None) -> str:
        return label or f"step_{self._step_counter + 1:02d}"

    def _run_step(
        self,
        verb: str,
        target: str | None,
        operation: Callable[[Any], T],
        payload: str | None = None,
        label: str | None = None,
    ) -> T:
        self._activate(verb)
        page = self._page
        tag = self._step_tag(label)
        self.last = LastOperation(method=verb, target=target, payload=payload)
        logger.debug("%s %s %s", tag, verb, target or "")

        if self._evidence is not None and self._evidence.before_step:
            self._evidence.capture_screenshot(page, f"{tag}_before")
        try:
            result = operation(page)
        except Exception as exc:
            self.last = dataclasses.replace(self.last, result=f"{type(exc).__name__}: {exc}")
            self._step_counter += 1
            raise
        self.last = dataclasses.replace(self.last, result=result)
        if self._evidence is not None and self._evidence.after_step:
            self._evidence.capture_screenshot(page, f"{tag}_after")
        self._step_counter += 1
        return result

    def _on_element(self, selector: str, action: Callable[[], T]) -> T:
        try:
            return action()
        except PlaywrightTimeoutError as exc:
            raise ElementTimeout(selector, self._config.execution_timeout_ms) from exc

    # -- Verbs ---------------------------------------------------------------

    def navigate(self, url: str) -> None:
        """Go to ``url`` (relative URLs are joined to the configured base_url)."""
        if self._config.base_url and "://" not in url:
            url = urljoin(self._config.base_url.rstrip("/") + "/", url.lstrip("/"))

        def goto(page: Any) -> None:
            page.goto(url, wait_until="networkidle")

        self._run_step("navigate", url, goto)

    def click(self, selector: str) -> None:
        self._run_step("click", selector, lambda page: self._on_element(selector, lambda: page.click(selector)))

    def fill(self, selector: str, text: str) -> None:
        self._run_step(
            "fill",
            selector,
            lambda page: self._on_element(selector, lambda: page.fill(selector, text)),
            payload=text,
        )

    def press_key(self, selector: str, key: str) -> None:
        self._run_step(
            "press_key",
            selector,
            lambda page: self._on_element(selector, lambda: page.press(selector, key)),
            payload=key,
        )

    def get_text(self, selector: str) -> str:
        """Text content of the first element matching ``selector``.

        Raises ElementNotFound when nothing matches.
        """

        def read(page: Any) -> str:
            element = page.query_selector(selector)
            if element is None:
                raise ElementNotFound(selector)
            return element.text_content() or ""

        return self._run_step("get_text", selector, read)

    def get_current_url(self) -> str:
        return self._run_step("get_current_url", None, lambda page: page.url)

    def is_visible(self, selector: str) -> bool:
        """Whether ``selector`` matches a visible element.  Absence is False, not an error."""

        def check(page: Any) -> bool:
            element = page.query_selector(selector)
            return element is not None and element.is_visible()

        return self._run_step("is_visible", selector, check)

    def wait_for(self, selector: str, timeout_ms: int | None = None) -> None:
        """Block until ``selector`` matches, or raise ElementTimeout.

        Defaults to the configured element wait timeout.
        """
        timeout = self._config.element_wait_timeout_ms if timeout_ms is None else timeout_ms

        def wait(page: Any) -> None:
            try:
                page.wait_for_selector(selector, timeout=timeout)
            except PlaywrightTimeoutError as exc:
                raise ElementTimeout(selector, timeout) from exc

        self._run_step("wait_for", selector, wait, payload=str(timeout))

    def screenshot(self, path: Path | str | None = None, label: str | None = None) -> Path:
        """Save a screenshot to ``path``, or into the evidence tree when no path is given.

        Counts as a step but is not itself wrapped in before/after snapshots.
        """
        self._activate("screenshot")
        tag = self._step_tag(label)
        if path is None:
            if self._evidence is None:
                raise ValueError("screenshot() needs a path when no evidence collector is attached")
            target = self._evidence.path_for("screenshot", tag, "png")
        else:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)

        self.last = LastOperation(method="screenshot", target=str(target))
        try:
            self._page.screenshot(path=str(target), full_page=False)
        finally:
            self._step_counter += 1
        if self._evidence is not None:
            self._evidence.add(target, "screenshot", tag)
        return target
