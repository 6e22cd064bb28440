"""Shared fixtures for Playbill unit tests.

No browser or network is needed: Playwright is replaced by an in-memory
engine whose page knows a fixed set of selectors, and requests sessions are
replaced by a recorder that answers from a queue of canned responses.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import pytest
import requests
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from playbill.config import ApiConfig, WebConfig

pytest_plugins = ["playbill.pytest_plugin"]


# ---------------------------------------------------------------------------
# Fake Playwright
# ---------------------------------------------------------------------------


class FakeElement:
    def __init__(self, text: str | None = "", visible: bool = True) -> None:
        self._text = text
        self._visible = visible

    def text_content(self) -> str | None:
        return self._text

    def is_visible(self) -> bool:
        return self._visible


class FakeVideo:
    def __init__(self, path: Path) -> None:
        self._path = path

    def path(self) -> str:
        return str(self._path)


class FakePage:
    """A page with a fixed DOM: ``elements`` maps selector -> FakeElement."""

    def __init__(self, log: list, elements: dict[str, FakeElement] | None = None) -> None:
        self.log = log
        self.elements = dict(elements or {})
        self.url = "about:blank"
        self.video: FakeVideo | None = None
        self.screenshot_error: Exception | None = None
        self.close_error: Exception | None = None

    def _require(self, selector: str) -> None:
        if selector not in self.elements:
            raise PlaywrightTimeoutError(f"Timeout 30000ms exceeded waiting for {selector}")

    def goto(self, url: str, wait_until: str | None = None) -> None:
        self.log.append(("goto", url, wait_until))
        self.url = url

    def click(self, selector: str) -> None:
        self._require(selector)
        self.log.append(("click", selector))

    def fill(self, selector: str, text: str) -> None:
        self._require(selector)
        self.log.append(("fill", selector, text))

    def press(self, selector: str, key: str) -> None:
        self._require(selector)
        self.log.append(("press", selector, key))

    def query_selector(self, selector: str) -> FakeElement | None:
        return self.elements.get(selector)

    def wait_for_selector(self, selector: str, timeout: float | None = None) -> FakeElement:
        self.log.append(("wait_for_selector", selector, timeout))
        if selector in self.elements:
            return self.elements[selector]
        time.sleep((timeout or 0) / 1000)
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    def screenshot(self, path: str, full_page: bool = False) -> bytes:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        Path(path).write_bytes(b"\x89PNG fake")
        self.log.append(("screenshot", Path(path).name))
        return b""

    def close(self) -> None:
        self.log.append(("close", "page"))
        if self.close_error is not None:
            raise self.close_error


class FakeContext:
    def __init__(self, engine: FakeEngine, options: dict[str, Any]) -> None:
        self.engine = engine
        self.options = options
        self.default_timeout: float | None = None

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def new_page(self) -> FakePage:
        page = self.engine.page
        if "record_video_dir" in self.options:
            page.video = FakeVideo(Path(self.options["record_video_dir"]) / "page.webm")
        return page

    def close(self) -> None:
        self.engine.log.append(("close", "context"))


class FakeBrowser:
    def __init__(self, engine: FakeEngine) -> None:
        self.engine = engine
        self.contexts: list[FakeContext] = []

    def new_context(self, **options: Any) -> FakeContext:
        context = FakeContext(self.engine, options)
        self.contexts.append(context)
        return context

    def close(self) -> None:
        self.engine.log.append(("close", "browser"))


class FakeLauncher:
    def __init__(self, engine: FakeEngine, family: str) -> None:
        self.engine = engine
        self.family = family

    def launch(self, headless: bool = True) -> FakeBrowser:
        self.engine.launches.append((self.family, headless))
        self.engine.browser = FakeBrowser(self.engine)
        return self.engine.browser


class FakeEngine:
    """Stands in for a started ``sync_playwright()``; ``start`` is the engine factory."""

    def __init__(self) -> None:
        self.log: list = []
        self.starts = 0
        self.launches: list[tuple[str, bool]] = []
        self.browser: FakeBrowser | None = None
        self.page = FakePage(self.log)
        self.chromium = FakeLauncher(self, "chromium")
        self.firefox = FakeLauncher(self, "firefox")
        self.webkit = FakeLauncher(self, "webkit")

    def start(self) -> FakeEngine:
        self.starts += 1
        return self

    def stop(self) -> None:
        self.log.append(("close", "playwright"))

    @property
    def context(self) -> FakeContext:
        assert self.browser is not None and self.browser.contexts
        return self.browser.contexts[-1]

    def closes(self) -> list[str]:
        return [entry[1] for entry in self.log if entry[0] == "close"]


@pytest.fixture
def fake_engine() -> FakeEngine:
    engine = FakeEngine()
    engine.page.elements.update(
        {
            "title": FakeElement("Example Domain"),
            "h1": FakeElement("Welcome"),
            "#search": FakeElement(""),
            "textarea[name='q']": FakeElement(""),
            "#hidden": FakeElement("secret", visible=False),
            "text=Welcome": FakeElement("Welcome"),
        }
    )
    return engine


# ---------------------------------------------------------------------------
# Fake requests
# ---------------------------------------------------------------------------


def make_response(status: int = 200, body: Any = "", url: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    text = body if isinstance(body, str) else json.dumps(body)
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    return response


class FakeSession:
    """Records every request and answers from ``responses`` (FIFO), default 200 ``{}``."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.responses: list[requests.Response | Exception] = []
        self.closed = 0

    def queue(self, status: int = 200, body: Any = "") -> None:
        self.responses.append(make_response(status, body))

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.requests.append({"method": method, "url": url, **kwargs})
        answer = self.responses.pop(0) if self.responses else make_response(200, "{}")
        if isinstance(answer, Exception):
            raise answer
        answer.url = url
        return answer

    def close(self) -> None:
        self.closed += 1


class SessionFactory:
    def __init__(self) -> None:
        self.session = FakeSession()
        self.calls = 0

    def __call__(self) -> FakeSession:
        self.calls += 1
        return self.session


@pytest.fixture
def session_factory() -> SessionFactory:
    return SessionFactory()


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------


@pytest.fixture
def web_settings(tmp_path: Path) -> WebConfig:
    """WebConfig writing evidence under tmp_path, no step screenshots."""
    return WebConfig(headless=True, evidence_base_path=str(tmp_path / "evidence"))


@pytest.fixture
def api_settings(tmp_path: Path) -> ApiConfig:
    return ApiConfig(base_url="https://api.example.com", evidence_base_path=str(tmp_path / "evidence"))


@pytest.fixture
def sample_config_yaml() -> str:
    """A playbill.yaml with both sections, in the snake_case style."""
    return """\
web:
  browser_type: firefox
  headless: true
  execution_timeout_ms: 20000
  element_wait_timeout_ms: 5000
  browsers: [chromium, firefox]
  record_video: true
  screenshots_after_step: true
  evidence_base_path: out/evidence
  tags: [smoke]
  viewport:
    width: 1920
    height: 1080
api:
  base_url: https://api.example.com
  timeout_ms: 5000
  auth_type: Bearer
  bearer_token: sk-test-0123456789xyz
  default_headers:
    Accept: application/json
"""
