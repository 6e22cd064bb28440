"""pytest plugin — run test functions as Playbill scenarios.

Usage::

    @pytest.mark.scenario_tags("smoke")
    def test_search(web_actor):
        web_actor.attempts_to(Navigate("https://example.com"))

``web_actor`` / ``api_actor`` build the actor inside a ``ScenarioScope``:
the tag filter is checked first (a mismatch skips the test before any
browser or HTTP session exists), failure evidence is captured when the test
body fails, and the abilities are always closed.

Class- and module-level ``scenario_tags`` marks play the role of feature
tags.  Override ``playbill_engine_factory`` / ``playbill_session_factory``
in a conftest to substitute the Playwright engine or the requests session.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Iterator

import pytest

from playbill.config import ApiConfig, WebConfig, load_api_config, load_web_config, parse_tag_list
from playbill.scenario import ScenarioInfo, ScenarioScope, ScenarioSkipped
from playbill.screenplay.actor import Actor

logger = logging.getLogger("playbill.pytest_plugin")

MARKER = "scenario_tags"
EXCINFO_ATTR = "_playbill_excinfo"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("playbill")
    group.addoption(
        "--playbill-config",
        action="store",
        default=None,
        help="Path to playbill.yaml (default: PLAYBILL_CONFIG or ./playbill.yaml)",
    )
    group.addoption(
        "--playbill-tags",
        action="store",
        default=None,
        help="Comma-separated tag filter; overrides TEST_TAGS and the config file",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", f"{MARKER}(*tags): tags used by the playbill tag filter")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo) -> Iterator[None]:
    outcome = yield
    report = outcome.get_result()
    # Fixture teardown reads this to decide whether to capture failure evidence.
    if report.when == "call" and report.failed and call.excinfo is not None:
        setattr(item, EXCINFO_ATTR, call.excinfo)


# -- Helpers -----------------------------------------------------------------


def scenario_info_for(node: Any) -> ScenarioInfo:
    """Scenario title and tags from a test item's ``scenario_tags`` marks.

    Marks on the function itself are scenario tags; marks inherited from the
    class or module are feature tags.
    """
    own: list[str] = []
    inherited: list[str] = []
    for owner, mark in node.iter_markers_with_node(MARKER):
        (own if owner is node else inherited).extend(str(tag) for tag in mark.args)
    return ScenarioInfo(title=node.name, tags=tuple(own), feature_tags=tuple(inherited))


def _apply_tag_option(config: Any, option: str | None) -> Any:
    if option is None:
        return config
    return dataclasses.replace(config, tags=parse_tag_list(option))


def run_scope(scope: ScenarioScope, node: Any) -> Iterator[Actor]:
    """Enter ``scope`` for a test item, yield the actor, then exit with the test's outcome."""
    try:
        actor = scope.__enter__()
    except ScenarioSkipped as exc:
        pytest.skip(str(exc))
    try:
        yield actor
    finally:
        excinfo = getattr(node, EXCINFO_ATTR, None)
        if excinfo is not None:
            scope.__exit__(excinfo.type, excinfo.value, excinfo.tb)
        else:
            scope.__exit__(None, None, None)


# -- Fixtures ----------------------------------------------------------------


def _config_path(pytestconfig: pytest.Config) -> Path | None:
    raw = pytestconfig.getoption("--playbill-config")
    return Path(raw) if raw else None


@pytest.fixture(scope="session")
def web_config(pytestconfig: pytest.Config) -> WebConfig:
    """WebConfig snapshot for the whole session (file, then environment, then --playbill-tags)."""
    config = load_web_config(_config_path(pytestconfig))
    return _apply_tag_option(config, pytestconfig.getoption("--playbill-tags"))


@pytest.fixture(scope="session")
def api_config(pytestconfig: pytest.Config) -> ApiConfig:
    """ApiConfig snapshot for the whole session (file, then environment, then --playbill-tags)."""
    config = load_api_config(_config_path(pytestconfig))
    return _apply_tag_option(config, pytestconfig.getoption("--playbill-tags"))


@pytest.fixture
def playbill_engine_factory() -> Any:
    """Playwright engine factory for ``web_actor``; None means the real sync Playwright."""
    return None


@pytest.fixture
def playbill_session_factory() -> Any:
    """requests session factory for ``api_actor``; None means ``requests.Session``."""
    return None


@pytest.fixture
def web_actor(request: pytest.FixtureRequest, web_config: WebConfig, playbill_engine_factory: Any) -> Iterator[Actor]:
    info = scenario_info_for(request.node)
    scope = ScenarioScope.web(info, web_config, engine_factory=playbill_engine_factory)
    yield from run_scope(scope, request.node)


@pytest.fixture
def api_actor(request: pytest.FixtureRequest, api_config: ApiConfig, playbill_session_factory: Any) -> Iterator[Actor]:
    info = scenario_info_for(request.node)
    scope = ScenarioScope.api(info, api_config, session_factory=playbill_session_factory)
    yield from run_scope(scope, request.node)
