"""Playbill configuration management.

Configuration is loaded once into frozen ``WebConfig`` / ``ApiConfig``
snapshots and handed explicitly to whatever builds actors and abilities.
Values come from a YAML file (``web:`` and ``api:`` sections) and are then
overridden by environment variables, last writer wins.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from playbill.models import (
    DEFAULT_API_TIMEOUT_MS,
    DEFAULT_BROWSER,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_ELEMENT_WAIT_TIMEOUT_MS,
    DEFAULT_EVIDENCE_BASE_PATH,
    DEFAULT_EXECUTION_TIMEOUT_MS,
    DEFAULT_VIEWPORT,
)


class PlaybillConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


# Environment variable overriding each field (last writer wins over the file).
WEB_ENV_VARS = {
    "browser_type": "BROWSER",
    "headless": "HEADLESS",
    "browsers": "BROWSERS",
    "execution_timeout_ms": "EXECUTION_TIMEOUT_MS",
    "element_wait_timeout_ms": "ELEMENT_WAIT_TIMEOUT_MS",
    "record_video": "RECORD_VIDEO",
    "screenshots_before_step": "SCREENSHOTS_BEFORE_STEP",
    "screenshots_after_step": "SCREENSHOTS_AFTER_STEP",
    "screenshots_on_failure": "SCREENSHOTS_ON_FAILURE",
    "evidence_base_path": "EVIDENCE_BASE_PATH",
    "generate_report": "GENERATE_REPORT",
    "tags": "TEST_TAGS",
    "base_url": "BASE_URL",
}

API_ENV_VARS = {
    "base_url": "API_BASE_URL",
    "timeout_ms": "API_TIMEOUT_MS",
    "auth_type": "API_AUTH_TYPE",
    "bearer_token": "API_BEARER_TOKEN",
    "basic_user": "API_BASIC_USER",
    "basic_password": "API_BASIC_PASSWORD",
    "default_headers": "API_DEFAULT_HEADERS",
    "generate_report": "GENERATE_REPORT",
    "evidence_base_path": "EVIDENCE_BASE_PATH",
    "tags": "TEST_TAGS",
}


@dataclass(frozen=True)
class WebConfig:
    """Settings for browser scenarios."""

    # Timeouts
    execution_timeout_ms: int = DEFAULT_EXECUTION_TIMEOUT_MS
    element_wait_timeout_ms: int = DEFAULT_ELEMENT_WAIT_TIMEOUT_MS

    # Browser
    browser_type: str = DEFAULT_BROWSER
    headless: bool = False
    browsers: tuple[str, ...] = ()
    viewport: tuple[int, int] = DEFAULT_VIEWPORT
    base_url: str = ""

    # Evidence
    record_video: bool = False
    screenshots_before_step: bool = False
    screenshots_after_step: bool = False
    screenshots_on_failure: bool = True
    evidence_base_path: str = DEFAULT_EVIDENCE_BASE_PATH
    generate_report: bool = True

    # Scheduling
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "browsers", tuple(self.browsers))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "viewport", tuple(self.viewport))

    @classmethod
    def from_file(cls, config_path: Path) -> WebConfig:
        """Load the ``web:`` section of a YAML file."""
        return cls._from_dict(_read_section(config_path, "web"))

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> WebConfig:
        return cls(**_map_keys(cls, data))

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> WebConfig:
        """Return a copy with environment variables applied on top."""
        env = os.environ if environ is None else environ
        changes = _env_changes(WEB_ENV_VARS, env)
        return dataclasses.replace(self, **changes) if changes else self


@dataclass(frozen=True)
class ApiConfig:
    """Settings for HTTP API scenarios."""

    base_url: str = ""
    timeout_ms: int = DEFAULT_API_TIMEOUT_MS

    # Auth: none | bearer | basic
    auth_type: str = "none"
    # repr=False keeps credentials out of logs and tracebacks.
    bearer_token: str | None = field(default=None, repr=False)
    basic_user: str | None = None
    basic_password: str | None = field(default=None, repr=False)

    default_headers: Mapping[str, str] = field(default_factory=dict)
    generate_report: bool = True
    tags: tuple[str, ...] = ()
    evidence_base_path: str = DEFAULT_EVIDENCE_BASE_PATH

    def __post_init__(self) -> None:
        object.__setattr__(self, "auth_type", (self.auth_type or "none").strip().lower())
        object.__setattr__(self, "default_headers", MappingProxyType(dict(self.default_headers)))
        object.__setattr__(self, "tags", tuple(self.tags))

    @classmethod
    def from_file(cls, config_path: Path) -> ApiConfig:
        """Load the ``api:`` section of a YAML file."""
        return cls._from_dict(_read_section(config_path, "api"))

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ApiConfig:
        return cls(**_map_keys(cls, data))

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> ApiConfig:
        """Return a copy with environment variables applied on top."""
        env = os.environ if environ is None else environ
        changes = _env_changes(API_ENV_VARS, env)
        return dataclasses.replace(self, **changes) if changes else self


# -- Loading -----------------------------------------------------------------


def resolve_config_path(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Locate the config file.

    Resolution order:
    1. Explicit ``config_path``
    2. ``PLAYBILL_CONFIG`` environment variable
    3. ``playbill.yaml`` in the current directory (if it exists)
    """
    env = os.environ if environ is None else environ
    if config_path is not None:
        return config_path
    if from_env := env.get("PLAYBILL_CONFIG", "").strip():
        return Path(from_env)
    candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_web_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> WebConfig:
    """Load a WebConfig snapshot: file (if any) then environment."""
    path = resolve_config_path(config_path, environ)
    config = WebConfig.from_file(path) if path is not None else WebConfig()
    return config.with_env_overrides(environ)


def load_api_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ApiConfig:
    """Load an ApiConfig snapshot: file (if any) then environment."""
    path = resolve_config_path(config_path, environ)
    config = ApiConfig.from_file(path) if path is not None else ApiConfig()
    return config.with_env_overrides(environ)


def file_fields(config_path: Path, section: str) -> set[str]:
    """Names of the fields the config file sets in its ``web`` or ``api`` section."""
    cls = WebConfig if section == "web" else ApiConfig
    return set(_map_keys(cls, _read_section(config_path, section)))


def env_fields(section: str, environ: Mapping[str, str] | None = None) -> set[str]:
    """Names of the fields the environment actually overrides (blank or unparsable values excluded)."""
    env = os.environ if environ is None else environ
    return set(_env_changes(WEB_ENV_VARS if section == "web" else API_ENV_VARS, env))


def parse_header_list(raw: str) -> dict[str, str]:
    """Parse ``"Name: value; Other: value"`` into a header dict."""
    headers: dict[str, str] = {}
    for pair in raw.split(";"):
        name, sep, value = pair.partition(":")
        if sep and name.strip():
            headers[name.strip()] = value.strip()
    return headers


def parse_tag_list(raw: str) -> tuple[str, ...]:
    """Split a comma-separated tag list, trimming and de-duplicating (case-insensitive)."""
    seen: set[str] = set()
    tags: list[str] = []
    for tag in raw.split(","):
        tag = tag.strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            tags.append(tag)
    return tuple(tags)


# -- Helpers -----------------------------------------------------------------


def _read_section(config_path: Path, section: str) -> dict[str, Any]:
    if not config_path.exists():
        raise PlaybillConfigError(
            f"Config file not found: {config_path}\n\nTo fix: create {DEFAULT_CONFIG_FILENAME} or unset PLAYBILL_CONFIG"
        )
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise PlaybillConfigError(f"Config file must contain a mapping: {config_path}")
    value = data.get(section) or {}
    if not isinstance(value, dict):
        raise PlaybillConfigError(f"'{section}' section must be a mapping in {config_path}")
    return value


def _normalize_key(key: str) -> str:
    # ExecutionTimeoutMs, execution_timeout_ms and execution-timeout-ms all match.
    return key.replace("_", "").replace("-", "").lower()


def _map_keys(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    """Map YAML keys (snake_case or CamelCase) onto dataclass fields, coercing types."""
    fields = {_normalize_key(f.name): f for f in dataclasses.fields(cls)}
    aliases = {"browser": "browsertype", "token": "bearertoken"}
    mapped: dict[str, Any] = {}
    for raw_key, value in data.items():
        key = _normalize_key(str(raw_key))
        key = aliases.get(key, key)
        f = fields.get(key)
        if f is None or value is None:
            continue
        try:
            mapped[f.name] = _coerce(f.name, value)
        except (ValueError, TypeError, AttributeError) as exc:
            raise PlaybillConfigError(
                f"Invalid value for '{raw_key}': {value!r} ({exc})\n\n"
                f"To fix: {_expected(f.name)}"
            ) from exc
    return mapped


def _expected(name: str) -> str:
    if name.endswith("_ms"):
        return "use a whole number of milliseconds, e.g. 30000"
    if name == "viewport":
        return "use {width: 1280, height: 720} or [1280, 720]"
    if name == "default_headers":
        return "use a mapping of header name to value"
    return "use a plain string or list of strings"


def _coerce(name: str, value: Any) -> Any:
    if name == "viewport":
        if isinstance(value, dict):
            return (int(value.get("width", DEFAULT_VIEWPORT[0])), int(value.get("height", DEFAULT_VIEWPORT[1])))
        width, height = value
        return (int(width), int(height))
    if name in ("browsers", "tags"):
        if isinstance(value, str):
            return parse_tag_list(value)
        return tuple(str(v).strip() for v in value if str(v).strip())
    if name == "default_headers":
        if isinstance(value, str):
            return parse_header_list(value)
        return {str(k): str(v) for k, v in value.items()}
    if name.endswith("_ms"):
        return int(value)
    if isinstance(value, bool):
        return value
    if name in _BOOL_FIELDS:
        parsed = _parse_bool(str(value))
        if parsed is None:
            raise PlaybillConfigError(f"Invalid boolean for '{name}': {value!r}")
        return parsed
    return str(value)


_BOOL_FIELDS = frozenset(
    {
        "headless",
        "record_video",
        "screenshots_before_step",
        "screenshots_after_step",
        "screenshots_on_failure",
        "generate_report",
    }
)


def _parse_bool(raw: str) -> bool | None:
    value = raw.strip().lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    return None


def _env_changes(env_vars: Mapping[str, str], env: Mapping[str, str]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for name, key in env_vars.items():
        if name in _BOOL_FIELDS:
            _set_bool(changes, name, env, key)
        elif name.endswith("_ms"):
            _set_int(changes, name, env, key)
        elif name in ("browsers", "tags"):
            _set_list(changes, name, env, key)
        elif name == "default_headers":
            headers = parse_header_list(env.get(key, ""))
            if headers:
                changes[name] = headers
        else:
            _set_str(changes, name, env, key)
    return changes


def _set_str(changes: dict[str, Any], name: str, env: Mapping[str, str], key: str) -> None:
    value = env.get(key, "").strip()
    if value:
        changes[name] = value


def _set_int(changes: dict[str, Any], name: str, env: Mapping[str, str], key: str) -> None:
    try:
        changes[name] = int(env.get(key, "").strip())
    except ValueError:
        pass  # blank or unparsable: keep the file value


def _set_bool(changes: dict[str, Any], name: str, env: Mapping[str, str], key: str) -> None:
    parsed = _parse_bool(env.get(key, ""))
    if parsed is not None:
        changes[name] = parsed


def _set_list(changes: dict[str, Any], name: str, env: Mapping[str, str], key: str) -> None:
    values = parse_tag_list(env.get(key, ""))
    if values:
        changes[name] = values
