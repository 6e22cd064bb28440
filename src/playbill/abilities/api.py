"""Playbill API Ability — HTTP calls with request/response tracking.

Wraps a ``requests.Session``: resolves endpoints against the configured base
URL, applies auth and default headers to every request, serializes JSON
bodies, and records method, URL, request body, status and raw response of
every call, including failed ones, for assertions and evidence.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping, TypeVar
from urllib.parse import urlencode

import requests
from requests.structures import CaseInsensitiveDict

from playbill import serialization
from playbill.abilities.base import Ability, LastOperation
from playbill.cleanup import ReleaseFailure, release_in_order
from playbill.config import ApiConfig
from playbill.credentials import authorization_header
from playbill.errors import HttpRequestFailed
from playbill.screenplay.registry import Capability

if TYPE_CHECKING:
    from playbill.evidence import EvidenceCollector

logger = logging.getLogger("playbill.abilities.api")

T = TypeVar("T")

_NO_BODY = object()


def _with_query(url: str, params: Mapping[str, Any] | None) -> str:
    """Append ``params`` to ``url`` the way requests encodes them."""
    if not params:
        return url
    prepared = requests.PreparedRequest()
    try:
        prepared.prepare_url(url, dict(params))
    except requests.RequestException:
        # No scheme (no base_url configured): the send itself reports it.
        return f"{url}?{urlencode(dict(params), doseq=True)}"
    return prepared.url


class ApiAbility(Ability):
    """Call an HTTP API through one session per scenario."""

    capability = Capability.API
    name = "HttpApiAbility"

    def __init__(
        self,
        config: ApiConfig | None = None,
        evidence: EvidenceCollector | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        """
        Args:
            config: API settings snapshot (base URL, timeout, auth, default headers).
            evidence: Collector receiving request/response logs of every call.
            session_factory: Builds the underlying requests session on first use.
        """
        super().__init__()
        self._config = config or ApiConfig()
        self._base_url = self._config.base_url.rstrip("/")
        self._evidence = evidence
        self._session_factory = session_factory
        self._session: requests.Session | None = None
        self._call_count = 0

        # Auth first, then default headers (which may extend but not silently replace it)
        self._headers: CaseInsensitiveDict[str] = CaseInsensitiveDict()
        auth = authorization_header(self._config)
        if auth:
            self._headers["Authorization"] = auth
        for name, value in self._config.default_headers.items():
            if name.lower() == "authorization" and "Authorization" in self._headers:
                logger.info("Default header 'Authorization' replaces the %s auth header", self._config.auth_type)
            self._headers[name] = value

    @property
    def evidence(self) -> EvidenceCollector | None:
        return self._evidence

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return dict(self._headers)

    # -- Last-call accessors -------------------------------------------------

    @property
    def last_status_code(self) -> int | None:
        return self.last.status

    @property
    def last_request_url(self) -> str | None:
        return self.last.target

    @property
    def last_method(self) -> str | None:
        return self.last.method

    @property
    def last_request_body(self) -> str | None:
        return self.last.payload

    @property
    def last_response_content(self) -> str | None:
        return self.last.raw_response

    def last_json(self, model: type[T] | None = None) -> Any:
        """Decode the last response body (None when empty)."""
        return serialization.loads(self.last.raw_response, model)

    # -- Session lifecycle ---------------------------------------------------

    def _open(self) -> None:
        self._session = self._session_factory()

    def _release(self) -> list[ReleaseFailure]:
        session, self._session = self._session, None
        if session is None:
            return []
        return release_in_order([("session", session.close)], owner=self.name)

    # -- Verbs ---------------------------------------------------------------

    def set_header(self, name: str, value: str) -> None:
        """Set (or replace) a header sent with every following request."""
        self._activate("set_header")
        self._headers[name] = value

    def normalize(self, endpoint: str) -> str:
        """Resolve ``endpoint`` against the base URL; absolute URLs pass through."""
        endpoint = (endpoint or "").strip()
        if "://" in endpoint:
            return endpoint
        if not endpoint:
            return self._base_url
        if not self._base_url:
            return endpoint
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    def get(self, endpoint: str, model: type[T] | None = None, params: Mapping[str, Any] | None = None) -> Any:
        """GET ``endpoint``; ``params`` are URL-encoded into the query string."""
        response = self._send("GET", endpoint, params=params)
        return serialization.loads(response.text, model)

    def post(self, endpoint: str, body: Any, model: type[T] | None = None) -> Any:
        response = self._send("POST", endpoint, body)
        return serialization.loads(response.text, model)

    def put(self, endpoint: str, body: Any, model: type[T] | None = None) -> Any:
        response = self._send("PUT", endpoint, body)
        return serialization.loads(response.text, model)

    def delete(self, endpoint: str) -> None:
        self._send("DELETE", endpoint)

    def _send(
        self,
        method: str,
        endpoint: str,
        body: Any = _NO_BODY,
        params: Mapping[str, Any] | None = None,
    ) -> requests.Response:
        self._activate(method.lower())
        url = _with_query(self.normalize(endpoint), params)
        payload = serialization.dumps(body) if body is not _NO_BODY else None
        self._call_count += 1
        self.last = LastOperation(method=method, target=url, payload=payload)

        headers = dict(self._headers)
        if payload is not None:
            headers["Content-Type"] = "application/json"

        logger.info("API %s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                data=payload.encode("utf-8") if payload is not None else None,
                headers=headers,
                timeout=self._config.timeout_ms / 1000,
            )
        except requests.RequestException as exc:
            self.last = dataclasses.replace(self.last, result=f"{type(exc).__name__}: {exc}")
            self._record_evidence()
            raise HttpRequestFailed(None, url, method) from exc

        ok = 200 <= response.status_code < 300
        self.last = dataclasses.replace(
            self.last,
            status=response.status_code,
            raw_response=response.text,
            result="ok" if ok else "failed",
        )
        self._record_evidence()
        if not ok:
            logger.warning("API %s %s -> %d", method, url, response.status_code)
            raise HttpRequestFailed(response.status_code, url, method)
        return response

    def _record_evidence(self) -> None:
        if self._evidence is not None:
            self._evidence.record_exchange(self, f"{self.last.method.lower()}_{self._call_count:02d}")
