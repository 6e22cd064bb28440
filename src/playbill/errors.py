"""Playbill error taxonomy.

Two families:

- ``SetupError`` — wiring defects (an actor without the ability a task needs,
  a verb called on a closed ability).  Fatal to the scenario, never retried.
- ``ExpectedFailure`` — conditions the caller is expected to handle (element
  missing, wait timed out, non-2xx HTTP response).  Each carries a
  ``FailureKind`` and can be captured as an ``Outcome`` with ``attempt()``
  instead of being raised.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class PlaybillError(Exception):
    """Base class for every error raised by Playbill."""

    pass


# -- Setup defects -----------------------------------------------------------


class SetupError(PlaybillError):
    """A scenario was wired incorrectly."""

    pass


class CapabilityNotFound(SetupError):
    """The registry holds no ability for the requested capability."""

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"No ability registered for capability '{capability}'")


class MissingAbility(SetupError):
    """An actor was asked for an ability it was never granted."""

    def __init__(self, actor_name: str, capability: str) -> None:
        self.actor_name = actor_name
        self.capability = capability
        super().__init__(
            f"Actor '{actor_name}' does not have the ability '{capability}'.\n\n"
            "To fix: grant the ability when building the actor's registry"
        )


class AbilityClosed(SetupError):
    """A verb was invoked on an ability after close()."""

    def __init__(self, ability_name: str, verb: str) -> None:
        self.ability_name = ability_name
        self.verb = verb
        super().__init__(f"{ability_name} is closed; cannot call {verb}()")


# -- Expected failures -------------------------------------------------------


class FailureKind(str, enum.Enum):
    ELEMENT_NOT_FOUND = "element_not_found"
    ELEMENT_TIMEOUT = "element_timeout"
    HTTP_REQUEST_FAILED = "http_request_failed"


class ExpectedFailure(PlaybillError):
    """A recoverable-by-caller condition reported by an ability verb."""

    kind: FailureKind


class ElementNotFound(ExpectedFailure):
    kind = FailureKind.ELEMENT_NOT_FOUND

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Element not found: {selector}")


class ElementTimeout(ExpectedFailure):
    kind = FailureKind.ELEMENT_TIMEOUT

    def __init__(self, selector: str, timeout_ms: int) -> None:
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out after {timeout_ms}ms waiting for '{selector}'")


class HttpRequestFailed(ExpectedFailure):
    kind = FailureKind.HTTP_REQUEST_FAILED

    def __init__(self, status_code: int | None, url: str, method: str) -> None:
        self.status_code = status_code
        self.url = url
        self.method = method
        status = status_code if status_code is not None else "no response"
        super().__init__(f"{method} {url} failed ({status})")


# -- Result values -----------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a verb call whose expected failures were captured, not raised."""

    value: T | None = None
    error: ExpectedFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> FailureKind | None:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, re-raising the captured failure if there is one."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Call ``fn`` and capture an ``ExpectedFailure`` as an ``Outcome``.

    Setup errors and anything else propagate unchanged.
    """
    try:
        return Outcome(value=fn(*args, **kwargs))
    except ExpectedFailure as exc:
        return Outcome(error=exc)
