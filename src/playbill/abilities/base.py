"""Ability base — lifecycle shared by the web and API abilities.

Every ability owns one external session and moves through::

    UNINITIALIZED --first verb--> ACTIVE --close()--> CLOSED

The session is opened lazily by the first verb and exactly once.  CLOSED is
terminal: a verb after close() raises AbilityClosed.  close() is idempotent,
and on an ability that never opened a session it changes nothing.

The set of abilities is closed: each subclass that declares a
``capability`` must claim a tag nobody else has claimed.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import threading
from typing import Any, ClassVar

from playbill.cleanup import ReleaseFailure
from playbill.errors import AbilityClosed
from playbill.screenplay.registry import Capability

logger = logging.getLogger("playbill.abilities")


class AbilityState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclasses.dataclass(frozen=True)
class LastOperation:
    """Metadata about the most recent verb, kept for diagnostics and evidence."""

    method: str | None = None
    target: str | None = None  # selector or URL
    payload: str | None = None  # filled text, key, or serialized request body
    status: int | None = None
    result: Any = None
    raw_response: str | None = None


class Ability:
    """Base class for the closed set of abilities (one per ``Capability``)."""

    capability: ClassVar[Capability]
    name: ClassVar[str] = "Ability"

    _variants: ClassVar[dict[Capability, type]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        tag = cls.__dict__.get("capability")
        if tag is None:
            return  # refinement of an existing variant
        if not isinstance(tag, Capability):
            raise TypeError(f"{cls.__name__}.capability must be a Capability, got {tag!r}")
        existing = Ability._variants.get(tag)
        if existing is not None and existing.__qualname__ != cls.__qualname__:
            raise TypeError(
                f"Capability '{tag.value}' is already provided by {existing.__name__}; "
                "add a new Capability instead of a second ability for the same one"
            )
        Ability._variants[tag] = cls

    def __init__(self) -> None:
        self._state = AbilityState.UNINITIALIZED
        self._init_lock = threading.Lock()
        self.last = LastOperation()

    @property
    def state(self) -> AbilityState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is AbilityState.ACTIVE

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self._state.value})"

    # -- Lifecycle -------------------------------------------------------------

    def _activate(self, verb: str) -> None:
        """Make sure the session exists before ``verb`` runs."""
        if self._state is AbilityState.ACTIVE:
            return
        with self._init_lock:
            if self._state is AbilityState.CLOSED:
                raise AbilityClosed(self.name, verb)
            if self._state is AbilityState.ACTIVE:
                return
            logger.info("%s: opening session (first verb: %s)", self.name, verb)
            try:
                self._open()
            except Exception:
                # Leave nothing half-open; the original error is what matters.
                self._release()
                raise
            self._state = AbilityState.ACTIVE

    def close(self) -> list[ReleaseFailure]:
        """Release the session.  Safe to call any number of times."""
        with self._init_lock:
            # An unused ability has nothing to release and stays usable.
            if self._state is not AbilityState.ACTIVE:
                return []
            self._state = AbilityState.CLOSED
        logger.info("%s: closing session", self.name)
        return self._release()

    def _open(self) -> None:
        raise NotImplementedError

    def _release(self) -> list[ReleaseFailure]:
        raise NotImplementedError

    def __enter__(self) -> Ability:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
