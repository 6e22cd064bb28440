"""Screenplay Protocols.

These protocols define the contract between an Actor and the declarative
values it runs.  Tasks change the world; Questions only look at it.  Both
are immutable and carry a human-readable ``description`` for logs and
reports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from playbill.screenplay.actor import Actor

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Task(Protocol):
    """An atomic or composite business action performed by an actor."""

    @property
    def description(self) -> str: ...

    def perform_as(self, actor: Actor) -> None: ...


@runtime_checkable
class Question(Protocol[T_co]):
    """A read-only query of application state answered by an actor."""

    @property
    def description(self) -> str: ...

    def answered_by(self, actor: Actor) -> T_co: ...
