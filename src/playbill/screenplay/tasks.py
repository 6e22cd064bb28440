"""Built-in tasks.

Each task is a frozen dataclass: it holds only its parameters and can be
performed any number of times, by any actor that has the ability it needs.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Mapping

from playbill.abilities.api import ApiAbility
from playbill.abilities.web import WebAbility

if TYPE_CHECKING:
    from playbill.screenplay.actor import Actor
    from playbill.screenplay.protocols import Task


# ---------------------------------------------------------------------------
# Web
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class Navigate:
    url: str

    @property
    def description(self) -> str:
        return f"navigate to {self.url}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(WebAbility).navigate(self.url)


@dataclasses.dataclass(frozen=True)
class Click:
    selector: str

    @property
    def description(self) -> str:
        return f"click {self.selector}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(WebAbility).click(self.selector)


@dataclasses.dataclass(frozen=True)
class Fill:
    selector: str
    text: str

    @property
    def description(self) -> str:
        return f"fill {self.selector} with '{self.text}'"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(WebAbility).fill(self.selector, self.text)


@dataclasses.dataclass(frozen=True)
class PressKey:
    selector: str
    key: str

    @property
    def description(self) -> str:
        return f"press {self.key} in {self.selector}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(WebAbility).press_key(self.selector, self.key)


@dataclasses.dataclass(frozen=True)
class WaitFor:
    """Wait for an element; None uses the configured element wait timeout."""

    selector: str
    timeout_ms: int | None = None

    @property
    def description(self) -> str:
        return f"wait for {self.selector}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(WebAbility).wait_for(self.selector, self.timeout_ms)


@dataclasses.dataclass(frozen=True)
class TakeScreenshot:
    label: str | None = None

    @property
    def description(self) -> str:
        return f"take screenshot {self.label}" if self.label else "take screenshot"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(WebAbility).screenshot(label=self.label)


@dataclasses.dataclass(frozen=True)
class Search:
    """Type a term into a search box and submit it with Enter."""

    term: str
    box_selector: str = "textarea[name='q']"

    @property
    def description(self) -> str:
        return f"search for '{self.term}'"

    def perform_as(self, actor: Actor) -> None:
        actor.attempts_to(
            WaitFor(self.box_selector),
            Fill(self.box_selector, self.term),
            PressKey(self.box_selector, "Enter"),
        )


@dataclasses.dataclass(frozen=True)
class Sequence:
    """Composite task: runs its children in order, stopping at the first failure."""

    tasks: tuple[Task, ...]
    title: str = ""

    @classmethod
    def of(cls, *tasks: Task, title: str = "") -> Sequence:
        return cls(tuple(tasks), title)

    @property
    def description(self) -> str:
        return self.title or ", then ".join(t.description for t in self.tasks)

    def perform_as(self, actor: Actor) -> None:
        actor.attempts_to(*self.tasks)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class SendGet:
    endpoint: str
    params: Mapping[str, Any] | None = None

    @property
    def description(self) -> str:
        if self.params:
            return f"send GET {self.endpoint} with {dict(self.params)}"
        return f"send GET {self.endpoint}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(ApiAbility).get(self.endpoint, params=self.params)


@dataclasses.dataclass(frozen=True)
class SendPost:
    endpoint: str
    body: Any = None

    @property
    def description(self) -> str:
        return f"send POST {self.endpoint}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(ApiAbility).post(self.endpoint, self.body)


@dataclasses.dataclass(frozen=True)
class SendPut:
    endpoint: str
    body: Any = None

    @property
    def description(self) -> str:
        return f"send PUT {self.endpoint}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(ApiAbility).put(self.endpoint, self.body)


@dataclasses.dataclass(frozen=True)
class SendDelete:
    endpoint: str

    @property
    def description(self) -> str:
        return f"send DELETE {self.endpoint}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(ApiAbility).delete(self.endpoint)


@dataclasses.dataclass(frozen=True)
class SetHeader:
    name: str
    value: str = dataclasses.field(repr=False)

    @property
    def description(self) -> str:
        return f"set header {self.name}"

    def perform_as(self, actor: Actor) -> None:
        actor.ability_to(ApiAbility).set_header(self.name, self.value)
