"""Built-in questions.

Questions never change application state.  Most simply read a value through
an ability; a few turn an expected failure into a plain answer
(``ElementAppears`` answers False on timeout, ``ThePageTitle`` falls back to
the URL when the page has no title element).
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from playbill.abilities.api import ApiAbility
from playbill.abilities.web import WebAbility
from playbill.errors import ElementNotFound, ElementTimeout
from playbill.serialization import lookup_path

if TYPE_CHECKING:
    from playbill.screenplay.actor import Actor


# ---------------------------------------------------------------------------
# Web
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class TheCurrentUrl:
    @property
    def description(self) -> str:
        return "the current URL"

    def answered_by(self, actor: Actor) -> str:
        return actor.ability_to(WebAbility).get_current_url()


@dataclasses.dataclass(frozen=True)
class TheText:
    selector: str

    @property
    def description(self) -> str:
        return f"the text of {self.selector}"

    def answered_by(self, actor: Actor) -> str:
        return actor.ability_to(WebAbility).get_text(self.selector)


@dataclasses.dataclass(frozen=True)
class ThePageTitle:
    @property
    def description(self) -> str:
        return "the page title"

    def answered_by(self, actor: Actor) -> str:
        web = actor.ability_to(WebAbility)
        try:
            return web.get_text("title")
        except ElementNotFound:
            return web.get_current_url()


@dataclasses.dataclass(frozen=True)
class IsVisible:
    selector: str

    @property
    def description(self) -> str:
        return f"whether {self.selector} is visible"

    def answered_by(self, actor: Actor) -> bool:
        return actor.ability_to(WebAbility).is_visible(self.selector)


@dataclasses.dataclass(frozen=True)
class TheTextIsVisible:
    text: str

    @property
    def description(self) -> str:
        return f"whether the text '{self.text}' is visible"

    def answered_by(self, actor: Actor) -> bool:
        return actor.ability_to(WebAbility).is_visible(f"text={self.text}")


@dataclasses.dataclass(frozen=True)
class ElementAppears:
    selector: str
    timeout_ms: int | None = None

    @property
    def description(self) -> str:
        return f"whether {self.selector} appears"

    def answered_by(self, actor: Actor) -> bool:
        try:
            actor.ability_to(WebAbility).wait_for(self.selector, self.timeout_ms)
        except ElementTimeout:
            return False
        return True


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class TheLastStatusCode:
    @property
    def description(self) -> str:
        return "the last status code"

    def answered_by(self, actor: Actor) -> int | None:
        return actor.ability_to(ApiAbility).last_status_code


@dataclasses.dataclass(frozen=True)
class TheResponseBody:
    """The last response decoded as JSON, optionally into a dataclass ``model``."""

    model: Any = None

    @property
    def description(self) -> str:
        return "the response body"

    def answered_by(self, actor: Actor) -> Any:
        return actor.ability_to(ApiAbility).last_json(self.model)


@dataclasses.dataclass(frozen=True)
class TheResponseHasProperty:
    path: str

    @property
    def description(self) -> str:
        return f"whether the response has '{self.path}'"

    def answered_by(self, actor: Actor) -> bool:
        found, _ = lookup_path(actor.ability_to(ApiAbility).last_json(), self.path)
        return found
