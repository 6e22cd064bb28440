"""Best-effort release of external resources.

A release chain is an ordered list of ``(label, callable)`` steps.  Every step
is attempted even when an earlier one fails; failures are logged and
returned, never raised, so teardown cannot mask the error that ended the
scenario.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Iterable

logger = logging.getLogger("playbill.cleanup")


@dataclasses.dataclass(frozen=True)
class ReleaseFailure:
    """A release step that raised during teardown."""

    label: str
    error: BaseException


def release_in_order(
    steps: Iterable[tuple[str, Callable[[], object]]],
    owner: str = "",
) -> list[ReleaseFailure]:
    """Run each release step in order, collecting failures."""
    failures: list[ReleaseFailure] = []
    for label, release in steps:
        try:
            release()
        except Exception as exc:
            logger.warning("%s: failed to release %s: %s", owner or "cleanup", label, exc)
            failures.append(ReleaseFailure(label=label, error=exc))
    return failures
