"""Screenplay core: actors, the capability registry, and the task/question contracts.

Built-in tasks and questions live in ``playbill.screenplay.tasks`` and
``playbill.screenplay.questions``.
"""

from playbill.screenplay.actor import Actor
from playbill.screenplay.protocols import Question, Task
from playbill.screenplay.registry import Capability, CapabilityRegistry, capability_of

__all__ = [
    "Actor",
    "Capability",
    "CapabilityRegistry",
    "Question",
    "Task",
    "capability_of",
]
