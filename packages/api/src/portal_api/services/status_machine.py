# This project was developed with assistance from AI tools.
"""Generic status state machine.

A ``StatusMachine`` answers the four lifecycle questions for one entity kind
(is this transition valid, where can it go next, is it terminal, and why is a
transition blocked). Transition edges come from the domain enum; display
metadata is supplied separately and only used to word explanations.
"""

import enum
from collections.abc import Mapping

from pydantic import BaseModel


class StatusDefinition(BaseModel):
    """Display metadata for a status. Not behaviour-bearing."""

    value: str
    label: str
    description: str
    color: str
    icon: str


class StatusMachine:
    """Transition rules for one entity kind."""

    def __init__(
        self,
        status_enum: type[enum.Enum],
        *,
        noun: str,
        definitions: Mapping[str, StatusDefinition],
    ):
        self._enum = status_enum
        self._transitions: dict[str, tuple[str, ...]] = {
            src.value: tuple(dst.value for dst in dsts)
            for src, dsts in status_enum.valid_transitions().items()
        }
        self._terminal = frozenset(s.value for s in status_enum.terminal_statuses())
        self._initial = tuple(
            s.value for s in status_enum if s in status_enum.initial_statuses()
        )
        self._noun = noun
        self._definitions = dict(definitions)

    @property
    def statuses(self) -> list[str]:
        return [s.value for s in self._enum]

    @staticmethod
    def normalize(status) -> str | None:
        if status is None or status == "":
            return None
        return status.value if isinstance(status, enum.Enum) else str(status)

    def is_valid_transition(self, from_status, to_status) -> bool:
        """Return True if ``from_status -> to_status`` is allowed.

        Same status is always valid (no change). An absent current status
        only permits the initial statuses.
        """
        src = self.normalize(from_status)
        dst = self.normalize(to_status)
        if dst is None:
            return False
        if src is None:
            return dst in self._initial
        if src not in self._transitions:
            return False
        if src == dst:
            return True
        return dst in self._transitions[src]

    def allowed_transitions(self, from_status) -> list[str]:
        src = self.normalize(from_status)
        if src is None:
            return list(self._initial)
        return list(self._transitions.get(src, ()))

    def is_terminal(self, status) -> bool:
        return self.normalize(status) in self._terminal

    def definition(self, status) -> StatusDefinition | None:
        value = self.normalize(status)
        return self._definitions.get(value) if value else None

    def label(self, status) -> str:
        definition = self.definition(status)
        if definition:
            return definition.label
        return self.normalize(status) or "no status"

    def explain_blocked(self, from_status, to_status) -> str:
        """Human-readable reason a transition is refused."""
        from_label = self.label(from_status)
        if self.is_terminal(from_status):
            return f'A {self._noun} with status "{from_label}" can no longer be modified.'

        allowed = [self.label(s) for s in self.allowed_transitions(from_status)]
        if not allowed:
            return f'No transition is possible from "{from_label}".'

        return (
            f'Transition from "{from_label}" to "{self.label(to_status)}" is not allowed. '
            f"Allowed transitions: {', '.join(allowed)}."
        )
