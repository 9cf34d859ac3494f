"""Stateful entity capability.

The engine never creates or owns entities. It only reads and writes the
current state of whatever object the caller passes in, through the two
operations of ``StatefulEntity``.
"""

from typing import Protocol, runtime_checkable

from dataknobs_statemachine.core.state import State


@runtime_checkable
class StatefulEntity(Protocol):
    """Anything whose current state can be read and replaced."""

    def get_state(self) -> State | None:
        ...

    def set_state(self, state: State) -> None:
        ...


class StatefulObject:
    """Minimal entity holding its current state in an attribute."""

    def __init__(self, state: State | None = None):
        self.state = state

    def get_state(self) -> State | None:
        return self.state

    def set_state(self, state: State) -> None:
        self.state = state

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self.state!s})"
