"""State definitions for the state machine.

States are the nodes of the transition graph. A state is an immutable value
made of a name and a type; it is created once while a configuration is
loaded and then shared by the transitions that reference it and by every
entity that currently sits in it.

State Types:
    **INITIAL:**
    - Entry point assigned by ``StateMachine.initialize``
    - Exactly one per configured machine

    **NORMAL:**
    - Standard state, the default when no type is configured

    **FINAL:**
    - Terminal state
    - ``StateMachine.apply`` refuses any transition leaving it, even if a
      transition nominally lists it as a source

    **BREAKPOINT:**
    - Marker for states where a caller wants to pause and inspect; the
      engine treats it like NORMAL
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class StateType(Enum):
    """Supported state types."""

    INITIAL = "INITIAL"
    NORMAL = "NORMAL"
    FINAL = "FINAL"
    BREAKPOINT = "BREAKPOINT"

    @classmethod
    def supported_types(cls) -> List[str]:
        """Names of all supported state types."""
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Any) -> "StateType":
        """Parse a state type, ignoring case and surrounding whitespace.

        Args:
            value: A StateType member or a type name such as ``"final"``.

        Returns:
            The matching StateType.

        Raises:
            ValueError: If the value is not a supported type.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f'"{value}" is not a supported state type. '
                f"Supported types: {', '.join(cls.supported_types())}"
            ) from None


@dataclass(frozen=True)
class State:
    """A named node of the state graph.

    Two states are equal when both their names and types match, so states
    can be used as dictionary keys and set members.

    Attributes:
        name: Unique, trimmed, non-empty state name
        type: Category of the state
    """

    name: str
    type: StateType = field(default=StateType.NORMAL)

    def __post_init__(self) -> None:
        name = str(self.name).strip()
        if not name:
            raise ValueError("State name must not be empty")
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "type", StateType.parse(self.type))

    @property
    def is_initial(self) -> bool:
        return self.type is StateType.INITIAL

    @property
    def is_final(self) -> bool:
        return self.type is StateType.FINAL

    @property
    def is_breakpoint(self) -> bool:
        return self.type is StateType.BREAKPOINT

    def to_dict(self) -> dict[str, str]:
        """Convert the state to a plain dictionary."""
        return {"name": self.name, "type": self.type.value}

    def __str__(self) -> str:
        return self.name
