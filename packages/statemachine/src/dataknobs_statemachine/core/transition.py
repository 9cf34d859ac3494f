"""Transitions between states.

A transition is a named edge set: it accepts any of its source states and
resolves to one of its destination states. Destinations are keyed by an
integer outcome code. Without an action the outcome code is always 0; with
an action, the action's return value is the outcome code.
"""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from dataknobs_statemachine.core.action import IAction
from dataknobs_statemachine.core.state import State
from dataknobs_statemachine.exceptions import (
    ResolutionError,
    TransitionNotAllowedError,
)

logger = logging.getLogger(__name__)

DEFAULT_OUTCOME = 0


class Transition:
    """Immutable transition definition.

    Args:
        name: Unique transition name.
        sources: States the transition may be applied from.
        destinations: Mapping of outcome code to destination state.
        action: Optional action computing the outcome code.
        is_default: Marks the transition as the default choice from its
            source states.
    """

    def __init__(
        self,
        name: str,
        sources: Iterable[State],
        destinations: Mapping[int, State],
        action: IAction | None = None,
        is_default: bool = False,
    ):
        name = str(name).strip()
        if not name:
            raise ValueError("Transition name must not be empty")
        self._name = name
        self._sources: Tuple[State, ...] = tuple(sources)
        self._source_names = frozenset(state.name for state in self._sources)
        self._destinations = MappingProxyType(
            {int(code): state for code, state in destinations.items()}
        )
        self._action = action
        self._is_default = bool(is_default)

    @property
    def name(self) -> str:
        return self._name

    @property
    def sources(self) -> Tuple[State, ...]:
        return self._sources

    @property
    def destinations(self) -> Mapping[int, State]:
        return self._destinations

    @property
    def action(self) -> IAction | None:
        return self._action

    @property
    def has_action(self) -> bool:
        return self._action is not None

    @property
    def is_default(self) -> bool:
        return self._is_default

    def can(self, state: State | None) -> bool:
        """Check whether ``state`` is one of this transition's sources."""
        if state is None:
            return False
        return state.name in self._source_names

    def resolve(self, outcome: int) -> State:
        """Return the destination registered for an outcome code.

        Raises:
            ResolutionError: If no destination is registered for ``outcome``.
        """
        try:
            return self._destinations[outcome]
        except KeyError:
            raise ResolutionError(
                f"No suitable output state found for the condition {outcome} "
                f'within the transition "{self._name}".',
                transition_name=self._name,
                outcome=outcome,
                details={
                    "transition": self._name,
                    "outcome": outcome,
                    "available": sorted(self._destinations),
                },
            ) from None

    def apply(self, state: State) -> State:
        """Resolve the destination state for a transition out of ``state``.

        The result may be ``state`` itself when the transition is a
        self-loop.

        Raises:
            TransitionNotAllowedError: If ``state`` is not a source state.
            ResolutionError: If the outcome code has no destination.
        """
        if not self.can(state):
            raise TransitionNotAllowedError(
                self._name, state.name if state is not None else None
            )

        outcome = DEFAULT_OUTCOME
        if self._action is not None:
            outcome = self._action.execute()

        destination = self.resolve(outcome)
        logger.debug(
            f"Transition '{self._name}' resolved '{state.name}' -> "
            f"'{destination.name}' (outcome {outcome})"
        )
        return destination

    def to_dict(self) -> dict:
        """Convert the transition to a plain dictionary."""
        return {
            "name": self._name,
            "from": [state.name for state in self._sources],
            "to": {code: state.name for code, state in self._destinations.items()},
            "action": str(self._action) if self._action is not None else None,
            "default": self._is_default,
        }

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        sources = ", ".join(state.name for state in self._sources)
        destinations = ", ".join(
            f"{code}: {state.name}" for code, state in sorted(self._destinations.items())
        )
        return f"Transition({self._name!r}, from=[{sources}], to={{{destinations}}})"
