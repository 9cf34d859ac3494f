"""State machine orchestration.

A ``StateMachine`` is built once per configuration and reused for any
number of entities. It keeps no per-entity data: the current state lives on
the entity itself, which makes a single machine safe to share across threads
as long as each entity is only transitioned by one thread at a time. The
machine reads and then writes an entity's state without any locking, so
callers applying transitions to the same entity concurrently must serialize
those calls themselves.

Example:
    ```python
    from dataknobs_statemachine import StateMachine, StatefulObject

    machine = StateMachine(config={
        "states": {
            "draft": {"type": "initial"},
            "published": {"type": "final"},
        },
        "transitions": {
            "publish": {"from": "draft", "to": "published"},
        },
    })

    document = StatefulObject()
    machine.initialize(document)      # True, document is in "draft"
    machine.can("publish", document)  # True
    machine.apply("publish", document)  # True, document is in "published"
    ```
"""

import logging
from typing import Any, List, Mapping

from dataknobs_statemachine.config.builder import StateGraph
from dataknobs_statemachine.config.loader import ConfigLoader
from dataknobs_statemachine.core.entity import StatefulEntity
from dataknobs_statemachine.core.state import State
from dataknobs_statemachine.core.transition import Transition
from dataknobs_statemachine.events import (
    EventName,
    IEventHub,
    NullEventHub,
    StateEvent,
    StateMachineEvent,
    TransitionEvent,
)
from dataknobs_statemachine.exceptions import (
    FinalStateError,
    InvalidConfigurationError,
    TransitionNotAllowedError,
    TransitionNotFoundError,
)

logger = logging.getLogger(__name__)


class StateMachine:
    """Drive stateful entities through a configured state graph."""

    def __init__(
        self,
        loader: ConfigLoader | None = None,
        event_hub: IEventHub | None = None,
        config: Any = None,
    ):
        """Initialize the StateMachine.

        Args:
            loader: Loader used by ``configure``; a default ConfigLoader if None.
            event_hub: Receives lifecycle notifications; a no-op hub if None.
            config: Optional configuration to load immediately.
        """
        self._loader = loader or ConfigLoader()
        self._event_hub: IEventHub = event_hub if event_hub is not None else NullEventHub()
        self._graph: StateGraph | None = None
        if config is not None:
            self.configure(config)

    def configure(self, config: Any) -> "StateMachine":
        """Load a configuration and replace the current graph.

        Args:
            config: Raw configuration mapping, validated StateMachineConfig,
                or an already built StateGraph.

        Returns:
            This machine, for chaining.

        Raises:
            InvalidConfigurationError: If the configuration is invalid. The
                previous graph, if any, is kept.
        """
        self._graph = self._loader.load(config)
        return self

    @property
    def loader(self) -> ConfigLoader:
        return self._loader

    @property
    def event_hub(self) -> IEventHub:
        return self._event_hub

    @property
    def is_configured(self) -> bool:
        return self._graph is not None

    @property
    def graph(self) -> StateGraph:
        if self._graph is None:
            raise InvalidConfigurationError("The state machine has not been configured.")
        return self._graph

    @property
    def states(self) -> Mapping[str, State]:
        return self.graph.states

    @property
    def transitions(self) -> Mapping[str, Transition]:
        return self.graph.transitions

    @property
    def initial_state(self) -> State:
        """The configured initial state.

        Raises:
            InvalidConfigurationError: If no initial state is loaded.
        """
        if self._graph is None or self._graph.initial_state is None:
            raise InvalidConfigurationError("No state is defined as the initial state.")
        return self._graph.initial_state

    def get_state(self, name: str) -> State | None:
        return self.graph.get_state(name)

    def get_transition(self, name: str) -> Transition:
        """Look up a transition by name.

        Raises:
            TransitionNotFoundError: If the transition is not defined.
        """
        transition = self.graph.get_transition(name)
        if transition is None:
            raise TransitionNotFoundError(str(name).strip())
        return transition

    def initialize(self, entity: StatefulEntity) -> bool:
        """Put an entity into the initial state.

        Returns:
            True if the entity was initialized, False if it already had a
            state (the entity is left untouched).
        """
        if entity.get_state() is not None:
            return False

        initial_state = self.initial_state
        self._dispatch(StateMachineEvent(EventName.BEFORE_INITIALIZE, self, entity))
        entity.set_state(initial_state)
        self._dispatch(StateMachineEvent(EventName.AFTER_INITIALIZE, self, entity))

        logger.debug(f"Initialized {entity!r} in state '{initial_state.name}'")
        return True

    def can(self, transition_name: str, entity: StatefulEntity) -> bool:
        """Check whether a transition accepts the entity's current state.

        This only checks the transition's source states; ``apply`` may still
        refuse the transition if the entity sits in a final state.

        Raises:
            TransitionNotFoundError: If the transition is not defined.
        """
        return self.get_transition(transition_name).can(entity.get_state())

    def apply(self, transition_name: str, entity: StatefulEntity) -> bool:
        """Apply a transition to an entity.

        Returns:
            True if the entity's state changed, False if the transition
            resolved back to the current state.

        Raises:
            TransitionNotFoundError: If the transition is not defined.
            TransitionNotAllowedError: If the transition does not accept the
                entity's current state.
            FinalStateError: If the entity is in a final state.
            ResolutionError: If the action's outcome has no destination.
        """
        transition = self.get_transition(transition_name)
        from_state = entity.get_state()

        if not transition.can(from_state):
            raise TransitionNotAllowedError(
                transition.name, from_state.name if from_state is not None else None
            )
        if from_state.is_final:
            raise FinalStateError(from_state.name, transition.name)

        self._dispatch(
            TransitionEvent(
                EventName.BEFORE_APPLY_TRANSITION, self, entity,
                from_state=from_state, to_state=from_state, transition=transition,
            )
        )

        to_state = transition.apply(from_state)
        state_changed = to_state != from_state
        if state_changed:
            self._dispatch(
                StateEvent(
                    EventName.BEFORE_STATE_CHANGE, self, entity,
                    from_state=from_state, to_state=to_state,
                )
            )
            entity.set_state(to_state)
            self._dispatch(
                StateEvent(
                    EventName.AFTER_STATE_CHANGE, self, entity,
                    from_state=from_state, to_state=to_state,
                )
            )

        self._dispatch(
            TransitionEvent(
                EventName.AFTER_APPLY_TRANSITION, self, entity,
                from_state=from_state, to_state=to_state, transition=transition,
            )
        )

        logger.debug(
            f"Applied '{transition.name}' to {entity!r}: "
            f"'{from_state.name}' -> '{to_state.name}'"
        )
        return state_changed

    def available_transitions(self, entity: StatefulEntity) -> List[str]:
        """Names of the transitions that accept the entity's current state."""
        state = entity.get_state()
        if state is None or state.is_final:
            return []
        return [name for name, transition in self.transitions.items() if transition.can(state)]

    def get_default_transition(self, entity: StatefulEntity) -> Transition | None:
        """The first transition flagged as default that the entity can take."""
        for name in self.available_transitions(entity):
            transition = self.transitions[name]
            if transition.is_default:
                return transition
        return None

    def is_final(self, entity: StatefulEntity) -> bool:
        """Check whether the entity sits in a final state."""
        state = entity.get_state()
        return state is not None and state.is_final

    def _dispatch(self, event: StateMachineEvent) -> None:
        self._event_hub.dispatch(event)

    def __repr__(self) -> str:
        if self._graph is None:
            return "StateMachine(unconfigured)"
        return (
            f"StateMachine({self._graph.name or 'unnamed'!r}, "
            f"states={len(self._graph.states)}, transitions={len(self._graph.transitions)})"
        )
