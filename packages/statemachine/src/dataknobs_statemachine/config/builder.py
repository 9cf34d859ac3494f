"""State graph builder.

This module assembles the immutable state graph a ``StateMachine`` runs on.
Building happens in two phases:

1. ``StateMachineBuilder`` collects states and transitions. It is mutable
   and only lives for the duration of a configuration load.
2. ``build()`` checks the graph invariants and returns a ``StateGraph``,
   a read-only snapshot shared by every entity the machine handles.

Graph invariants enforced here:
- exactly one INITIAL state
- every from/to state name refers to a defined state
- action targets resolve to an object exposing the configured method, or
  to a function when no method is configured

Outcome codes are positional: the first ``to`` state of a transition is
outcome 0, the second outcome 1, and so on. Callers must pass destinations
as an ordered sequence.
"""

import importlib
import inspect
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from dataknobs_statemachine.config.schema import ActionConfig, StateMachineConfig
from dataknobs_statemachine.core.action import Action, CallableAction, IAction
from dataknobs_statemachine.core.state import State, StateType
from dataknobs_statemachine.core.transition import Transition
from dataknobs_statemachine.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateGraph:
    """Immutable snapshot of a loaded configuration.

    Attributes:
        states: State name to State, in declaration order
        transitions: Transition name to Transition, in declaration order
        initial_state: The single INITIAL state
        name: Optional configuration name
    """

    states: Mapping[str, State]
    transitions: Mapping[str, Transition]
    initial_state: State
    name: str | None = None

    def get_state(self, name: str) -> State | None:
        return self.states.get(str(name).strip())

    def get_transition(self, name: str) -> Transition | None:
        return self.transitions.get(str(name).strip())

    @property
    def final_states(self) -> List[State]:
        return [state for state in self.states.values() if state.is_final]

    def to_dict(self) -> Dict[str, Any]:
        """Convert the graph to a plain dictionary."""
        return {
            "name": self.name,
            "initial_state": self.initial_state.name,
            "states": [state.to_dict() for state in self.states.values()],
            "transitions": [t.to_dict() for t in self.transitions.values()],
        }


class StateMachineBuilder:
    """Collect states and transitions and build a StateGraph.

    Example:
        ```python
        builder = StateMachineBuilder()
        builder.add_state("draft", StateType.INITIAL)
        builder.add_state("proposed")
        builder.add_transition("propose", ["draft"], ["proposed"])
        graph = builder.build()
        ```
    """

    def __init__(self, name: str | None = None):
        self._name = name
        self._states: Dict[str, State] = {}
        self._transitions: Dict[str, Transition] = {}
        self._initial_state: State | None = None

    @property
    def initial_state(self) -> State | None:
        return self._initial_state

    def add_state(self, name: str, state_type: StateType | str = StateType.NORMAL) -> State:
        """Add a state.

        Raises:
            InvalidConfigurationError: On an unsupported type, a duplicate
                name, or a second INITIAL state.
        """
        try:
            state = State(name, StateType.parse(state_type))
        except ValueError as e:
            raise InvalidConfigurationError(
                f"Invalid state '{name}': {e}", context={"state": name}
            ) from e

        if state.name in self._states:
            raise InvalidConfigurationError(
                f'The state "{state.name}" is defined more than once.',
                context={"state": state.name},
            )
        if state.is_initial:
            if self._initial_state is not None:
                raise InvalidConfigurationError(
                    "Only one state can be defined as the initial state.",
                    context={
                        "initial_state": self._initial_state.name,
                        "state": state.name,
                    },
                )
            self._initial_state = state

        self._states[state.name] = state
        return state

    def add_transition(
        self,
        name: str,
        sources: Iterable[str],
        destinations: Sequence[str],
        action: IAction | None = None,
        default: bool = False,
    ) -> Transition:
        """Add a transition between already defined states.

        Args:
            name: Transition name.
            sources: Names of the states the transition accepts.
            destinations: Ordered destination names; position is the outcome
                code when an action is bound.
            action: Optional action computing the outcome code.
            default: Mark as the default transition from its sources.

        Raises:
            InvalidConfigurationError: On a duplicate name, an empty from/to
                list, or a reference to an undefined state.
        """
        name = str(name).strip()
        if not name:
            raise InvalidConfigurationError("Transition name must not be empty.")
        if name in self._transitions:
            raise InvalidConfigurationError(
                f'The transition "{name}" is defined more than once.',
                context={"transition": name},
            )

        source_states = self._resolve_states(name, sources, "from")
        destination_states = self._resolve_states(name, destinations, "to")

        if action is None and len(destination_states) > 1:
            logger.warning(
                f"Transition '{name}' has {len(destination_states)} destinations but "
                f"no action; only '{destination_states[0].name}' is reachable"
            )

        transition = Transition(
            name,
            sources=source_states,
            destinations=dict(enumerate(destination_states)),
            action=action,
            is_default=default,
        )
        self._transitions[name] = transition
        return transition

    def _resolve_states(self, transition: str, names: Iterable[str], role: str) -> List[State]:
        resolved: List[State] = []
        for raw_name in names:
            state_name = str(raw_name).strip()
            state = self._states.get(state_name)
            if state is None:
                raise InvalidConfigurationError(
                    f'The state "{state_name}" defined as a {role}-state for '
                    f'transition "{transition}" is not defined.',
                    context={"transition": transition, "state": state_name, "role": role},
                )
            if role == "from" and state in resolved:
                continue
            resolved.append(state)
        if not resolved:
            raise InvalidConfigurationError(
                f'Transition "{transition}" requires at least one {role}-state.',
                context={"transition": transition, "role": role},
            )
        return resolved

    def build(self) -> StateGraph:
        """Validate the collected graph and return an immutable snapshot.

        Raises:
            InvalidConfigurationError: If no INITIAL state was added.
        """
        if self._initial_state is None:
            raise InvalidConfigurationError(
                "No state is defined as the initial state.",
                context={"states": list(self._states)},
            )
        return StateGraph(
            states=MappingProxyType(dict(self._states)),
            transitions=MappingProxyType(dict(self._transitions)),
            initial_state=self._initial_state,
            name=self._name,
        )

    @classmethod
    def from_config(
        cls,
        config: StateMachineConfig,
        targets: Mapping[str, Any] | None = None,
    ) -> StateGraph:
        """Build a StateGraph from a validated configuration.

        Args:
            config: Validated configuration.
            targets: Named action targets for string references.

        Returns:
            The built StateGraph.
        """
        builder = cls(name=config.name)
        for state_config in config.states:
            builder.add_state(state_config.name, state_config.type)

        for transition_config in config.transitions:
            action = None
            if transition_config.action is not None:
                action = _build_action(
                    transition_config.name, transition_config.action, targets or {}
                )
            builder.add_transition(
                transition_config.name,
                transition_config.from_states,
                transition_config.to_states,
                action=action,
                default=transition_config.default,
            )
        return builder.build()


def _resolve_target(transition: str, reference: str, targets: Mapping[str, Any]) -> Any:
    """Resolve a string target: registered name first, then an import path."""
    if reference in targets:
        return targets[reference]

    module_name, sep, attribute = reference.partition(":")
    if not sep:
        # Also accept "package.module.attribute"
        module_name, _, attribute = reference.rpartition(".")
    if not module_name or not attribute:
        raise InvalidConfigurationError(
            f'Action target "{reference}" of transition "{transition}" is neither '
            f"a registered target nor an import path.",
            context={"transition": transition, "target": reference},
        )

    try:
        obj: Any = importlib.import_module(module_name)
        for part in attribute.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as e:
        raise InvalidConfigurationError(
            f'Action target "{reference}" of transition "{transition}" could not be '
            f"imported: {e}",
            context={"transition": transition, "target": reference},
        ) from e
    return obj


def _build_action(transition: str, config: ActionConfig, targets: Mapping[str, Any]) -> IAction:
    target = config.target
    if isinstance(target, str):
        target = _resolve_target(transition, target, targets)

    if config.method is None and not inspect.isroutine(target):
        raise InvalidConfigurationError(
            f'Action target "{config.target}" of transition "{transition}" is not a '
            f"function; actions on an object require a 'method'.",
            context={"transition": transition, "target": config.target},
        )

    try:
        if config.method is None:
            return CallableAction(target, config.arguments)
        return Action(target, config.method, config.arguments)
    except ValueError as e:
        raise InvalidConfigurationError(
            f'Invalid action for transition "{transition}": {e}',
            context={"transition": transition, "method": config.method},
        ) from e
