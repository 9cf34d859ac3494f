"""Exception hierarchy for the state machine package.

Every error raised by the engine derives from ``StateMachineError`` and
carries an optional context dictionary with structured details about the
failure (state names, transition names, outcome codes, ...).

The categories are:

- **Configuration errors** (``InvalidConfigurationError``): raised while
  loading a configuration, before any entity interacts with the machine.
- **Lookup errors** (``TransitionNotFoundError``): an unknown transition
  name was requested.
- **Guard violations** (``TransitionNotAllowedError``, ``FinalStateError``):
  a transition was attempted from a state it does not accept, or from a
  final state.
- **Resolution errors** (``ResolutionError``): an action produced an outcome
  code that the transition has no destination for.

Errors raised by an action's target are never wrapped; they reach the caller
unchanged.

Example:
    ```python
    from dataknobs_statemachine.exceptions import StateMachineError

    try:
        machine.apply("publish", document)
    except StateMachineError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

from typing import Any, Dict

from dataknobs_common import (
    ConfigurationError,
    DataknobsError,
    NotFoundError,
    OperationError,
)

# Every state machine error is a DataknobsError carrying context/details
StateMachineError = DataknobsError


class InvalidConfigurationError(ConfigurationError):
    """Raised when a state machine configuration is invalid.

    Covers malformed configuration shapes, unsupported state types, a missing
    or duplicated initial state, dangling state references, invalid action
    descriptors and use of a machine that was never configured.

    Example:
        ```python
        raise InvalidConfigurationError(
            'The state "archived" defined as a to-state for transition "archive" is not defined.',
            context={"transition": "archive", "state": "archived", "role": "to"}
        )
        ```
    """

    pass


class TransitionNotFoundError(NotFoundError, KeyError):
    """Raised when a transition name is not defined in the machine."""

    def __init__(self, transition_name: str, details: Dict[str, Any] | None = None):
        super().__init__(
            f'Transition "{transition_name}" is not defined.',
            context=details or {"transition": transition_name},
        )
        self.transition_name = transition_name

    def __str__(self) -> str:
        # KeyError would otherwise render the message with quotes
        return str(self.args[0])


class TransitionNotAllowedError(OperationError, ValueError):
    """Raised when a transition cannot accept the given source state."""

    def __init__(
        self,
        transition_name: str,
        state_name: str | None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(
            f'Could not apply transition "{transition_name}" '
            f'to object in state "{state_name}".',
            context=details or {"transition": transition_name, "state": state_name},
        )
        self.transition_name = transition_name
        self.state_name = state_name


class FinalStateError(OperationError):
    """Raised when a transition is attempted from a final state."""

    def __init__(self, state_name: str, transition_name: str | None = None):
        super().__init__(
            f'No further transitions possible because the object is in the '
            f'final state "{state_name}".',
            context={"state": state_name, "transition": transition_name},
        )
        self.state_name = state_name
        self.transition_name = transition_name


class ResolutionError(OperationError):
    """Raised when an outcome code cannot be resolved to a destination state.

    This signals that an action's contract disagrees with the configured
    graph: it produced a code the transition has no destination for, or a
    value that is not an integer outcome code at all.
    """

    def __init__(
        self,
        message: str,
        transition_name: str | None = None,
        outcome: Any = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            context=details or {"transition": transition_name, "outcome": outcome},
        )
        self.transition_name = transition_name
        self.outcome = outcome


__all__ = [
    "StateMachineError",
    "InvalidConfigurationError",
    "TransitionNotFoundError",
    "TransitionNotAllowedError",
    "FinalStateError",
    "ResolutionError",
]
