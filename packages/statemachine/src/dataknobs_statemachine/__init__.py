"""DataKnobs declarative state machine.

A configuration-driven finite state machine: named states and named
transitions are loaded from a configuration, and a ``StateMachine`` moves
any stateful entity between them, optionally asking an action which of a
transition's destinations applies.
"""

__version__ = "0.1.0"

from .core.action import Action, CallableAction, IAction
from .core.entity import StatefulEntity, StatefulObject
from .core.state import State, StateType
from .core.transition import Transition
from .config.builder import StateGraph, StateMachineBuilder
from .config.loader import ConfigLoader
from .events import (
    EventHub,
    EventName,
    NullEventHub,
    StateEvent,
    StateMachineEvent,
    TransitionEvent,
)
from .exceptions import (
    FinalStateError,
    InvalidConfigurationError,
    ResolutionError,
    StateMachineError,
    TransitionNotAllowedError,
    TransitionNotFoundError,
)
from .machine import StateMachine

__all__ = [
    "__version__",
    # Machine
    "StateMachine",
    # Core
    "State",
    "StateType",
    "Transition",
    "IAction",
    "Action",
    "CallableAction",
    "StatefulEntity",
    "StatefulObject",
    # Config
    "ConfigLoader",
    "StateGraph",
    "StateMachineBuilder",
    # Events
    "EventHub",
    "EventName",
    "NullEventHub",
    "StateMachineEvent",
    "StateEvent",
    "TransitionEvent",
    # Exceptions
    "StateMachineError",
    "InvalidConfigurationError",
    "TransitionNotFoundError",
    "TransitionNotAllowedError",
    "FinalStateError",
    "ResolutionError",
]
