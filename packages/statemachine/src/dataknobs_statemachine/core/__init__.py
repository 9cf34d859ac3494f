"""Core state machine components."""

from dataknobs_statemachine.core.action import Action, CallableAction, IAction
from dataknobs_statemachine.core.entity import StatefulEntity, StatefulObject
from dataknobs_statemachine.core.state import State, StateType
from dataknobs_statemachine.core.transition import DEFAULT_OUTCOME, Transition

__all__ = [
    # State
    "State",
    "StateType",
    # Action
    "IAction",
    "Action",
    "CallableAction",
    # Transition
    "Transition",
    "DEFAULT_OUTCOME",
    # Entity
    "StatefulEntity",
    "StatefulObject",
]
