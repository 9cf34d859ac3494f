"""Configuration schema definitions for state machines using Pydantic.

This module defines the *shape* of a state machine configuration:
- State definition (name and type)
- Action descriptor (target, method, arguments)
- Transition definition (from/to state names, optional action)

Graph invariants that need the whole configuration (a single initial state,
references to defined states, resolvable action targets) are enforced by
``StateMachineBuilder`` when the graph is assembled.

Destination order matters: when a transition has an action, the position of
each ``to`` entry is the outcome code that selects it. ``to`` is therefore
always an ordered list and is never deduplicated or sorted.
"""

from typing import Any, Dict, List

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from dataknobs_statemachine.core.state import StateType


def _as_name_list(value: Any) -> List[str]:
    """Normalize scalar shorthand to a one-element list of trimmed names."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item).strip() for item in value]


class ActionConfig(BaseModel):
    """Descriptor of the action bound to a transition.

    ``target`` is either the object to invoke or a string reference resolved
    by the builder (a registered target name or ``"package.module:attribute"``).
    ``method`` may only be omitted for a string target, which must then
    resolve to a function; objects given directly always need a method.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True, populate_by_name=True, extra="forbid"
    )

    target: Any = Field(validation_alias=AliasChoices("target", "object", "service"))
    method: str | None = Field(
        default=None, validation_alias=AliasChoices("method", "operation")
    )
    arguments: List[Any] = Field(
        default_factory=list, validation_alias=AliasChoices("arguments", "args")
    )

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("An action requires a target")
        return v.strip() if isinstance(v, str) else v

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            raise ValueError("The name of the method to be invoked must not be empty.")
        return v

    @field_validator("arguments", mode="before")
    @classmethod
    def normalize_arguments(cls, v: Any) -> List[Any]:
        if v is None:
            return []
        if isinstance(v, tuple):
            return list(v)
        if not isinstance(v, list):
            return [v]
        return v

    @model_validator(mode="after")
    def validate_action(self) -> "ActionConfig":
        """Objects given directly must come with a method name."""
        if self.method is None and not isinstance(self.target, str):
            raise ValueError("Actions on an object target require a 'method'")
        return self


class StateConfig(BaseModel):
    """Configuration for a state."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    type: StateType = Field(
        default=StateType.NORMAL, validation_alias=AliasChoices("type", "category")
    )

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        name = str(v).strip() if v is not None else ""
        if not name:
            raise ValueError("State name must not be empty")
        return name

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> StateType:
        if v is None:
            return StateType.NORMAL
        return StateType.parse(v)


class TransitionConfig(BaseModel):
    """Configuration for a transition.

    ``from`` and ``to`` accept a single state name or a list of names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    from_states: List[str] = Field(validation_alias=AliasChoices("from", "from_states"))
    to_states: List[str] = Field(validation_alias=AliasChoices("to", "to_states"))
    action: ActionConfig | None = None
    default: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        name = str(v).strip() if v is not None else ""
        if not name:
            raise ValueError("Transition name must not be empty")
        return name

    @field_validator("from_states", "to_states", mode="before")
    @classmethod
    def normalize_states(cls, v: Any) -> List[str]:
        names = _as_name_list(v)
        if not names or not all(names):
            raise ValueError("Transitions require at least one non-empty state name")
        return names


class StateMachineConfig(BaseModel):
    """Complete state machine configuration.

    Unknown keys are rejected at every level so that a misspelled option
    fails at load time instead of being ignored.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None
    states: List[StateConfig] = Field(default_factory=list)
    transitions: List[TransitionConfig] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_unique_names(self) -> "StateMachineConfig":
        """Reject duplicated state or transition names."""
        seen: set[str] = set()
        for state in self.states:
            if state.name in seen:
                raise ValueError(f"State '{state.name}' is defined more than once")
            seen.add(state.name)

        seen.clear()
        for transition in self.transitions:
            if transition.name in seen:
                raise ValueError(f"Transition '{transition.name}' is defined more than once")
            seen.add(transition.name)
        return self


def generate_json_schema() -> Dict[str, Any]:
    """Generate JSON schema for state machine configuration.

    Returns:
        JSON schema as a dictionary.
    """
    return StateMachineConfig.model_json_schema()


def validate_config(config: Dict[str, Any]) -> StateMachineConfig:
    """Validate a configuration dictionary in the normalized list format.

    Args:
        config: Configuration dictionary.

    Returns:
        Validated StateMachineConfig instance.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return StateMachineConfig.model_validate(config)
