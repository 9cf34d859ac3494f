"""State machine configuration system.

This package provides:
- **schema**: Pydantic schemas defining the configuration structure
- **builder**: Two-phase construction of the immutable state graph
- **loader**: Load configurations from dictionaries and JSON/YAML files
"""

from dataknobs_statemachine.config.builder import StateGraph, StateMachineBuilder
from dataknobs_statemachine.config.loader import ConfigLoader
from dataknobs_statemachine.config.schema import (
    ActionConfig,
    StateConfig,
    StateMachineConfig,
    TransitionConfig,
    generate_json_schema,
    validate_config,
)

__all__ = [
    "ConfigLoader",
    "StateGraph",
    "StateMachineBuilder",
    "ActionConfig",
    "StateConfig",
    "StateMachineConfig",
    "TransitionConfig",
    "generate_json_schema",
    "validate_config",
]
