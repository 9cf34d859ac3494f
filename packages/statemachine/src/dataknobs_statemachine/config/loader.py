"""Configuration loader for state machine configurations.

This module loads state machine configurations from:
- Dictionaries (already parsed structures, possibly holding live objects
  as action targets)
- Files (JSON, YAML)

Accepted configuration format:

```yaml
name: document_review
states:
  draft: {type: initial}
  proposed:                   # defaults to type NORMAL
  accepted: normal            # bare type string
  published: {type: final}
  rejected: {type: final}
transitions:
  propose:
    from: draft
    to: proposed
    action:
      target: reviews         # registered target or "package.module:attr"
      method: score
      arguments: [42, 0]
  reject:
    from: [proposed, accepted]
    to: rejected
```

``states`` may also be a list of names or of ``{name: ..., type: ...}``
dicts, and ``transitions`` a list of dicts carrying a ``name``.

Ordering contract: when a transition has an action, the order of its ``to``
entries defines the outcome codes (first entry -> 0, second -> 1, ...). The
loader preserves that order exactly.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml
from pydantic import ValidationError

from dataknobs_statemachine.config.builder import StateGraph, StateMachineBuilder
from dataknobs_statemachine.config.schema import StateMachineConfig, validate_config
from dataknobs_statemachine.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load and validate state machine configurations."""

    def __init__(
        self,
        targets: Mapping[str, Any] | None = None,
        resolve_env: bool = True,
    ):
        """Initialize the ConfigLoader.

        Args:
            targets: Named action targets available to string references.
            resolve_env: Whether to resolve environment variables in strings.
        """
        self._env_prefix = "STATEMACHINE_"
        self._targets: Dict[str, Any] = dict(targets or {})
        self.resolve_env = resolve_env

    @property
    def targets(self) -> Dict[str, Any]:
        return dict(self._targets)

    def register_target(self, name: str, target: Any) -> None:
        """Make an action target available under ``name``.

        Args:
            name: Name used as ``action.target`` in configurations.
            target: The object (or callable) to invoke.
        """
        self._targets[name] = target

    def load(self, config: Any) -> StateGraph:
        """Load a raw configuration structure into a StateGraph.

        Args:
            config: Mapping with ``states`` and ``transitions`` sections.

        Returns:
            The validated, immutable StateGraph.

        Raises:
            InvalidConfigurationError: If the configuration is invalid.
        """
        if isinstance(config, StateGraph):
            return config
        if isinstance(config, StateMachineConfig):
            return self.build(config)
        if not isinstance(config, Mapping):
            raise InvalidConfigurationError(
                "The given configuration must be a mapping.",
                context={"type": type(config).__name__},
            )
        return self.load_from_dict(dict(config))

    def load_from_dict(self, config_dict: Dict[str, Any]) -> StateGraph:
        """Load configuration from a dictionary.

        Args:
            config_dict: Configuration dictionary.

        Returns:
            The validated StateGraph.
        """
        return self.build(self.validate(config_dict))

    def load_from_file(self, file_path: Union[str, Path]) -> StateGraph:
        """Load configuration from a JSON or YAML file.

        Args:
            file_path: Path to the configuration file.

        Returns:
            The validated StateGraph.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            InvalidConfigurationError: If the format is unsupported or the
                content is invalid.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        raw_config = self._load_file(file_path)
        logger.debug(f"Loaded raw configuration from {file_path}")
        return self.load(raw_config)

    def validate(self, config_dict: Dict[str, Any]) -> StateMachineConfig:
        """Normalize and validate a configuration dictionary.

        Raises:
            InvalidConfigurationError: If the configuration shape is invalid.
        """
        processed = dict(config_dict)
        if self.resolve_env:
            processed = self._resolve_environment_vars(processed)
        processed = self._normalize(processed)

        try:
            return validate_config(processed)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid state machine configuration: {e}",
                context={"errors": e.errors(include_url=False)},
            ) from e

    def build(self, config: StateMachineConfig) -> StateGraph:
        """Build a StateGraph from a validated configuration."""
        graph = StateMachineBuilder.from_config(config, self._targets)
        logger.info(
            f"Loaded state machine '{graph.name or 'unnamed'}' with "
            f"{len(graph.states)} states and {len(graph.transitions)} transitions"
        )
        return graph

    def _load_file(self, file_path: Path) -> Dict[str, Any]:
        """Load raw configuration from a file."""
        suffix = file_path.suffix.lower()

        with open(file_path, encoding="utf-8") as f:
            try:
                if suffix == ".json":
                    return json.load(f)
                elif suffix in [".yaml", ".yml"]:
                    return yaml.safe_load(f) or {}
            except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
                raise InvalidConfigurationError(
                    f"Could not parse {file_path}: {e}", context={"file": str(file_path)}
                ) from e
        raise InvalidConfigurationError(
            f"Unsupported file format: {suffix}", context={"file": str(file_path)}
        )

    def _normalize(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Convert the accepted section shapes into the list format."""
        config["states"] = self._normalize_states(config.get("states"))
        config["transitions"] = self._normalize_transitions(config.get("transitions"))
        return config

    def _normalize_states(self, states: Any) -> List[Any]:
        if states is None:
            return []
        if isinstance(states, Mapping):
            normalized = []
            for name, state_config in states.items():
                if state_config is None:
                    normalized.append({"name": name})
                elif isinstance(state_config, str):
                    normalized.append({"name": name, "type": state_config})
                elif isinstance(state_config, Mapping):
                    normalized.append({**state_config, "name": name})
                else:
                    raise InvalidConfigurationError(
                        f"Invalid configuration for state '{name}'.",
                        context={"state": name},
                    )
            return normalized
        if isinstance(states, (list, tuple)):
            return [{"name": item} if isinstance(item, str) else item for item in states]
        raise InvalidConfigurationError(
            "The 'states' section must be a mapping or a list.",
            context={"type": type(states).__name__},
        )

    def _normalize_transitions(self, transitions: Any) -> List[Any]:
        if transitions is None:
            return []
        if isinstance(transitions, Mapping):
            normalized = []
            for name, transition_config in transitions.items():
                if not isinstance(transition_config, Mapping):
                    raise InvalidConfigurationError(
                        f"Invalid configuration for transition '{name}'.",
                        context={"transition": name},
                    )
                normalized.append({**transition_config, "name": name})
            return normalized
        if isinstance(transitions, (list, tuple)):
            return list(transitions)
        raise InvalidConfigurationError(
            "The 'transitions' section must be a mapping or a list.",
            context={"type": type(transitions).__name__},
        )

    def _resolve_environment_vars(self, config: Any) -> Any:
        """Resolve environment variables in configuration strings.

        Supports:
        - ${VAR_NAME} - Required variable
        - ${VAR_NAME:-default} - Variable with default value
        - ${VAR_NAME:?error message} - Required with custom error

        Non-string values (including live action targets) pass through, and a
        dict or list is returned as the same object unless a string inside it
        was substituted, so action arguments keep their identity.
        """
        if isinstance(config, str):
            if config.startswith("${") and config.endswith("}"):
                var_expr = config[2:-1]

                if ":-" in var_expr:
                    var_name, default_value = var_expr.split(":-", 1)
                    return os.environ.get(var_name, default_value)

                elif ":?" in var_expr:
                    var_name, error_msg = var_expr.split(":?", 1)
                    if var_name not in os.environ:
                        raise InvalidConfigurationError(
                            f"Required environment variable: {error_msg}",
                            context={"variable": var_name},
                        )
                    return os.environ[var_name]

                else:
                    if var_expr in os.environ:
                        return os.environ[var_expr]
                    prefixed_var = f"{self._env_prefix}{var_expr}"
                    if prefixed_var in os.environ:
                        return os.environ[prefixed_var]
                    raise InvalidConfigurationError(
                        f"Environment variable not found: {var_expr}",
                        context={"variable": var_expr},
                    )
            return config

        elif isinstance(config, dict):
            resolved = {key: self._resolve_environment_vars(value) for key, value in config.items()}
            if all(resolved[key] is value for key, value in config.items()):
                return config
            return resolved

        elif isinstance(config, list):
            items = [self._resolve_environment_vars(item) for item in config]
            if all(new is old for new, old in zip(items, config)):
                return config
            return items

        else:
            return config
