"""Tests for state machine exception types."""

import pytest
from dataknobs_common import (
    ConfigurationError,
    DataknobsError,
    NotFoundError,
    OperationError,
)

from dataknobs_statemachine.exceptions import (
    FinalStateError,
    InvalidConfigurationError,
    ResolutionError,
    StateMachineError,
    TransitionNotAllowedError,
    TransitionNotFoundError,
)


class TestExceptionTypes:
    """Tests for exception types."""

    def test_base_error(self):
        error = StateMachineError("Base error", {"key": "value"})
        assert str(error) == "Base error"
        assert error.context == {"key": "value"}
        assert error.details is error.context

        assert StateMachineError("Simple error").details == {}

    def test_details_take_precedence(self):
        error = StateMachineError("x", context={"a": 1}, details={"b": 2})
        assert error.context == {"b": 2}

    def test_invalid_configuration_error(self):
        error = InvalidConfigurationError(
            "No state is defined as the initial state.", {"states": ["a"]}
        )
        assert isinstance(error, StateMachineError)
        assert error.details["states"] == ["a"]

    def test_transition_not_found(self):
        error = TransitionNotFoundError("archive")
        assert str(error) == 'Transition "archive" is not defined.'
        assert error.transition_name == "archive"
        assert isinstance(error, KeyError)

    def test_transition_not_allowed(self):
        error = TransitionNotAllowedError("accept", "draft")
        assert 'Could not apply transition "accept" to object in state "draft".' == str(error)
        assert error.context == {"transition": "accept", "state": "draft"}
        assert isinstance(error, ValueError)

    def test_final_state_error(self):
        error = FinalStateError("rejected", "publish")
        assert "final state" in str(error)
        assert error.state_name == "rejected"
        assert error.context["transition"] == "publish"

    def test_resolution_error(self):
        error = ResolutionError("no destination", transition_name="review", outcome=7)
        assert error.outcome == 7
        assert error.context == {"transition": "review", "outcome": 7}

    @pytest.mark.parametrize("error", [
        InvalidConfigurationError("x"),
        TransitionNotFoundError("x"),
        TransitionNotAllowedError("x", None),
        FinalStateError("x"),
        ResolutionError("x"),
    ])
    def test_common_base(self, error):
        with pytest.raises(StateMachineError):
            raise error

    def test_built_on_common_hierarchy(self):
        assert StateMachineError is DataknobsError
        assert issubclass(InvalidConfigurationError, ConfigurationError)
        assert issubclass(TransitionNotFoundError, NotFoundError)
        for error_type in (TransitionNotAllowedError, FinalStateError, ResolutionError):
            assert issubclass(error_type, OperationError)

    def test_caught_as_common_error(self):
        with pytest.raises(DataknobsError) as exc_info:
            raise TransitionNotFoundError("archive")
        assert exc_info.value.context == {"transition": "archive"}
