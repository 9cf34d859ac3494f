"""Tests for states, actions and transitions."""

import pytest

from dataknobs_statemachine.core.action import Action, CallableAction, IAction
from dataknobs_statemachine.core.entity import StatefulEntity, StatefulObject
from dataknobs_statemachine.core.state import State, StateType
from dataknobs_statemachine.core.transition import Transition
from dataknobs_statemachine.exceptions import (
    ResolutionError,
    TransitionNotAllowedError,
)


class Scorer:
    def __init__(self, result=0):
        self.result = result
        self.invocations = 0

    def score(self, *args):
        self.invocations += 1
        return self.result

    def explode(self):
        raise ConnectionError("backend down")


class TestState:
    """Test State and StateType."""

    def test_defaults_to_normal(self):
        state = State("proposed")
        assert state.type is StateType.NORMAL
        assert not state.is_initial
        assert not state.is_final

    def test_name_is_trimmed(self):
        state = State("  draft  ", StateType.INITIAL)
        assert state.name == "draft"
        assert str(state) == "draft"
        assert state.is_initial

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            State("   ")

    @pytest.mark.parametrize("value", ["final", " FINAL ", "Final", StateType.FINAL])
    def test_type_parsing_is_case_insensitive(self, value):
        assert StateType.parse(value) is StateType.FINAL
        assert State("done", value).is_final

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="not a supported state type"):
            StateType.parse("terminal")

    def test_states_are_immutable_values(self):
        a = State("draft", StateType.INITIAL)
        b = State("draft", "initial")
        assert a == b
        assert len({a, b}) == 1
        with pytest.raises(AttributeError):
            a.name = "other"

    def test_breakpoint(self):
        state = State("review", StateType.BREAKPOINT)
        assert state.is_breakpoint
        assert state.to_dict() == {"name": "review", "type": "BREAKPOINT"}


class TestAction:
    """Test Action and CallableAction."""

    def test_execute_invokes_method_with_arguments(self):
        calls = []

        class Target:
            def multiply(self, a, b):
                calls.append((a, b))
                return a * b

        action = Action(Target(), "multiply", [6, 7])
        assert action.execute() == 42
        assert calls == [(6, 7)]
        assert isinstance(action, IAction)

    def test_method_name_is_trimmed(self):
        action = Action(Scorer(3), " score ")
        assert action.method == "score"
        assert action.execute() == 3

    def test_empty_method_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            Action(Scorer(), "  ")

    def test_missing_method_rejected(self):
        with pytest.raises(ValueError, match="no callable method 'nope'"):
            Action(Scorer(), "nope")

    def test_boolean_result_is_an_outcome(self):
        assert Action(Scorer(True), "score").execute() == 1

    def test_non_integer_result_rejected(self):
        with pytest.raises(ResolutionError, match="expected an integer outcome code"):
            Action(Scorer("yes"), "score").execute()

    def test_target_errors_propagate_unchanged(self):
        with pytest.raises(ConnectionError, match="backend down"):
            Action(Scorer(), "explode").execute()

    def test_callable_action(self):
        action = CallableAction(lambda a, b: a - b, (5, 4))
        assert action.execute() == 1
        assert action.arguments == (5, 4)

    def test_callable_action_requires_callable(self):
        with pytest.raises(ValueError, match="not callable"):
            CallableAction(42)


class TestTransition:
    """Test transition resolution."""

    @pytest.fixture
    def states(self):
        return {
            "draft": State("draft", StateType.INITIAL),
            "proposed": State("proposed"),
            "accepted": State("accepted"),
            "rejected": State("rejected", StateType.FINAL),
        }

    def test_can_checks_source_membership(self, states):
        transition = Transition("reject", [states["proposed"], states["accepted"]],
                                {0: states["rejected"]})
        assert transition.can(states["proposed"])
        assert transition.can(states["accepted"])
        assert not transition.can(states["draft"])
        assert not transition.can(None)

    def test_can_compares_by_name(self, states):
        transition = Transition("propose", [states["draft"]], {0: states["proposed"]})
        assert transition.can(State("draft", StateType.INITIAL))

    def test_without_action_resolves_outcome_zero(self, states):
        transition = Transition("propose", [states["draft"]], {0: states["proposed"]})
        assert transition.apply(states["draft"]) is states["proposed"]
        assert not transition.has_action

    def test_apply_from_unaccepted_state(self, states):
        transition = Transition("propose", [states["draft"]], {0: states["proposed"]})
        with pytest.raises(TransitionNotAllowedError, match='"propose"'):
            transition.apply(states["accepted"])

    def test_action_selects_destination_by_index(self, states):
        scorer = Scorer(1)
        transition = Transition(
            "review",
            [states["proposed"]],
            {0: states["accepted"], 1: states["rejected"]},
            action=Action(scorer, "score"),
        )
        assert transition.apply(states["proposed"]) is states["rejected"]
        scorer.result = 0
        assert transition.apply(states["proposed"]) is states["accepted"]
        assert scorer.invocations == 2

    def test_out_of_range_outcome(self, states):
        transition = Transition(
            "review",
            [states["proposed"]],
            {0: states["accepted"], 1: states["rejected"]},
            action=Action(Scorer(5), "score"),
        )
        with pytest.raises(ResolutionError) as exc_info:
            transition.apply(states["proposed"])
        assert exc_info.value.outcome == 5
        assert exc_info.value.context["available"] == [0, 1]

    def test_action_not_invoked_for_unaccepted_state(self, states):
        scorer = Scorer(0)
        transition = Transition("review", [states["proposed"]], {0: states["accepted"]},
                                action=Action(scorer, "score"))
        with pytest.raises(TransitionNotAllowedError):
            transition.apply(states["draft"])
        assert scorer.invocations == 0

    def test_self_loop(self, states):
        transition = Transition("touch", [states["proposed"]], {0: states["proposed"]})
        assert transition.apply(states["proposed"]) is states["proposed"]

    def test_destinations_are_read_only(self, states):
        transition = Transition("propose", [states["draft"]], {0: states["proposed"]})
        with pytest.raises(TypeError):
            transition.destinations[1] = states["accepted"]

    def test_to_dict(self, states):
        transition = Transition("propose", [states["draft"]], {0: states["proposed"]},
                                is_default=True)
        assert transition.to_dict() == {
            "name": "propose",
            "from": ["draft"],
            "to": {0: "proposed"},
            "action": None,
            "default": True,
        }


class TestStatefulObject:
    """Test the bundled entity implementation."""

    def test_protocol(self):
        entity = StatefulObject()
        assert isinstance(entity, StatefulEntity)
        assert entity.get_state() is None
        state = State("draft", StateType.INITIAL)
        entity.set_state(state)
        assert entity.get_state() is state
