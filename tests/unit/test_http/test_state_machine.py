"""Unit tests for the send pipeline state machine."""

import pytest

from typedhttp.http.state_machine import SendState, SendStateError, SendStateMachine


class TestSendState:
    """Tests for SendState enum."""

    @pytest.mark.unit
    def test_all_states_defined(self) -> None:
        """Test that all expected states are defined."""
        expected = {"BUILDING", "DISPATCHING", "CLASSIFYING", "DONE", "FAULTED"}
        assert {state.name for state in SendState} == expected


class TestSendStateMachine:
    """Tests for SendStateMachine."""

    @pytest.mark.unit
    def test_initial_state(self) -> None:
        """Test that the initial state is BUILDING."""
        assert SendStateMachine().state == SendState.BUILDING

    @pytest.mark.unit
    def test_happy_path(self) -> None:
        """Test BUILDING -> DISPATCHING -> CLASSIFYING -> DONE."""
        machine = SendStateMachine("corr-1")
        machine.transition(SendState.DISPATCHING)
        machine.transition(SendState.CLASSIFYING)
        machine.transition(SendState.DONE)

        assert machine.state == SendState.DONE
        assert machine.is_terminal() is True

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "steps",
        [
            [],
            [SendState.DISPATCHING],
            [SendState.DISPATCHING, SendState.CLASSIFYING],
        ],
    )
    def test_fault_from_any_active_state(self, steps: list[SendState]) -> None:
        """Test that every non-terminal state can fault."""
        machine = SendStateMachine()
        for step in steps:
            machine.transition(step)

        machine.transition(SendState.FAULTED)

        assert machine.state == SendState.FAULTED

    @pytest.mark.unit
    def test_skipping_dispatch_is_invalid(self) -> None:
        """Test that BUILDING -> CLASSIFYING raises."""
        machine = SendStateMachine()

        with pytest.raises(SendStateError) as exc_info:
            machine.transition(SendState.CLASSIFYING)

        assert exc_info.value.from_state == SendState.BUILDING
        assert exc_info.value.to_state == SendState.CLASSIFYING
        assert machine.state == SendState.BUILDING

    @pytest.mark.unit
    def test_terminal_states_reject_transitions(self) -> None:
        """Test that DONE accepts no transitions."""
        machine = SendStateMachine()
        machine.transition(SendState.DISPATCHING)
        machine.transition(SendState.CLASSIFYING)
        machine.transition(SendState.DONE)

        assert machine.can_transition(SendState.FAULTED) is False
        with pytest.raises(SendStateError):
            machine.transition(SendState.FAULTED)

    @pytest.mark.unit
    def test_fault_is_noop_when_terminal(self) -> None:
        """Test that fault leaves a terminal state alone."""
        machine = SendStateMachine()
        machine.fault()
        machine.fault()

        assert machine.state == SendState.FAULTED

    @pytest.mark.unit
    def test_history(self) -> None:
        """Test that visited stages are recorded in order."""
        machine = SendStateMachine()
        machine.transition(SendState.DISPATCHING)
        machine.fault(TimeoutError())

        assert machine.history == (
            SendState.BUILDING,
            SendState.DISPATCHING,
            SendState.FAULTED,
        )

    @pytest.mark.unit
    def test_rejected_transition_not_recorded(self) -> None:
        """Test that a rejected stage change leaves the history unchanged."""
        machine = SendStateMachine()

        with pytest.raises(SendStateError):
            machine.transition(SendState.DONE)

        assert machine.history == (SendState.BUILDING,)
