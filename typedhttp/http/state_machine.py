"""Lifecycle of a single send through the typed client pipeline."""

from enum import Enum, auto
from typing import ClassVar

import structlog


logger = structlog.get_logger()


class SendState(Enum):
    """Pipeline stages of one send.

    BUILDING: correlation headers, before-request hook and timeout applied.
    DISPATCHING: the request is with the transport.
    CLASSIFYING: the response is run through the configured checks.
    DONE: every check passed and the response was returned.
    FAULTED: any stage raised; the error propagates to the caller.
    """

    BUILDING = auto()
    DISPATCHING = auto()
    CLASSIFYING = auto()
    DONE = auto()
    FAULTED = auto()


TERMINAL_STATES = frozenset({SendState.DONE, SendState.FAULTED})


class SendStateError(Exception):
    """An out-of-order pipeline stage change."""

    def __init__(self, from_state: SendState, to_state: SendState) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid send state transition: {from_state.name} -> {to_state.name}"
        )


class SendStateMachine:
    """Tracks one send and rejects out-of-order stage changes.

    Each stage may fault; DONE is only reachable from CLASSIFYING.
    """

    VALID_TRANSITIONS: ClassVar[dict[SendState, frozenset[SendState]]] = {
        SendState.BUILDING: frozenset({SendState.DISPATCHING, SendState.FAULTED}),
        SendState.DISPATCHING: frozenset({SendState.CLASSIFYING, SendState.FAULTED}),
        SendState.CLASSIFYING: frozenset({SendState.DONE, SendState.FAULTED}),
        SendState.DONE: frozenset(),
        SendState.FAULTED: frozenset(),
    }

    def __init__(self, correlation_id: str | None = None) -> None:
        """Start a send in BUILDING.

        Args:
            correlation_id: Correlation id bound onto every state log event.
        """
        self._state = SendState.BUILDING
        self._history: list[SendState] = [SendState.BUILDING]
        self._log = logger.bind(component="http", correlation_id=correlation_id)

    @property
    def state(self) -> SendState:
        """Current stage."""
        return self._state

    @property
    def history(self) -> tuple[SendState, ...]:
        """Stages visited so far, in order."""
        return tuple(self._history)

    def can_transition(self, to_state: SendState) -> bool:
        return to_state in self.VALID_TRANSITIONS[self._state]

    def transition(self, to_state: SendState) -> None:
        """Move to the next stage.

        Raises:
            SendStateError: If ``to_state`` does not follow the current stage.
        """
        if not self.can_transition(to_state):
            self._log.error(
                "invariant_violation",
                error_type="illegal_state_transition",
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise SendStateError(self._state, to_state)

        self._log.debug(
            "send_state_transition",
            from_state=self._state.name,
            to_state=to_state.name,
        )
        self._state = to_state
        self._history.append(to_state)

    def fault(self, error: BaseException | None = None) -> None:
        """Move to FAULTED; a send that already finished is left as is.

        Args:
            error: The exception that ended the send, for the log event.
        """
        if self.is_terminal():
            return
        failed_in = self._state.name
        self.transition(SendState.FAULTED)
        self._log.debug(
            "send_faulted",
            failed_in=failed_in,
            error_type=type(error).__name__ if error is not None else None,
        )

    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES
