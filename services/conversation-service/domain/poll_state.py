"""State machine behind dubbing job polling."""

from enum import Enum

from domain.models import JobStatus


class PollState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DUBBED = "dubbed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (PollState.DUBBED, PollState.FAILED, PollState.TIMED_OUT)


_FROM_JOB_STATUS = {
    JobStatus.PENDING: PollState.PENDING,
    JobStatus.PROCESSING: PollState.PROCESSING,
    JobStatus.DUBBED: PollState.DUBBED,
    JobStatus.FAILED: PollState.FAILED,
}


class PollStateMachine:
    """
    Tracks one job from submission to a terminal state.

    Every observation, including a status call that never reached the
    provider, consumes one attempt. When the attempt ceiling is reached while
    the job is still pending or processing, the machine moves to TIMED_OUT,
    so no more than ``max_attempts`` polls are ever made for one job.
    """

    def __init__(self, max_attempts: int):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._attempts = 0
        self._state = PollState.PENDING
        self._error: str | None = None

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    def record_status(self, status: JobStatus, error: str | None = None) -> PollState:
        """Applies a status reported by the provider."""
        self._begin_attempt()
        self._state = _FROM_JOB_STATUS[status]
        if self._state is PollState.FAILED:
            self._error = error
        return self._apply_ceiling()

    def record_transport_error(self) -> PollState:
        """Counts a poll that failed before a status was obtained."""
        self._begin_attempt()
        return self._apply_ceiling()

    def _begin_attempt(self) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Poll already finished in state '{self._state.value}'")
        self._attempts += 1

    def _apply_ceiling(self) -> PollState:
        if not self.is_terminal and self._attempts >= self._max_attempts:
            self._state = PollState.TIMED_OUT
        return self._state
