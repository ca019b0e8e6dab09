import pytest

from domain import JobStatus, PollState, PollStateMachine


def test_dubbed_is_terminal_success():
    machine = PollStateMachine(max_attempts=3)

    assert machine.record_status(JobStatus.PROCESSING) is PollState.PROCESSING
    assert machine.record_status(JobStatus.DUBBED) is PollState.DUBBED
    assert machine.is_terminal
    assert machine.attempts == 2


def test_failed_keeps_provider_message():
    machine = PollStateMachine(max_attempts=3)

    state = machine.record_status(JobStatus.FAILED, "unsupported audio")

    assert state is PollState.FAILED
    assert machine.error == "unsupported audio"


def test_ceiling_reached_while_processing_times_out():
    machine = PollStateMachine(max_attempts=2)

    machine.record_status(JobStatus.PENDING)
    state = machine.record_status(JobStatus.PROCESSING)

    assert state is PollState.TIMED_OUT
    assert machine.attempts == 2


def test_dubbed_on_last_attempt_wins_over_timeout():
    machine = PollStateMachine(max_attempts=2)

    machine.record_status(JobStatus.PROCESSING)

    assert machine.record_status(JobStatus.DUBBED) is PollState.DUBBED


def test_transport_errors_consume_attempts():
    machine = PollStateMachine(max_attempts=2)

    assert machine.record_transport_error() is PollState.PENDING
    assert machine.record_transport_error() is PollState.TIMED_OUT


def test_no_updates_after_terminal_state():
    machine = PollStateMachine(max_attempts=5)
    machine.record_status(JobStatus.DUBBED)

    with pytest.raises(RuntimeError):
        machine.record_status(JobStatus.PROCESSING)


def test_rejects_non_positive_ceiling():
    with pytest.raises(ValueError):
        PollStateMachine(max_attempts=0)
