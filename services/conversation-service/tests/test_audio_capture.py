from datetime import datetime, timedelta, timezone

import pytest

from domain import AudioCapture
from exceptions import InvalidRecordingError, RecordingStateError

START = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_take_is_joined_into_one_recording():
    clock = FakeClock(START)
    capture = AudioCapture(content_type="audio/ogg", clock=clock)

    capture.start()
    capture.add_chunk(b"abc")
    capture.add_chunk(b"")
    capture.add_chunk(b"def")
    clock.now = START + timedelta(seconds=4.5)
    recording = capture.finish()

    assert recording.data == b"abcdef"
    assert recording.content_type == "audio/ogg"
    assert recording.started_at == START
    assert recording.duration_seconds == pytest.approx(4.5)
    assert not capture.is_recording


def test_explicit_duration_wins_over_clock():
    capture = AudioCapture(clock=FakeClock(START))
    capture.start(started_at=START - timedelta(minutes=1))
    capture.add_chunk(b"x")

    recording = capture.finish(duration_seconds=2.0)

    assert recording.duration_seconds == 2.0
    assert recording.started_at == START - timedelta(minutes=1)


def test_empty_take_is_invalid():
    capture = AudioCapture()
    capture.start()

    with pytest.raises(InvalidRecordingError):
        capture.finish()
    assert not capture.is_recording


def test_out_of_order_use():
    capture = AudioCapture()

    with pytest.raises(RecordingStateError):
        capture.add_chunk(b"x")
    with pytest.raises(RecordingStateError):
        capture.finish()

    capture.start()
    with pytest.raises(RecordingStateError):
        capture.start()

    capture.discard()
    assert not capture.is_recording
