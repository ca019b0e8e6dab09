"""Accumulates streamed microphone audio into finished takes."""

from datetime import datetime
from typing import Callable

from domain.models import Recording, utcnow
from exceptions import InvalidRecordingError, RecordingStateError


class AudioCapture:
    """Collects audio chunks for one take at a time."""

    def __init__(
        self,
        content_type: str = "audio/webm",
        clock: Callable[[], datetime] = utcnow,
    ):
        self._content_type = content_type
        self._clock = clock
        self._chunks: list[bytes] = []
        self._started_at: datetime | None = None

    @property
    def is_recording(self) -> bool:
        return self._started_at is not None

    def start(self, started_at: datetime | None = None) -> None:
        if self.is_recording:
            raise RecordingStateError("A take is already being recorded")
        self._chunks = []
        self._started_at = started_at or self._clock()

    def add_chunk(self, chunk: bytes) -> None:
        if not self.is_recording:
            raise RecordingStateError("Cannot add audio before the take is started")
        if chunk:
            self._chunks.append(chunk)

    def finish(self, duration_seconds: float | None = None) -> Recording:
        """
        Closes the current take and returns it as one recording.

        When no duration is supplied it is measured from the start of the
        take to now.

        Raises:
            RecordingStateError: If no take was started.
            InvalidRecordingError: If the take captured no audio.
        """
        if not self.is_recording:
            raise RecordingStateError("No take in progress")

        started_at = self._started_at
        data = b"".join(self._chunks)
        self._chunks = []
        self._started_at = None

        if not data:
            raise InvalidRecordingError("the take captured no audio")

        if duration_seconds is None:
            duration_seconds = max((self._clock() - started_at).total_seconds(), 0.0)

        return Recording(
            data=data,
            content_type=self._content_type,
            started_at=started_at,
            duration_seconds=duration_seconds,
        )

    def discard(self) -> None:
        self._chunks = []
        self._started_at = None
