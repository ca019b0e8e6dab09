"""Abstract interface for remote dubbing providers."""

from abc import ABC, abstractmethod

from domain.models import DubbingJob, Language


class DubbingProvider(ABC):
    """Abstract base class for speech-to-speech dubbing backends."""

    @abstractmethod
    async def submit(
        self,
        audio: bytes,
        content_type: str,
        target_language: str,
        source_language: str | None = None,
    ) -> DubbingJob:
        """
        Creates a dubbing job for one recording.

        Args:
            audio: Raw recording bytes.
            content_type: MIME type of the recording.
            target_language: Language code to dub into.
            source_language: Spoken language code, or None to auto-detect.

        Returns:
            The provider job in pending or processing state.

        Raises:
            SubmissionError: If the provider rejects the job or is unreachable.
        """

    @abstractmethod
    async def get_status(self, job_id: str) -> DubbingJob:
        """
        Returns the current state of a job.

        Raises:
            PollTransportError: If the status could not be obtained.
        """

    @abstractmethod
    async def fetch_audio(self, job_id: str, target_language: str) -> bytes:
        """
        Downloads the dubbed audio (audio/mpeg) of a finished job.

        Raises:
            FetchError: If the download does not succeed.
        """

    @abstractmethod
    async def list_languages(self) -> list[Language]:
        """Returns the languages the provider can dub into."""
