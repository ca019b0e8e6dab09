"""Creates dubbing jobs for finished recordings."""

from dubbing_common.logging import setup_logging

from domain.models import DubbingJob, JobStatus, Recording
from exceptions import InvalidRecordingError, SubmissionError
from infrastructure.interfaces import DubbingProvider

logger = setup_logging()


class JobSubmitter:
    """Sends one recording and its language pair to the dubbing provider."""

    def __init__(self, provider: DubbingProvider):
        self._provider = provider

    @staticmethod
    def validate(recording: Recording, target_language: str | None) -> None:
        """
        Checks the submission constraints before any exchange is created.

        Raises:
            InvalidRecordingError: If the audio is empty or no target language
                was given.
        """
        if not recording.data:
            raise InvalidRecordingError("audio is empty")
        if not target_language or not target_language.strip():
            raise InvalidRecordingError("target language is required")

    async def submit(
        self,
        recording: Recording,
        target_language: str,
        source_language: str | None = None,
    ) -> DubbingJob:
        """
        Submits a recording for dubbing.

        Returns:
            The provider job, pending or processing.

        Raises:
            InvalidRecordingError: If the recording fails validation.
            SubmissionError: If the provider rejects the job or is unreachable.
        """
        self.validate(recording, target_language)

        job = await self._provider.submit(
            recording.data,
            recording.content_type,
            target_language,
            source_language,
        )

        if job.status is JobStatus.FAILED:
            raise SubmissionError(
                job.error or f"job '{job.job_id}' rejected on creation"
            )

        logger.info(
            "Recording submitted for dubbing",
            extra={
                "job_id": job.job_id,
                "status": job.status.value,
                "source_language": source_language,
                "target_language": target_language,
                "size": len(recording.data),
            },
        )
        return job
