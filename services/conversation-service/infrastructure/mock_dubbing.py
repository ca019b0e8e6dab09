"""Offline DubbingProvider for local development and demos."""

import time

from dubbing_common.logging import setup_logging

from domain.models import DUBBING_LANGUAGES, DubbingJob, JobStatus, Language
from exceptions import FetchError, PollTransportError, SubmissionError

from .interfaces import DubbingProvider

logger = setup_logging()

MOCK_AUDIO_SIZE = 1024


class MockDubbingProvider(DubbingProvider):
    """
    Accepts every recording and reports it dubbed on the first status check.

    The dubbed artifact is a fixed block of silence, so the whole pipeline
    can run without provider credentials.
    """

    def __init__(self):
        self._jobs: dict[str, str] = {}

    async def submit(
        self,
        audio: bytes,
        content_type: str,
        target_language: str,
        source_language: str | None = None,
    ) -> DubbingJob:
        if not audio:
            raise SubmissionError("audio file is required")

        job_id = f"mock_{time.time_ns() // 1_000_000}_{len(self._jobs)}"
        self._jobs[job_id] = target_language
        logger.info(
            "Mock dubbing job created",
            extra={"job_id": job_id, "target_language": target_language},
        )
        return DubbingJob(
            job_id=job_id, status=JobStatus.PENDING, target_language=target_language
        )

    async def get_status(self, job_id: str) -> DubbingJob:
        target_language = self._jobs.get(job_id)
        if target_language is None:
            raise PollTransportError(job_id)
        return DubbingJob(
            job_id=job_id, status=JobStatus.DUBBED, target_language=target_language
        )

    async def fetch_audio(self, job_id: str, target_language: str) -> bytes:
        if job_id not in self._jobs:
            raise FetchError(job_id, target_language)
        return bytes(MOCK_AUDIO_SIZE)

    async def list_languages(self) -> list[Language]:
        return list(DUBBING_LANGUAGES)
