"""Downloads dubbed audio for finished jobs."""

from dubbing_common.logging import setup_logging

from domain.models import DubbingJob, JobStatus
from exceptions import FetchError
from infrastructure.interfaces import DubbingProvider

logger = setup_logging()


class ArtifactFetcher:
    """Retrieves the dubbed artifact of a job that reached ``dubbed``."""

    def __init__(self, provider: DubbingProvider):
        self._provider = provider

    async def fetch(self, job: DubbingJob) -> bytes:
        """
        Raises:
            FetchError: If the job is not dubbed, the download fails or the
                artifact is empty.
        """
        if job.status is not JobStatus.DUBBED:
            raise FetchError(
                job.job_id,
                job.target_language,
                RuntimeError(f"job is '{job.status.value}', not dubbed"),
            )

        data = await self._provider.fetch_audio(job.job_id, job.target_language)
        if not data:
            raise FetchError(
                job.job_id, job.target_language, RuntimeError("empty artifact")
            )

        logger.info(
            "Dubbed artifact fetched",
            extra={"job_id": job.job_id, "size": len(data)},
        )
        return data
