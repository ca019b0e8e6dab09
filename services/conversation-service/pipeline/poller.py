"""Polls dubbing jobs until they reach a terminal state."""

import asyncio
from typing import Awaitable, Callable

from dubbing_common.logging import setup_logging

from domain.models import DubbingJob
from domain.poll_state import PollState, PollStateMachine
from exceptions import (
    JobFailedError,
    JobTimeoutError,
    PollerAlreadyRunningError,
    PollTransportError,
)
from infrastructure.interfaces import DubbingProvider

logger = setup_logging()

Sleep = Callable[[float], Awaitable[None]]


class JobPoller:
    """
    Drives one PollStateMachine per job on a fixed interval.

    The first status check happens immediately; the poller then waits
    ``interval_seconds`` between checks without holding a thread. Transport
    errors are logged and counted as attempts. At most one poll loop runs per
    job id.
    """

    def __init__(
        self,
        provider: DubbingProvider,
        interval_seconds: float = 5.0,
        max_attempts: int = 120,
        sleep: Sleep = asyncio.sleep,
    ):
        self._provider = provider
        self._interval_seconds = interval_seconds
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._active_jobs: set[str] = set()

    def is_polling(self, job_id: str) -> bool:
        return job_id in self._active_jobs

    async def poll(self, job: DubbingJob) -> DubbingJob:
        """
        Polls until the job is dubbed.

        Returns:
            The job as last reported by the provider, in ``dubbed`` state.

        Raises:
            JobFailedError: If the provider reports the job failed.
            JobTimeoutError: If the attempt ceiling is reached first.
            PollerAlreadyRunningError: If this job is already being polled.
        """
        if job.job_id in self._active_jobs:
            raise PollerAlreadyRunningError(job.job_id)

        self._active_jobs.add(job.job_id)
        try:
            return await self._run(job)
        finally:
            self._active_jobs.discard(job.job_id)

    async def _run(self, job: DubbingJob) -> DubbingJob:
        machine = PollStateMachine(self._max_attempts)
        current = job

        while True:
            try:
                reported = await self._provider.get_status(job.job_id)
                current = reported
                if not reported.target_language:
                    current = reported.model_copy(
                        update={"target_language": job.target_language}
                    )
                state = machine.record_status(current.status, current.error)
            except PollTransportError as e:
                state = machine.record_transport_error()
                logger.warning(
                    "Dubbing status check failed",
                    extra={
                        "job_id": job.job_id,
                        "attempt": machine.attempts,
                        "max_attempts": self._max_attempts,
                        "error": str(e.cause or e),
                    },
                )

            if state is PollState.DUBBED:
                logger.info(
                    "Dubbing job finished",
                    extra={"job_id": job.job_id, "attempts": machine.attempts},
                )
                return current

            if state is PollState.FAILED:
                logger.warning(
                    "Dubbing job failed",
                    extra={"job_id": job.job_id, "error": machine.error},
                )
                raise JobFailedError(job.job_id, machine.error)

            if state is PollState.TIMED_OUT:
                logger.warning(
                    "Dubbing job timed out",
                    extra={"job_id": job.job_id, "attempts": machine.attempts},
                )
                raise JobTimeoutError(job.job_id, machine.attempts)

            logger.debug(
                "Dubbing still in progress",
                extra={
                    "job_id": job.job_id,
                    "status": state.value,
                    "attempt": machine.attempts,
                },
            )
            await self._sleep(self._interval_seconds)
