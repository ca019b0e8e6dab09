import asyncio

import pytest
from conftest import FakeDubbingProvider, transport_error

from domain import DubbingJob, JobStatus
from exceptions import JobFailedError, JobTimeoutError, PollerAlreadyRunningError
from pipeline import JobPoller


def _job(job_id="job-1"):
    return DubbingJob(job_id=job_id, status=JobStatus.PENDING, target_language="es")


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_returns_dubbed_job_with_target_language():
    provider = FakeDubbingProvider([JobStatus.PROCESSING, JobStatus.DUBBED])
    provider.scripts["job-1"] = list(provider.status_script)
    sleep = RecordingSleep()
    poller = JobPoller(provider, interval_seconds=5.0, sleep=sleep)

    job = asyncio.run(poller.poll(_job()))

    assert job.status is JobStatus.DUBBED
    assert job.target_language == "es"
    assert provider.status_calls["job-1"] == 2
    assert sleep.calls == [5.0]


def test_first_check_is_immediate():
    provider = FakeDubbingProvider([JobStatus.DUBBED])
    provider.scripts["job-1"] = [JobStatus.DUBBED]
    sleep = RecordingSleep()

    asyncio.run(JobPoller(provider, sleep=sleep).poll(_job()))

    assert sleep.calls == []


def test_never_finishing_job_times_out_after_120_checks():
    provider = FakeDubbingProvider()
    provider.scripts["job-1"] = [JobStatus.PROCESSING]
    sleep = RecordingSleep()
    poller = JobPoller(provider, interval_seconds=5.0, max_attempts=120, sleep=sleep)

    with pytest.raises(JobTimeoutError) as exc_info:
        asyncio.run(poller.poll(_job()))

    assert exc_info.value.attempts == 120
    assert provider.status_calls["job-1"] == 120
    assert len(sleep.calls) == 119
    assert sum(sleep.calls) == pytest.approx(595.0)


def test_failed_job_raises_with_provider_message():
    provider = FakeDubbingProvider()
    provider.failure_message = "source audio too short"
    provider.scripts["job-1"] = [JobStatus.PROCESSING, JobStatus.FAILED]

    with pytest.raises(JobFailedError) as exc_info:
        asyncio.run(JobPoller(provider, sleep=RecordingSleep()).poll(_job()))

    assert str(exc_info.value) == "source audio too short"
    assert provider.status_calls["job-1"] == 2


def test_transport_error_counts_as_attempt_and_polling_continues():
    provider = FakeDubbingProvider()
    provider.scripts["job-1"] = [transport_error(), transport_error(), JobStatus.DUBBED]

    job = asyncio.run(JobPoller(provider, sleep=RecordingSleep()).poll(_job()))

    assert job.status is JobStatus.DUBBED
    assert provider.status_calls["job-1"] == 3


def test_transport_errors_alone_exhaust_the_ceiling():
    provider = FakeDubbingProvider()
    provider.scripts["job-1"] = [transport_error()]
    poller = JobPoller(provider, max_attempts=4, sleep=RecordingSleep())

    with pytest.raises(JobTimeoutError):
        asyncio.run(poller.poll(_job()))

    assert provider.status_calls["job-1"] == 4


def test_second_poll_for_same_job_is_refused():
    provider = FakeDubbingProvider()
    provider.scripts["job-1"] = [JobStatus.PROCESSING, JobStatus.DUBBED]
    release = asyncio.Event()

    async def gated_sleep(seconds):
        await release.wait()

    poller = JobPoller(provider, sleep=gated_sleep)

    async def scenario():
        first = asyncio.create_task(poller.poll(_job()))
        await asyncio.sleep(0)
        assert poller.is_polling("job-1")
        with pytest.raises(PollerAlreadyRunningError):
            await poller.poll(_job())
        release.set()
        return await first

    job = asyncio.run(scenario())

    assert job.status is JobStatus.DUBBED
    assert not poller.is_polling("job-1")
