import asyncio
import threading
from contextlib import contextmanager
from datetime import timedelta
from typing import BinaryIO

import pytest
from dubbing_common import StorageUploadError
from dubbing_common.infrastructure import StorageClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from domain.models import (
    DUBBING_LANGUAGES,
    DubbingJob,
    JobStatus,
    Language,
    PatientInfo,
)
from exceptions import PollTransportError
from handlers import ConversationHandler
from infrastructure import EphemeralAudioCache
from infrastructure.interfaces import DubbingProvider
from pipeline import (
    ArtifactFetcher,
    DubbingPipeline,
    DurableStore,
    JobPoller,
    JobSubmitter,
)
from repositories import ConversationRepository, ExchangeLedger


class FakeDubbingProvider(DubbingProvider):
    """
    Scripted provider: each job walks through ``status_script`` one status
    per poll, then stays on the last entry.
    """

    def __init__(self, status_script=None, artifact=b"dubbed-audio"):
        self.status_script = status_script or [JobStatus.DUBBED]
        self.artifact = artifact
        self.scripts: dict[str, list] = {}
        self.submit_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.failure_message: str | None = None
        self.submitted: list[dict] = []
        self.status_calls: dict[str, int] = {}
        self.fetch_calls = 0

    def script_next(self, statuses):
        """Uses ``statuses`` for the next submitted job only."""
        self.scripts[f"job-{len(self.submitted) + 1}"] = list(statuses)

    async def submit(self, audio, content_type, target_language, source_language=None):
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(
            {
                "audio": audio,
                "target_language": target_language,
                "source_language": source_language,
            }
        )
        job_id = f"job-{len(self.submitted)}"
        self.scripts.setdefault(job_id, list(self.status_script))
        return DubbingJob(
            job_id=job_id, status=JobStatus.PENDING, target_language=target_language
        )

    async def get_status(self, job_id):
        calls = self.status_calls.get(job_id, 0)
        self.status_calls[job_id] = calls + 1
        script = self.scripts[job_id]
        status = script[min(calls, len(script) - 1)]
        if isinstance(status, Exception):
            raise status
        error = self.failure_message if status is JobStatus.FAILED else None
        return DubbingJob(
            job_id=job_id, status=status, target_language="", error=error
        )

    async def fetch_audio(self, job_id, target_language):
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.artifact

    async def list_languages(self) -> list[Language]:
        return list(DUBBING_LANGUAGES)


class InMemoryStorage(StorageClient):
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_uploads = False
        self.fail_uploads_matching: str | None = None
        self.fail_urls = False
        self.deleted: list[str] = []

    def download(self, object_name: str) -> bytes:
        return self.objects[object_name][0]

    def upload(
        self, object_name: str, data: BinaryIO, size: int, content_type: str
    ) -> None:
        failing = self.fail_uploads_matching
        if self.fail_uploads or (failing is not None and failing in object_name):
            raise StorageUploadError(object_name, ConnectionError("storage down"))
        self.objects[object_name] = (data.read(size), content_type)

    def delete(self, object_name: str) -> None:
        self.deleted.append(object_name)
        self.objects.pop(object_name, None)

    def presigned_url(self, object_name: str, expires: timedelta) -> str:
        if self.fail_urls:
            raise ConnectionError("storage down")
        return f"https://storage.test/{object_name}?ttl={int(expires.total_seconds())}"

    def ensure_bucket_exists(self) -> None:
        pass


async def no_sleep(seconds: float) -> None:
    await asyncio.sleep(0)


def transport_error(job_id: str = "job-1") -> PollTransportError:
    return PollTransportError(job_id, ConnectionError("connection reset"))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    # every session shares the one in-memory connection, so they take turns
    turn = threading.Lock()

    @contextmanager
    def factory():
        with turn, Session(engine) as session:
            yield session

    return factory


@pytest.fixture
def repository(session_factory):
    return ConversationRepository(session_factory)


@pytest.fixture
def ledger(repository):
    return ExchangeLedger(repository)


@pytest.fixture
def provider():
    return FakeDubbingProvider()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def ephemeral_audio():
    return EphemeralAudioCache(max_entries=64)


@pytest.fixture
def durable_store(storage, ephemeral_audio):
    return DurableStore(storage, ephemeral_audio, upload_timeout_seconds=5)


@pytest.fixture
def poller(provider):
    return JobPoller(provider, interval_seconds=5.0, max_attempts=120, sleep=no_sleep)


@pytest.fixture
def pipeline(provider, poller, durable_store, ledger, ephemeral_audio):
    return DubbingPipeline(
        submitter=JobSubmitter(provider),
        poller=poller,
        fetcher=ArtifactFetcher(provider),
        durable_store=durable_store,
        ledger=ledger,
        ephemeral_audio=ephemeral_audio,
    )


@pytest.fixture
def handler(repository, ledger, pipeline, durable_store, provider):
    return ConversationHandler(
        repository=repository,
        ledger=ledger,
        pipeline=pipeline,
        durable_store=durable_store,
        provider=provider,
    )


@pytest.fixture
def patient():
    return PatientInfo(
        patient_name="Ana Morales",
        patient_id="P-1042",
        doctor_name="Dr. Reyes",
        visit_type="follow-up",
    )
