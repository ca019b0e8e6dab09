"""FastAPI dependency injection configuration."""

from contextlib import contextmanager
from datetime import timedelta
from functools import lru_cache

import httpx
from dubbing_common.logging import setup_logging
from dubbing_common.minio import get_minio_client
from sqlmodel import Session, SQLModel, create_engine

from config import load_config
from handlers import ConversationHandler
from infrastructure import (
    ElevenLabsDubbingProvider,
    EphemeralAudioCache,
    MinioStorageClient,
    MockDubbingProvider,
)
from infrastructure.interfaces import DubbingProvider, StorageClient
from pipeline import (
    ArtifactFetcher,
    DubbingPipeline,
    DurableStore,
    JobPoller,
    JobSubmitter,
)
from repositories import ConversationRepository, ExchangeLedger

logger = setup_logging()

_config = load_config()


@lru_cache
def _get_engine():
    engine = create_engine(_config.database.url)
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized", extra={"host": _config.database.host})
    return engine


@contextmanager
def _session_factory():
    """Creates a database session context manager."""
    with Session(_get_engine()) as session:
        yield session


@lru_cache
def get_storage() -> StorageClient:
    """Returns the configured blob storage client."""
    return MinioStorageClient(
        get_minio_client(_config.minio), _config.minio.bucket_name
    )


@lru_cache
def get_ephemeral_audio() -> EphemeralAudioCache:
    """Returns the process-wide store of not-yet-persisted audio."""
    return EphemeralAudioCache(_config.storage.ephemeral_max_entries)


@lru_cache
def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=_config.dubbing.base_url,
        timeout=_config.dubbing.timeout_seconds,
    )


@lru_cache
def get_provider() -> DubbingProvider:
    """Returns the dubbing provider selected by DUBBING_PROVIDER."""
    if _config.dubbing.provider == "mock":
        logger.info("Using mock dubbing provider")
        return MockDubbingProvider()
    return ElevenLabsDubbingProvider(
        get_http_client(),
        _config.dubbing.api_key,
        allow_watermark=_config.dubbing.allow_watermark,
    )


@lru_cache
def get_durable_store() -> DurableStore:
    return DurableStore(
        get_storage(),
        get_ephemeral_audio(),
        prefix=_config.storage.prefix,
        url_ttl=timedelta(seconds=_config.minio.url_ttl_seconds),
        upload_timeout_seconds=_config.storage.upload_timeout_seconds,
        ephemeral_base_url=_config.storage.ephemeral_base_url,
    )


@lru_cache
def get_pipeline() -> DubbingPipeline:
    """Returns the process-wide dubbing pipeline."""
    provider = get_provider()
    return DubbingPipeline(
        submitter=JobSubmitter(provider),
        poller=JobPoller(
            provider,
            interval_seconds=_config.polling.interval_seconds,
            max_attempts=_config.polling.max_attempts,
        ),
        fetcher=ArtifactFetcher(provider),
        durable_store=get_durable_store(),
        ledger=_get_ledger(),
        ephemeral_audio=get_ephemeral_audio(),
    )


@lru_cache
def _get_repository() -> ConversationRepository:
    return ConversationRepository(_session_factory)


@lru_cache
def _get_ledger() -> ExchangeLedger:
    return ExchangeLedger(_get_repository())


@lru_cache
def get_handler() -> ConversationHandler:
    """Returns the configured conversation handler."""
    return ConversationHandler(
        repository=_get_repository(),
        ledger=_get_ledger(),
        pipeline=get_pipeline(),
        durable_store=get_durable_store(),
        provider=get_provider(),
    )
