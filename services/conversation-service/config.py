"""Application configuration loaded from environment variables."""

import os
from typing import Literal

from dubbing_common.config import DatabaseConfig, MinioConfig
from pydantic import BaseModel


class DubbingConfig(BaseModel, frozen=True):
    """Dubbing provider configuration."""

    provider: Literal["elevenlabs", "mock"] = "elevenlabs"
    api_key: str = ""
    base_url: str = "https://api.elevenlabs.io/v1"
    allow_watermark: bool = True
    timeout_seconds: float = 60.0


class PollingConfig(BaseModel, frozen=True):
    """Job status polling schedule."""

    interval_seconds: float = 5.0
    max_attempts: int = 120


class StorageConfig(BaseModel, frozen=True):
    """Durable and ephemeral audio storage settings."""

    prefix: str = "voice-translations"
    upload_timeout_seconds: float = 30.0
    ephemeral_max_entries: int = 256
    ephemeral_base_url: str = "/audio/ephemeral"


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    database: DatabaseConfig
    dubbing: DubbingConfig
    polling: PollingConfig = PollingConfig()
    storage: StorageConfig = StorageConfig()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            bucket_name=os.getenv("MINIO_BUCKET", "voice-translations"),
            region=os.getenv("MINIO_REGION", "us-east-1"),
            secure=_env_bool("MINIO_SECURE", False),
        ),
        database=DatabaseConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            port=os.getenv("POSTGRES_PORT", "5432"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            database=os.getenv("POSTGRES_DB", "voice_translations"),
            url_override=os.getenv("DATABASE_URL") or None,
        ),
        dubbing=DubbingConfig(
            provider=os.getenv("DUBBING_PROVIDER", "elevenlabs"),
            api_key=os.getenv("ELEVENLABS_API_KEY", ""),
            base_url=os.getenv("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1"),
            allow_watermark=_env_bool("ELEVENLABS_ALLOW_WATERMARK", True),
        ),
        polling=PollingConfig(
            interval_seconds=float(os.getenv("DUBBING_POLL_INTERVAL_SECONDS", "5")),
            max_attempts=int(os.getenv("DUBBING_POLL_MAX_ATTEMPTS", "120")),
        ),
        storage=StorageConfig(
            upload_timeout_seconds=float(os.getenv("AUDIO_UPLOAD_TIMEOUT_SECONDS", "30")),
            ephemeral_base_url=os.getenv("EPHEMERAL_AUDIO_BASE_URL", "/audio/ephemeral"),
        ),
    )
