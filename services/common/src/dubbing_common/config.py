"""Shared configuration models for infrastructure components."""

from pydantic import BaseModel, computed_field


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    bucket_name: str = "voice-translations"
    region: str = "us-east-1"
    secure: bool = False
    url_ttl_seconds: int = 3600


class DatabaseConfig(BaseModel, frozen=True):
    """Immutable database connection configuration."""

    host: str
    port: str
    user: str
    password: str
    database: str
    url_override: str | None = None

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full connection URL, preferring an explicit override."""
        if self.url_override:
            return self.url_override
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )
