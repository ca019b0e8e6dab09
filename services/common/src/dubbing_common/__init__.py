from dubbing_common.config import DatabaseConfig, MinioConfig
from dubbing_common.db_models import ConversationRecord, ExchangeRecord
from dubbing_common.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageUploadError,
)
from dubbing_common.logging import setup_logging

__all__ = [
    "setup_logging",
    "StorageDeleteError",
    "StorageDownloadError",
    "StorageUploadError",
    "MinioConfig",
    "DatabaseConfig",
    "ConversationRecord",
    "ExchangeRecord",
]
