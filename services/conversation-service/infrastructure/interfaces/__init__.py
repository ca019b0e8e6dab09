"""Infrastructure interface exports."""

from dubbing_common.infrastructure import StorageClient

from .dubbing_provider import DubbingProvider

__all__ = ["DubbingProvider", "StorageClient"]
