from dubbing_common.infrastructure.interfaces.storage import StorageClient

__all__ = ["StorageClient"]
