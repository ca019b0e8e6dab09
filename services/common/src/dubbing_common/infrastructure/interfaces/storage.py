"""Abstract interface for durable blob storage operations."""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import BinaryIO


class StorageClient(ABC):
    """Abstract base class for file storage backends bound to one bucket."""

    @abstractmethod
    def download(self, object_name: str) -> bytes:
        """
        Downloads a file from storage.

        Args:
            object_name: The object path/name in storage.

        Returns:
            The file contents as bytes.

        Raises:
            StorageDownloadError: If the download fails.
        """

    @abstractmethod
    def upload(
        self,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """
        Uploads a file to storage.

        Args:
            object_name: The destination path/name in storage.
            data: File-like object containing the data.
            size: Size of the file in bytes.
            content_type: MIME type of the file.

        Raises:
            StorageUploadError: If the upload fails.
        """

    @abstractmethod
    def delete(self, object_name: str) -> None:
        """
        Removes a file from storage. Removing a missing object is not an error.

        Raises:
            StorageDeleteError: If the removal fails.
        """

    @abstractmethod
    def presigned_url(self, object_name: str, expires: timedelta) -> str:
        """
        Returns a time-limited URL that can be used to fetch the object.

        Args:
            object_name: The object path/name in storage.
            expires: How long the URL stays valid.
        """

    @abstractmethod
    def ensure_bucket_exists(self) -> None:
        """Ensures the configured bucket exists, creating it if necessary."""
