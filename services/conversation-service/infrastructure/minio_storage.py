"""MinIO implementation of the StorageClient interface."""

from datetime import timedelta
from typing import BinaryIO

from dubbing_common import (
    StorageDeleteError,
    StorageDownloadError,
    StorageUploadError,
    setup_logging,
)
from dubbing_common.infrastructure import StorageClient
from minio import Minio

logger = setup_logging()


class MinioStorageClient(StorageClient):
    """Handles audio object storage using MinIO."""

    def __init__(self, client: Minio, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name

    def download(self, object_name: str) -> bytes:
        response = None
        try:
            response = self._client.get_object(self._bucket_name, object_name)
            data = response.data
            logger.info(
                "File downloaded from MinIO",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            return data
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(object_name, e) from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def upload(
        self,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        try:
            self._client.put_object(
                bucket_name=self._bucket_name,
                object_name=object_name,
                data=data,
                length=size,
                content_type=content_type,
            )
            logger.info(
                "File uploaded to MinIO",
                extra={
                    "bucket_name": self._bucket_name,
                    "object_name": object_name,
                    "size": size,
                },
            )
        except Exception as e:
            logger.exception(
                "MinIO upload failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageUploadError(object_name, e) from e

    def delete(self, object_name: str) -> None:
        try:
            self._client.remove_object(self._bucket_name, object_name)
            logger.info(
                "File removed from MinIO",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
        except Exception as e:
            logger.exception(
                "MinIO removal failed",
                extra={"bucket_name": self._bucket_name, "object_name": object_name},
            )
            raise StorageDeleteError(object_name, e) from e

    def presigned_url(self, object_name: str, expires: timedelta) -> str:
        return self._client.presigned_get_object(
            self._bucket_name, object_name, expires=expires
        )

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(self._bucket_name):
            self._client.make_bucket(self._bucket_name)
            logger.info("Bucket created", extra={"bucket_name": self._bucket_name})
        else:
            logger.info(
                "Bucket already exists", extra={"bucket_name": self._bucket_name}
            )
