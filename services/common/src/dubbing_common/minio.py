import logging

from minio import Minio

from dubbing_common.config import MinioConfig

logger = logging.getLogger(__name__)


def get_minio_client(config: MinioConfig) -> Minio:
    """
    Initialize and return a MinIO client from configuration.

    The region is pinned so presigned URLs can be generated without a
    round trip to the server.

    Returns:
        Minio: Configured MinIO client
    """
    try:
        return Minio(
            endpoint=config.endpoint,
            access_key=config.user,
            secret_key=config.password,
            secure=config.secure,
            region=config.region,
        )
    except Exception:
        logger.exception(
            "MinIO Client Initialization Failed",
            extra={
                "endpoint": config.endpoint,
                "user": config.user,
            },
        )
        raise
