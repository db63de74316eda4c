"""MinIO implementation of the StorageClient interface."""

from datetime import timedelta

from minio import Minio

from meeting_transcriber.exceptions import StorageSignedUrlError
from meeting_transcriber.logging import setup_logging

from .interfaces import StorageClient

logger = setup_logging()


class MinioStorageClient(StorageClient):
    """Handles media storage operations using MinIO."""

    def __init__(self, client: Minio):
        self._client = client

    def create_signed_url(
        self, bucket_name: str, object_name: str, expires_seconds: int
    ) -> str:
        try:
            url = self._client.presigned_get_object(
                bucket_name,
                object_name,
                expires=timedelta(seconds=expires_seconds),
            )
            logger.info(
                "Signed URL created",
                extra={
                    "bucket_name": bucket_name,
                    "object_name": object_name,
                    "expires_seconds": expires_seconds,
                },
            )
            return url
        except Exception as e:
            logger.exception(
                "MinIO signed URL creation failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageSignedUrlError(object_name, e) from e

    def ensure_bucket_exists(self, bucket_name: str) -> None:
        if not self._client.bucket_exists(bucket_name):
            self._client.make_bucket(bucket_name)
            logger.info("Bucket created", extra={"bucket_name": bucket_name})
        else:
            logger.info("Bucket already exists", extra={"bucket_name": bucket_name})
