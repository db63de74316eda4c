"""Abstract interface for media storage operations."""

from abc import ABC, abstractmethod


class StorageClient(ABC):
    """Abstract base class for media storage backends."""

    @abstractmethod
    def create_signed_url(
        self, bucket_name: str, object_name: str, expires_seconds: int
    ) -> str:
        """
        Creates a time-limited URL a provider can fetch the media from.

        Args:
            bucket_name: The storage bucket name.
            object_name: The object path/name in storage.
            expires_seconds: How long the URL stays valid.

        Returns:
            The signed URL.

        Raises:
            StorageSignedUrlError: If the URL cannot be created.
        """

    @abstractmethod
    def ensure_bucket_exists(self, bucket_name: str) -> None:
        """
        Ensures a bucket exists, creating it if necessary.

        Args:
            bucket_name: The bucket name to ensure exists.
        """
