"""Abstract storage backend interface."""

from abc import ABC, abstractmethod
from typing import BinaryIO


class StorageBackend(ABC):
    """Abstract base class for shipment object storage."""

    supports_presigned_urls: bool = False

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the backend has everything it needs to serve requests."""
        pass

    @abstractmethod
    def get_storage_location(self) -> str:
        """Return the bucket name or root directory holding shipment folders."""
        pass

    @abstractmethod
    def get_object_uri(self, key: str) -> str:
        """Return the canonical URI of an object key."""
        pass

    @abstractmethod
    async def store_file(self, key: str, content_type: str, file_data: BinaryIO) -> str:
        """Store a file under the given object key.

        Args:
            key: Object key, ``{folder}/{file name}``
            content_type: MIME type
            file_data: File content stream

        Returns:
            Final storage URI
        """
        pass

    @abstractmethod
    def object_exists(self, key: str) -> bool:
        """Check whether an object key has been written."""
        pass

    def generate_presigned_upload_url(
        self, key: str, content_type: str, expiration_minutes: int
    ) -> str:
        """Generate a time-limited URL allowing a direct PUT of one object.

        Args:
            key: Object key the client will upload to
            content_type: MIME type the client must send
            expiration_minutes: URL lifetime

        Returns:
            Signed upload URL
        """
        raise NotImplementedError(
            f"{self.get_backend_name()} backend does not issue presigned URLs"
        )

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
