"""Storage backend selection."""

from furips.core.config import settings
from furips.core.exceptions import ConfigurationError
from furips.storage.base import StorageBackend
from furips.storage.gcs import gcs_backend
from furips.storage.local import local_backend


def get_storage_backend() -> StorageBackend:
    """Return the backend named by STORAGE_BACKEND.

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    if settings.STORAGE_BACKEND == "gcs":
        return gcs_backend
    if settings.STORAGE_BACKEND == "local":
        return local_backend
    raise ConfigurationError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
