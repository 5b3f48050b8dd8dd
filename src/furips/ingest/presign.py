"""Batch issuance of presigned upload URLs for one shipment."""

import logging
from dataclasses import dataclass
from typing import Sequence

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from furips.core.config import settings
from furips.core.exceptions import ConfigurationError, UpstreamError, ValidationError
from furips.storage.base import StorageBackend
from furips.storage.paths import build_object_key, build_shipment_folder

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FileDescriptor:
    name: str
    content_type: str = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class PresignedUrl:
    file_name: str
    upload_url: str
    key: str


@dataclass(frozen=True)
class PresignedUrlBatch:
    """URLs for one shipment; ``urls[i]`` belongs to the i-th requested file."""

    folder_path: str
    urls: list[PresignedUrl]


class PresignedUrlIssuer:
    """Issues one upload URL per file, all under one shipment folder.

    The batch is all-or-nothing: if the provider cannot sign any one file
    after retries, no URL is returned.
    """

    def __init__(
        self,
        backend: StorageBackend,
        expiration_minutes: int | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ):
        self.backend = backend
        self.expiration_minutes = expiration_minutes or settings.PRESIGNED_URL_EXPIRATION_MINUTES
        self.max_attempts = max_attempts or settings.PROVIDER_RETRY_ATTEMPTS
        self.backoff_seconds = (
            settings.PROVIDER_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )

    def issue(
        self,
        files: Sequence[FileDescriptor],
        institution_name: str,
        shipment_id: str,
    ) -> PresignedUrlBatch:
        """Issue URLs for every file.

        Raises:
            ValidationError: If files is empty or any name is blank
            ConfigurationError: If the backend cannot issue presigned URLs
            UpstreamError: If the provider fails for any file
        """
        if not files:
            raise ValidationError("At least one file is required")
        if not institution_name or not institution_name.strip():
            raise ValidationError("nombreIps is required")
        if not shipment_id or not shipment_id.strip():
            raise ValidationError("idEnvio is required")
        blank = [i for i, f in enumerate(files) if not f.name or not f.name.strip()]
        if blank:
            raise ValidationError("Every file needs a name", details={"fileIndexes": blank})

        if not self.backend.supports_presigned_urls or not self.backend.is_configured():
            raise ConfigurationError(
                f"Storage backend '{self.backend.get_backend_name()}' is not configured for direct uploads"
            )

        folder_path = build_shipment_folder(institution_name, shipment_id)
        logger.info(
            f"Generating {len(files)} presigned URLs for {folder_path}",
            extra={"folder_path": folder_path, "file_count": len(files)},
        )

        urls = []
        for descriptor in files:
            key = build_object_key(folder_path, descriptor.name)
            content_type = descriptor.content_type or DEFAULT_CONTENT_TYPE
            upload_url = self._sign(key, content_type)
            urls.append(PresignedUrl(file_name=descriptor.name, upload_url=upload_url, key=key))

        return PresignedUrlBatch(folder_path=folder_path, urls=urls)

    def _sign(self, key: str, content_type: str) -> str:
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=10),
            retry=retry_if_not_exception_type(ConfigurationError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retryer(
                self.backend.generate_presigned_upload_url,
                key,
                content_type,
                self.expiration_minutes,
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                f"Storage provider failed to sign upload URL: {e}",
                extra={"key": key, "attempts": self.max_attempts},
            )
            raise UpstreamError(
                "Failed to generate upload URLs", details=f"{key}: {e}"
            ) from e
