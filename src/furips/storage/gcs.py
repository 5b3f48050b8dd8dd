"""Google Cloud Storage backend."""

import asyncio
import logging
from datetime import timedelta
from typing import BinaryIO, Optional

from google.cloud import storage
from google.oauth2 import service_account

from furips.core.config import settings
from furips.core.exceptions import ConfigurationError
from furips.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend."""

    supports_presigned_urls = True

    def __init__(self):
        self._client: Optional[storage.Client] = None
        self._bucket: Optional[storage.Bucket] = None
        self._signing_credentials: Optional[service_account.Credentials] = None

    def is_configured(self) -> bool:
        return bool(settings.GCS_BUCKET_NAME)

    def _get_bucket(self) -> storage.Bucket:
        """Lazy-load and cache GCS bucket."""
        if self._bucket is None:
            if not settings.GCS_BUCKET_NAME:
                raise ConfigurationError("GCS_BUCKET_NAME not configured")

            self._client = storage.Client(project=settings.GCP_PROJECT_ID or None)
            self._bucket = self._client.bucket(settings.GCS_BUCKET_NAME)

        return self._bucket

    def _get_signing_credentials(self) -> service_account.Credentials:
        """Build credentials able to sign URLs without a private key file.

        Uses the runtime service account and the IAM signBlob API; the
        account needs roles/iam.serviceAccountTokenCreator on itself.
        """
        if self._signing_credentials is None:
            from google.auth import compute_engine, iam
            from google.auth.transport import requests as auth_requests

            credentials = compute_engine.Credentials()
            auth_request = auth_requests.Request()
            credentials.refresh(auth_request)

            signer = iam.Signer(
                request=auth_request,
                credentials=credentials,
                service_account_email=credentials.service_account_email,
            )
            # token_uri is required by the constructor; signing goes through the IAM signer
            self._signing_credentials = service_account.Credentials(
                signer=signer,
                service_account_email=credentials.service_account_email,
                token_uri="https://oauth2.googleapis.com/token",
            )
        return self._signing_credentials

    def get_storage_location(self) -> str:
        return settings.GCS_BUCKET_NAME

    def get_object_uri(self, key: str) -> str:
        return f"gs://{settings.GCS_BUCKET_NAME}/{key}"

    def generate_presigned_upload_url(
        self, key: str, content_type: str, expiration_minutes: int
    ) -> str:
        """Generate a V4 signed URL for a direct PUT of one object."""
        bucket = self._get_bucket()
        blob = bucket.blob(key)
        signing_creds = self._get_signing_credentials()

        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=expiration_minutes),
            method="PUT",
            content_type=content_type,
            credentials=signing_creds,
        )

    def object_exists(self, key: str) -> bool:
        return self._get_bucket().blob(key).exists()

    async def store_file(self, key: str, content_type: str, file_data: BinaryIO) -> str:
        """Upload file to GCS under the given key."""
        bucket = self._get_bucket()
        blob = bucket.blob(key)
        blob.content_type = content_type

        await asyncio.to_thread(blob.upload_from_file, file_data, rewind=True)

        logger.debug("Stored object in GCS", extra={"key": key})
        return self.get_object_uri(key)

    def get_backend_name(self) -> str:
        return "gcs"


# Singleton instance
gcs_backend = GCSStorageBackend()
