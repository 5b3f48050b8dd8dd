"""Tests for storage backends."""

import io
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from furips.core.config import settings
from furips.core.exceptions import ConfigurationError
from furips.storage.factory import get_storage_backend
from furips.storage.gcs import GCSStorageBackend, gcs_backend
from furips.storage.local import LocalStorageBackend, local_backend


class TestLocalStorageBackend:
    """Tests for local storage backend."""

    @pytest.mark.asyncio
    async def test_store_file(self, tmp_path):
        """Test file storage to local filesystem."""
        backend = LocalStorageBackend()
        backend.base_path = tmp_path

        content = b"FURIPS1|data"
        storage_path = await backend.store_file(
            "Clinica_Norte/ENV-001/FURIPS1.txt", "text/plain", io.BytesIO(content)
        )

        assert Path(storage_path) == tmp_path / "Clinica_Norte" / "ENV-001" / "FURIPS1.txt"
        assert Path(storage_path).read_bytes() == content
        assert backend.object_exists("Clinica_Norte/ENV-001/FURIPS1.txt")
        assert not backend.object_exists("Clinica_Norte/ENV-001/missing.txt")

    def test_location_and_uri(self, tmp_path):
        backend = LocalStorageBackend(base_path=tmp_path)

        assert backend.get_storage_location() == str(tmp_path)
        assert backend.get_object_uri("a/b.txt") == str(tmp_path / "a" / "b.txt")

    @pytest.mark.parametrize("key", ["../secret.txt", "a/../../secret.txt", "a/./b.txt", "/etc/passwd"])
    def test_rejects_keys_outside_base_path(self, tmp_path, key):
        backend = LocalStorageBackend(base_path=tmp_path / "storage")

        with pytest.raises(ValueError):
            backend.object_exists(key)

    def test_cannot_presign(self, tmp_path):
        backend = LocalStorageBackend(base_path=tmp_path)

        assert backend.is_configured()
        assert not backend.supports_presigned_urls
        with pytest.raises(NotImplementedError):
            backend.generate_presigned_upload_url("a/b.txt", "text/plain", 10)

    def test_get_backend_name(self):
        """Test backend name."""
        assert LocalStorageBackend().get_backend_name() == "local"


class TestGCSStorageBackend:
    """Tests for GCS storage backend."""

    @pytest.fixture
    def backend(self, monkeypatch):
        monkeypatch.setattr(settings, "GCS_BUCKET_NAME", "furips-envios")
        backend = GCSStorageBackend()
        backend._bucket = MagicMock()
        backend._signing_credentials = MagicMock()
        return backend

    def test_generate_presigned_upload_url(self, backend):
        blob = backend._bucket.blob.return_value
        blob.generate_signed_url.return_value = "https://storage.googleapis.com/signed"

        url = backend.generate_presigned_upload_url("IPS/ENV/a.zip", "application/zip", 30)

        assert url == "https://storage.googleapis.com/signed"
        backend._bucket.blob.assert_called_once_with("IPS/ENV/a.zip")
        blob.generate_signed_url.assert_called_once_with(
            version="v4",
            expiration=timedelta(minutes=30),
            method="PUT",
            content_type="application/zip",
            credentials=backend._signing_credentials,
        )

    def test_object_exists(self, backend):
        backend._bucket.blob.return_value.exists.return_value = True

        assert backend.object_exists("IPS/ENV/a.zip")

    @pytest.mark.asyncio
    async def test_store_file(self, backend):
        blob = backend._bucket.blob.return_value
        file_data = io.BytesIO(b"content")

        uri = await backend.store_file("IPS/ENV/a.txt", "text/plain", file_data)

        assert uri == "gs://furips-envios/IPS/ENV/a.txt"
        assert blob.content_type == "text/plain"
        blob.upload_from_file.assert_called_once_with(file_data, rewind=True)

    def test_location(self, backend):
        assert backend.get_storage_location() == "furips-envios"
        assert backend.supports_presigned_urls
        assert backend.get_backend_name() == "gcs"

    def test_unconfigured_bucket(self, monkeypatch):
        monkeypatch.setattr(settings, "GCS_BUCKET_NAME", "")
        backend = GCSStorageBackend()

        assert not backend.is_configured()
        with pytest.raises(ConfigurationError):
            backend.generate_presigned_upload_url("a/b.txt", "text/plain", 10)


class TestStorageFactory:
    def test_local(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
        assert get_storage_backend() is local_backend

    def test_gcs(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "gcs")
        assert get_storage_backend() is gcs_backend

    def test_unknown(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "ftp")
        with pytest.raises(ConfigurationError):
            get_storage_backend()
