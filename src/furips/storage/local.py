"""Local filesystem storage backend."""

import asyncio
import shutil
from pathlib import Path
from typing import BinaryIO

from furips.core.config import settings
from furips.storage.base import StorageBackend


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend. Cannot issue presigned URLs."""

    def __init__(self, base_path: Path | None = None):
        self._base_path = base_path

    @property
    def base_path(self) -> Path:
        return self._base_path or Path(settings.LOCAL_STORAGE_PATH)

    @base_path.setter
    def base_path(self, value: Path) -> None:
        self._base_path = value

    def is_configured(self) -> bool:
        return True

    def _resolve(self, key: str) -> Path:
        parts = key.split("/")
        if any(part in ("", ".", "..") for part in parts):
            raise ValueError(f"Invalid object key: {key!r}")
        return self.base_path.joinpath(*parts)

    def get_storage_location(self) -> str:
        return str(self.base_path)

    def get_object_uri(self, key: str) -> str:
        return str(self._resolve(key))

    def object_exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    async def store_file(self, key: str, content_type: str, file_data: BinaryIO) -> str:
        """Write file to the local shipment tree."""
        target_path = self._resolve(key)
        await asyncio.to_thread(self._write, target_path, file_data)
        return str(target_path)

    @staticmethod
    def _write(target_path: Path, file_data: BinaryIO) -> None:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        with open(target_path, "wb") as f:
            shutil.copyfileobj(file_data, f, 65536)  # 64KB chunks

    def get_backend_name(self) -> str:
        return "local"


# Singleton instance
local_backend = LocalStorageBackend()
