"""Upload session tracking for chunked uploads.

Each upload id owns one scratch directory under the scratch root::

    {root}/{upload_id}/.session.json
    {root}/{upload_id}/chunk_00000
    {root}/{upload_id}/chunk_00001
    ...

Chunk files are named by zero-padded index so a sorted listing yields them
in byte-stream order. The metadata file starts with a dot and never sorts
among them.
"""

import json
import logging
import os
import re
import shutil
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator

from furips.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

METADATA_FILE = ".session.json"
_CHUNK_NAME = re.compile(r"^chunk_(\d{5,})$")
_UPLOAD_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class UploadState(str, Enum):
    """Upload session lifecycle."""

    RECEIVING = "RECEIVING"  # Accepting chunks
    ASSEMBLING = "ASSEMBLING"  # Assembled, chunks kept until commit or release
    COMPLETE = "COMPLETE"  # Terminal, scratch directory removed
    ABANDONED = "ABANDONED"  # Terminal, swept after retention window


def chunk_file_name(index: int) -> str:
    return f"chunk_{index:05d}"


@dataclass
class UploadSession:
    """Metadata of one in-progress chunked upload."""

    upload_id: str
    file_name: str
    total_chunks: int
    directory: Path
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: UploadState = UploadState.RECEIVING

    def chunk_path(self, index: int) -> Path:
        return self.directory / chunk_file_name(index)

    def to_json(self) -> str:
        return json.dumps(
            {
                "uploadId": self.upload_id,
                "fileName": self.file_name,
                "totalChunks": self.total_chunks,
                "createdAt": self.created_at.isoformat(),
                "state": self.state.value,
            }
        )


class KeyedLock:
    """Process-wide mutexes keyed by string, dropped once nobody holds or waits."""

    @dataclass
    class _Entry:
        lock: threading.Lock = field(default_factory=threading.Lock)
        users: int = 0

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict[str, KeyedLock._Entry] = {}

    def acquire(self, key: str, blocking: bool = True) -> bool:
        with self._guard:
            entry = self._entries.setdefault(key, KeyedLock._Entry())
            entry.users += 1
        acquired = entry.lock.acquire(blocking)
        if not acquired:
            self._drop(key, entry)
        return acquired

    def release(self, key: str) -> None:
        with self._guard:
            entry = self._entries[key]
        entry.lock.release()
        self._drop(key, entry)

    def _drop(self, key: str, entry: "KeyedLock._Entry") -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]

    def is_held(self, key: str) -> bool:
        with self._guard:
            return key in self._entries


class UploadSessionManager:
    """Owns the scratch tree of chunked uploads.

    Chunk writes, assembly and sweeping of the same upload id are serialized
    through :meth:`lock`. Terminal states are remembered in memory only.
    """

    def __init__(self, root: Path, retention_seconds: int = 24 * 3600):
        self.root = Path(root)
        self.retention_seconds = retention_seconds
        self._locks = KeyedLock()
        self._finished: dict[str, UploadState] = {}
        self._finished_guard = threading.Lock()

    @staticmethod
    def validate_upload_id(upload_id: str) -> str:
        """Reject ids that are not a single safe path segment."""
        if not upload_id or not _UPLOAD_ID.match(upload_id) or upload_id in (".", ".."):
            raise ValidationError(
                "Invalid uploadId",
                details="uploadId must be 1-128 characters of letters, digits, '.', '_' or '-'",
            )
        return upload_id

    def session_dir(self, upload_id: str) -> Path:
        return self.root / self.validate_upload_id(upload_id)

    @contextmanager
    def lock(self, upload_id: str) -> Iterator[None]:
        """Serialize work on one upload id."""
        self._locks.acquire(upload_id)
        try:
            yield
        finally:
            self._locks.release(upload_id)

    def open_session(self, upload_id: str, file_name: str, total_chunks: int) -> UploadSession:
        """Return the session for upload_id, creating it on first use.

        Must be called while holding :meth:`lock` for upload_id.

        Raises:
            ValidationError: If the session exists with a different chunk count
            OSError: If the scratch directory cannot be written
        """
        existing = self.get_session(upload_id)
        if existing is not None:
            if existing.total_chunks != total_chunks:
                raise ValidationError(
                    "totalChunks does not match the upload session",
                    details={"expected": existing.total_chunks, "received": total_chunks},
                )
            return existing

        directory = self.session_dir(upload_id)
        directory.mkdir(parents=True, exist_ok=True)
        session = UploadSession(
            upload_id=upload_id,
            file_name=file_name,
            total_chunks=total_chunks,
            directory=directory,
        )
        self._write_metadata(session)
        with self._finished_guard:
            self._finished.pop(upload_id, None)

        logger.info(
            "Upload session opened",
            extra={"upload_id": upload_id, "file_name": file_name, "total_chunks": total_chunks},
        )
        return session

    def get_session(self, upload_id: str) -> UploadSession | None:
        """Load a session from its metadata file, or None if it does not exist."""
        directory = self.session_dir(upload_id)
        metadata_path = directory / METADATA_FILE
        try:
            raw = json.loads(metadata_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(
                f"Unreadable upload session metadata: {e}",
                extra={"upload_id": upload_id},
            )
            return None

        return UploadSession(
            upload_id=upload_id,
            file_name=raw["fileName"],
            total_chunks=int(raw["totalChunks"]),
            directory=directory,
            created_at=datetime.fromisoformat(raw["createdAt"]),
            state=UploadState(raw.get("state", UploadState.RECEIVING.value)),
        )

    def received_indices(self, session: UploadSession) -> list[int]:
        """Indices of chunk files present in the session directory, ascending."""
        indices = []
        for entry in sorted(os.listdir(session.directory)):
            match = _CHUNK_NAME.match(entry)
            if match:
                indices.append(int(match.group(1)))
        return indices

    def missing_indices(self, session: UploadSession) -> list[int]:
        return [i for i in range(session.total_chunks) if not session.chunk_path(i).is_file()]

    def mark(self, session: UploadSession, state: UploadState) -> None:
        session.state = state
        self._write_metadata(session)

    def finish(self, upload_id: str, state: UploadState) -> None:
        """Delete the scratch directory and remember the terminal state."""
        with self._finished_guard:
            self._finished[upload_id] = state
        try:
            shutil.rmtree(self.session_dir(upload_id))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                f"Failed to remove scratch directory: {e}",
                extra={"upload_id": upload_id, "state": state.value},
            )

    def state_of(self, upload_id: str) -> UploadState | None:
        session = self.get_session(upload_id)
        if session is not None:
            return session.state
        with self._finished_guard:
            return self._finished.get(upload_id)

    def sweep_expired(self, now: datetime | None = None) -> list[str]:
        """Delete sessions older than the retention window.

        Sessions locked by an in-flight request are left for the next sweep.

        Returns:
            Upload ids that were abandoned
        """
        if not self.root.is_dir():
            return []

        now = now or datetime.now(timezone.utc)
        abandoned = []
        for directory in sorted(self.root.iterdir()):
            if not directory.is_dir() or not _UPLOAD_ID.match(directory.name):
                continue
            upload_id = directory.name
            if self._age_seconds(upload_id, directory, now) <= self.retention_seconds:
                continue
            if not self._locks.acquire(upload_id, blocking=False):
                continue
            try:
                self.finish(upload_id, UploadState.ABANDONED)
                abandoned.append(upload_id)
            finally:
                self._locks.release(upload_id)

        if abandoned:
            logger.info(
                f"Swept {len(abandoned)} abandoned upload session(s)",
                extra={"upload_ids": abandoned},
            )
        return abandoned

    def _age_seconds(self, upload_id: str, directory: Path, now: datetime) -> float:
        session = self.get_session(upload_id)
        if session is not None:
            created_at = session.created_at
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            return (now - created_at).total_seconds()
        # No metadata: fall back to the directory timestamp
        return now.timestamp() - directory.stat().st_mtime

    def _write_metadata(self, session: UploadSession) -> None:
        metadata_path = session.directory / METADATA_FILE
        tmp_path = session.directory / f"{METADATA_FILE}.{os.getpid()}.{time.monotonic_ns()}"
        tmp_path.write_text(session.to_json(), encoding="utf-8")
        os.replace(tmp_path, metadata_path)
