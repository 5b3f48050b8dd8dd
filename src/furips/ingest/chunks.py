"""Receiving individual chunks of a chunked upload."""

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

from furips.core.exceptions import StorageError, ValidationError
from furips.ingest.sessions import UploadSessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkReceipt:
    """Acknowledgement of one stored chunk."""

    upload_id: str
    chunk_index: int
    total_chunks: int
    size_bytes: int

    @property
    def message(self) -> str:
        return f"Chunk {self.chunk_index + 1}/{self.total_chunks} received"


class ChunkReceiver:
    """Persists chunks into their upload session's scratch directory.

    Completion of the whole upload is never reported here; the client counts
    acknowledgements and asks for assembly once every chunk is in.
    """

    def __init__(self, sessions: UploadSessionManager, max_chunk_bytes: int | None = None):
        self.sessions = sessions
        self.max_chunk_bytes = max_chunk_bytes

    def receive(
        self,
        chunk: bytes,
        chunk_index: int,
        total_chunks: int,
        file_name: str,
        upload_id: str,
    ) -> ChunkReceipt:
        """Store one chunk, replacing any earlier write of the same index.

        Raises:
            ValidationError: If any argument is out of range or empty
            StorageError: If the chunk cannot be written to disk
        """
        self._validate(chunk, chunk_index, total_chunks, file_name, upload_id)

        with self.sessions.lock(upload_id):
            try:
                session = self.sessions.open_session(upload_id, file_name, total_chunks)
                self._write_atomic(session.chunk_path(chunk_index), chunk)
            except OSError as e:
                logger.error(
                    f"Failed to store chunk: {e}",
                    extra={"upload_id": upload_id, "chunk_index": chunk_index},
                    exc_info=True,
                )
                raise StorageError("Failed to store chunk", details=str(e)) from e

        logger.info(
            f"Chunk {chunk_index + 1}/{total_chunks} stored for {file_name}",
            extra={"upload_id": upload_id, "size_bytes": len(chunk)},
        )
        return ChunkReceipt(
            upload_id=upload_id,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            size_bytes=len(chunk),
        )

    def _validate(
        self,
        chunk: bytes,
        chunk_index: int,
        total_chunks: int,
        file_name: str,
        upload_id: str,
    ) -> None:
        if not chunk:
            raise ValidationError("Chunk is empty")
        if self.max_chunk_bytes is not None and len(chunk) > self.max_chunk_bytes:
            raise ValidationError(
                "Chunk exceeds maximum allowed size",
                details={"maxBytes": self.max_chunk_bytes, "receivedBytes": len(chunk)},
            )
        if total_chunks < 1:
            raise ValidationError("totalChunks must be a positive integer")
        if not 0 <= chunk_index < total_chunks:
            raise ValidationError(
                "chunkIndex out of range",
                details={"chunkIndex": chunk_index, "totalChunks": total_chunks},
            )
        if not file_name or not file_name.strip():
            raise ValidationError("fileName is required")
        if not upload_id or not upload_id.strip():
            raise ValidationError("uploadId is required")
        self.sessions.validate_upload_id(upload_id)

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        tmp_path = path.with_name(f"{path.name}.tmp-{uuid.uuid4().hex}")
        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
