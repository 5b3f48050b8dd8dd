"""Reassembling a chunked upload into the original file."""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from furips.core.exceptions import (
    ConflictError,
    IncompleteUploadError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from furips.ingest.sessions import UploadSession, UploadSessionManager, UploadState

logger = logging.getLogger(__name__)

_COPY_BUFFER = 1024 * 1024  # 1MB


@dataclass(frozen=True)
class AssembledFile:
    upload_id: str
    file_name: str
    path: Path
    size_bytes: int


class ChunkAssembler:
    """Concatenates chunk files strictly by index, never by arrival order.

    The chunks outlive assembly: the caller commits once the file has been
    published, or releases the session so the client can retry.
    """

    def __init__(self, sessions: UploadSessionManager):
        self.sessions = sessions

    def assemble(self, upload_id: str, total_chunks: int, destination: Path) -> AssembledFile:
        """Write the complete file to destination, keeping the chunks.

        Nothing is written to destination unless every chunk is present.
        destination must live outside the session's scratch directory. The
        session stays ASSEMBLING until :meth:`commit` or :meth:`release`.

        Raises:
            NotFoundError: If no session exists for upload_id
            ValidationError: If total_chunks disagrees with the session
            IncompleteUploadError: If any chunk index is missing
            ConflictError: If another assembly of upload_id is pending
            StorageError: If reading chunks or writing the output fails
        """
        destination = Path(destination)

        with self.sessions.lock(upload_id):
            session = self.sessions.get_session(upload_id)
            if session is None:
                raise NotFoundError(f"No chunks found for upload {upload_id}")

            if session.state is UploadState.ASSEMBLING:
                raise ConflictError(f"Upload {upload_id} is already being completed")

            if total_chunks != session.total_chunks:
                raise ValidationError(
                    "totalChunks does not match the upload session",
                    details={"expected": session.total_chunks, "received": total_chunks},
                )

            missing = self.sessions.missing_indices(session)
            if missing:
                logger.warning(
                    "Assembly requested before all chunks arrived",
                    extra={"upload_id": upload_id, "missing_chunks": missing},
                )
                raise IncompleteUploadError(upload_id, missing)

            part_path = destination.with_name(f"{destination.name}.part")
            try:
                self.sessions.mark(session, UploadState.ASSEMBLING)
                destination.parent.mkdir(parents=True, exist_ok=True)
                with open(part_path, "wb") as out:
                    for index in range(session.total_chunks):
                        with open(session.chunk_path(index), "rb") as src:
                            shutil.copyfileobj(src, out, _COPY_BUFFER)
                size_bytes = part_path.stat().st_size
                os.replace(part_path, destination)
            except OSError as e:
                part_path.unlink(missing_ok=True)
                logger.error(
                    f"Failed to assemble upload: {e}",
                    extra={"upload_id": upload_id},
                    exc_info=True,
                )
                self._reset(session)
                raise StorageError("Failed to assemble upload", details=str(e)) from e

        logger.info(
            f"Upload assembled: {session.total_chunks} chunks, {size_bytes / (1024 * 1024):.2f} MB",
            extra={"upload_id": upload_id, "file_name": session.file_name},
        )
        return AssembledFile(
            upload_id=upload_id,
            file_name=session.file_name,
            path=destination,
            size_bytes=size_bytes,
        )

    def commit(self, upload_id: str) -> None:
        """Drop the chunks once the assembled file is in final storage."""
        with self.sessions.lock(upload_id):
            self.sessions.finish(upload_id, UploadState.COMPLETE)

    def release(self, upload_id: str) -> None:
        """Return a pending assembly to RECEIVING so completion can be retried."""
        with self.sessions.lock(upload_id):
            session = self.sessions.get_session(upload_id)
            if session is not None:
                self._reset(session)

    def _reset(self, session: UploadSession) -> None:
        try:
            self.sessions.mark(session, UploadState.RECEIVING)
        except OSError as e:
            logger.warning(
                f"Failed to reset upload session state: {e}",
                extra={"upload_id": session.upload_id},
            )
