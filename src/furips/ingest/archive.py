"""ZIP expansion of assembled shipment archives."""

import logging
import mimetypes
import os
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List

from furips.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ExtractedFile:
    """Metadata for an extracted file."""

    filename: str
    size_bytes: int
    mime_type: str
    local_path: str


class ArchiveExtractor:
    """Flattens a ZIP archive into a directory with safety limits.

    Entries are written by base name only; the archive's folder structure is
    dropped because every file of a shipment lives in one folder.
    """

    def __init__(self, max_files: int = 5000, max_file_size_bytes: int = 500 * 1024 * 1024):
        """Initialize extractor with limits.

        Args:
            max_files: Maximum number of files to extract
            max_file_size_bytes: Maximum uncompressed size per file
        """
        self.max_files = max_files
        self.max_file_size_bytes = max_file_size_bytes

    @staticmethod
    def is_zip(path: Path) -> bool:
        return zipfile.is_zipfile(path)

    def extract_zip(self, archive_path: Path, extract_dir: Path) -> List[ExtractedFile]:
        """Extract every regular, visible entry of a ZIP archive.

        Raises:
            ValidationError: If the archive is corrupted or password protected
        """
        extract_dir.mkdir(parents=True, exist_ok=True)
        extracted_files: List[ExtractedFile] = []
        seen_names: set[str] = set()

        try:
            with zipfile.ZipFile(archive_path, "r") as zip_ref:
                for info in zip_ref.infolist():
                    if info.flag_bits & 0x1:
                        raise ValidationError(
                            "Password-protected ZIP archives are not supported"
                        )

                for info in zip_ref.infolist():
                    if len(extracted_files) >= self.max_files:
                        logger.warning(
                            f"Reached max files limit ({self.max_files}), stopping extraction",
                            extra={"archive_path": str(archive_path)},
                        )
                        break

                    if info.is_dir() or self._is_ignored(info.filename):
                        continue

                    if info.file_size > self.max_file_size_bytes:
                        logger.warning(
                            f"Skipping large file: {info.filename} ({info.file_size} bytes)",
                            extra={"filename": info.filename, "size": info.file_size},
                        )
                        continue

                    base_name = os.path.basename(info.filename.replace("\\", "/"))
                    if not base_name or base_name in (".", ".."):
                        continue
                    if base_name in seen_names:
                        logger.warning(
                            f"Duplicate file name in archive, keeping last: {base_name}",
                            extra={"filename": info.filename},
                        )
                    seen_names.add(base_name)

                    target_path = extract_dir / base_name
                    with zip_ref.open(info) as src, open(target_path, "wb") as dst:
                        shutil.copyfileobj(src, dst, 1024 * 1024)

                    extracted_files.append(
                        ExtractedFile(
                            filename=base_name,
                            size_bytes=info.file_size,
                            mime_type=self._detect_mime_type(base_name),
                            local_path=str(target_path),
                        )
                    )

        except zipfile.BadZipFile as e:
            logger.error(
                f"Corrupted ZIP archive: {e}",
                extra={"archive_path": str(archive_path)},
            )
            raise ValidationError("Corrupted ZIP archive", details=str(e)) from e

        # A later duplicate overwrote an earlier one on disk
        by_name = {f.filename: f for f in extracted_files}
        return list(by_name.values())

    @staticmethod
    def _is_ignored(filename: str) -> bool:
        """Hidden files and macOS resource forks are not part of a shipment."""
        parts = filename.replace("\\", "/").split("/")
        return any(part.startswith(".") for part in parts if part) or "__MACOSX" in parts

    @staticmethod
    def _detect_mime_type(filename: str) -> str:
        mime_type, _ = mimetypes.guess_type(filename)
        return mime_type or "application/octet-stream"
