"""File ingestion for shipments.

Chunked uploads are received into per-upload scratch directories and
reassembled in index order; direct uploads go to object storage through
presigned URLs issued per shipment folder.
"""

from furips.ingest.archive import ArchiveExtractor, ExtractedFile
from furips.ingest.assembler import AssembledFile, ChunkAssembler
from furips.ingest.chunks import ChunkReceipt, ChunkReceiver
from furips.ingest.presign import (
    FileDescriptor,
    PresignedUrl,
    PresignedUrlBatch,
    PresignedUrlIssuer,
)
from furips.ingest.sessions import UploadSession, UploadSessionManager, UploadState

__all__ = [
    "ArchiveExtractor",
    "ExtractedFile",
    "AssembledFile",
    "ChunkAssembler",
    "ChunkReceipt",
    "ChunkReceiver",
    "FileDescriptor",
    "PresignedUrl",
    "PresignedUrlBatch",
    "PresignedUrlIssuer",
    "UploadSession",
    "UploadSessionManager",
    "UploadState",
]
