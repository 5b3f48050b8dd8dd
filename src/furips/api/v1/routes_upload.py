"""Upload API routes."""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from furips.api.deps import get_current_principal, get_upload_manager, require_roles
from furips.core.config import settings
from furips.core.exceptions import ConfigurationError, FuripsError, StorageError
from furips.core.logging import upload_id_context
from furips.core.security import Principal, Role
from furips.db.session import get_db
from furips.ingest.chunks import ChunkReceiver
from furips.ingest.presign import FileDescriptor, PresignedUrlIssuer
from furips.ingest.sessions import UploadSessionManager
from furips.models.upload import (
    ChunkUploadResponse,
    CompleteChunkedUploadRequest,
    CompleteUploadRequest,
    PresignedUrlItem,
    PresignedUrlRequest,
    PresignedUrlResponse,
    ShipmentDetails,
    ShipmentUploadData,
    ShipmentUploadResponse,
    UploadStatusResponse,
)
from furips.services.shipments import ShipmentInfo, ShipmentResult, ShipmentService
from furips.storage.base import StorageBackend
from furips.storage.factory import get_storage_backend

router = APIRouter(prefix="/api", tags=["upload"])
logger = logging.getLogger(__name__)

uploader = require_roles(Role.ADMIN, Role.USER)


@router.post("/upload-chunk", response_model=ChunkUploadResponse)
async def upload_chunk(
    chunk: UploadFile = File(...),
    chunk_index: int = Form(..., alias="chunkIndex"),
    total_chunks: int = Form(..., alias="totalChunks"),
    file_name: str = Form(..., alias="fileName"),
    upload_id: str = Form(..., alias="uploadId"),
    principal: Principal = Depends(get_current_principal),
    sessions: UploadSessionManager = Depends(get_upload_manager),
) -> ChunkUploadResponse:
    """Store one chunk of a chunked upload."""
    upload_id_context.set(upload_id)
    try:
        data = await chunk.read()
        receiver = ChunkReceiver(sessions, max_chunk_bytes=settings.max_chunk_bytes)
        receipt = await asyncio.to_thread(
            receiver.receive, data, chunk_index, total_chunks, file_name, upload_id
        )
        return ChunkUploadResponse(
            chunk_index=receipt.chunk_index,
            total_chunks=receipt.total_chunks,
            message=receipt.message,
        )

    except FuripsError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error while storing chunk: {e}", exc_info=True)
        raise StorageError("Failed to store chunk", details=str(e)) from e


@router.get("/upload-status/{upload_id}", response_model=UploadStatusResponse)
async def upload_status(
    upload_id: str,
    principal: Principal = Depends(get_current_principal),
    sessions: UploadSessionManager = Depends(get_upload_manager),
) -> UploadStatusResponse:
    """Report which chunks of an upload have been received."""
    session = sessions.get_session(upload_id)
    if session is None:
        state = sessions.state_of(upload_id)
        return UploadStatusResponse(
            upload_id=upload_id,
            state=state.value if state else "UNKNOWN",
        )

    received = sessions.received_indices(session)
    received_set = set(received)
    return UploadStatusResponse(
        upload_id=upload_id,
        state=session.state.value,
        file_name=session.file_name,
        total_chunks=session.total_chunks,
        received_chunks=received,
        missing_chunks=[i for i in range(session.total_chunks) if i not in received_set],
    )


@router.post("/complete-chunked-upload", response_model=ShipmentUploadResponse)
async def complete_chunked_upload(
    request: CompleteChunkedUploadRequest = Body(...),
    principal: Principal = Depends(uploader),
    db: Session = Depends(get_db),
    backend: StorageBackend = Depends(get_storage_backend),
    sessions: UploadSessionManager = Depends(get_upload_manager),
) -> ShipmentUploadResponse:
    """Assemble a chunked upload and register it as a shipment."""
    upload_id_context.set(request.upload_id)
    if not backend.is_configured():
        raise ConfigurationError("Object storage is not configured")

    try:
        service = ShipmentService(db, backend, sessions=sessions)
        result = await service.complete_chunked_upload(
            principal,
            upload_id=request.upload_id,
            total_chunks=request.total_chunks,
            shipment=_shipment_info(request),
        )
    except FuripsError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during upload completion: {e}", exc_info=True)
        raise StorageError("Failed to complete upload", details=str(e)) from e

    return _shipment_response(result, "Files uploaded and shipment registered")


@router.post("/get-upload-url", response_model=PresignedUrlResponse)
async def get_upload_url(
    request: PresignedUrlRequest = Body(...),
    principal: Principal = Depends(uploader),
    backend: StorageBackend = Depends(get_storage_backend),
) -> PresignedUrlResponse:
    """Issue one presigned upload URL per file of a shipment."""
    issuer = PresignedUrlIssuer(backend)
    files = [FileDescriptor(name=f.name, content_type=f.type) for f in request.files]
    batch = await asyncio.to_thread(issuer.issue, files, request.nombre_ips, request.id_envio)

    logger.info(
        f"Issued {len(batch.urls)} presigned URLs",
        extra={"folder_path": batch.folder_path, "user": principal.email},
    )
    return PresignedUrlResponse(
        folder_path=batch.folder_path,
        urls=[
            PresignedUrlItem(file_name=u.file_name, upload_url=u.upload_url, key=u.key)
            for u in batch.urls
        ],
    )


@router.post("/complete-upload", response_model=ShipmentUploadResponse)
async def complete_upload(
    request: CompleteUploadRequest = Body(...),
    principal: Principal = Depends(uploader),
    db: Session = Depends(get_db),
    backend: StorageBackend = Depends(get_storage_backend),
) -> ShipmentUploadResponse:
    """Register a shipment whose files were uploaded through presigned URLs."""
    if not backend.is_configured():
        raise ConfigurationError("Object storage is not configured")

    service = ShipmentService(db, backend)
    result = await service.complete_presigned_upload(
        principal,
        shipment=_shipment_info(request),
        folder_path=request.folder_path,
        uploaded_keys=request.uploaded_files,
    )
    return _shipment_response(result, "Shipment registered")


def _shipment_info(request: ShipmentDetails) -> ShipmentInfo:
    return ShipmentInfo(
        id_envio=request.id_envio,
        nombre_ips=request.nombre_ips,
        codigo_habilitacion=request.codigo_habilitacion,
        cantidad_facturas=request.cantidad_facturas,
        cantidad_items=request.cantidad_items,
        valor_total=request.valor_total,
    )


def _shipment_response(result: ShipmentResult, message: str) -> ShipmentUploadResponse:
    envio = result.envio
    return ShipmentUploadResponse(
        message=message,
        data=ShipmentUploadData(
            id=envio.id,
            id_envio=envio.nombre_archivo,
            codigo_habilitacion=envio.codigo_habilitacion,
            nombre_ips=envio.nombre_ips,
            cantidad_facturas=envio.cantidad_facturas,
            cantidad_items=envio.cantidad_items,
            valor_total=float(envio.valor_total),
            estado=envio.estado,
            fecha_carga=envio.fecha_carga,
            folder_path=result.folder_path,
            uploaded_files=result.uploaded_keys,
            webhook_notified=result.webhook_notified,
        ),
    )
