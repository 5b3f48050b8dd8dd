"""Upload data models."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field

from furips.models.common import CamelModel


class ChunkUploadResponse(CamelModel):
    """Acknowledgement of one received chunk."""

    success: bool = True
    chunk_index: int
    total_chunks: int
    message: str


class UploadStatusResponse(CamelModel):
    """Progress of a chunked upload, for clients resuming after a failure."""

    upload_id: str
    state: str
    file_name: Optional[str] = None
    total_chunks: Optional[int] = None
    received_chunks: List[int] = []
    missing_chunks: List[int] = []


class ShipmentDetails(CamelModel):
    """Fields describing the shipment a finished upload belongs to."""

    id_envio: str
    nombre_ips: str
    codigo_habilitacion: Optional[str] = None
    cantidad_facturas: int = 0
    cantidad_items: int = 0
    valor_total: Decimal = Decimal("0")


class CompleteChunkedUploadRequest(ShipmentDetails):
    """Request model for assembling a chunked upload into a shipment."""

    upload_id: str
    file_name: str
    total_chunks: int


class CompleteUploadRequest(ShipmentDetails):
    """Request model for registering a shipment uploaded through presigned URLs."""

    folder_path: str
    uploaded_files: List[str] = []


class UploadFileDescriptor(CamelModel):
    name: str = Field(validation_alias=AliasChoices("name", "fileName"))
    type: str = Field(
        default="application/octet-stream",
        validation_alias=AliasChoices("type", "mimeType", "contentType"),
    )


class PresignedUrlRequest(CamelModel):
    """Request model for a batch of direct-upload URLs."""

    files: List[UploadFileDescriptor]
    nombre_ips: str
    id_envio: str


class PresignedUrlItem(CamelModel):
    file_name: str
    upload_url: str
    key: str


class PresignedUrlResponse(CamelModel):
    success: bool = True
    folder_path: str
    urls: List[PresignedUrlItem]


class ShipmentUploadData(CamelModel):
    id: int
    id_envio: str
    codigo_habilitacion: Optional[str] = None
    nombre_ips: Optional[str] = None
    cantidad_facturas: int
    cantidad_items: int
    valor_total: float
    estado: str
    fecha_carga: datetime
    folder_path: str
    uploaded_files: List[str]
    webhook_notified: bool = False


class ShipmentUploadResponse(CamelModel):
    success: bool = True
    message: str
    data: ShipmentUploadData
