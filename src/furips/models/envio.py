"""Shipment (envío) and batch (lote) models."""

from datetime import datetime
from typing import List, Literal, Optional

from furips.models.common import CamelModel, Pagination


class EnvioOut(CamelModel):
    id: int
    codigo_habilitacion: Optional[str] = None
    nombre_ips: Optional[str] = None
    nombre_archivo: str
    cantidad_facturas: int
    cantidad_items: int
    valor_total: float
    ruta_drive: Optional[str] = None
    estado: str
    fecha_carga: datetime
    fecha_procesado: Optional[datetime] = None
    procesado_por: Optional[str] = None


class EnvioListResponse(CamelModel):
    success: bool = True
    data: List[EnvioOut]
    total: int


class EstadoUpdateRequest(CamelModel):
    estado: Literal["EN_PROCESO", "FINALIZADO"]


class EstadoUpdateData(CamelModel):
    id: int
    estado: str
    fecha_procesado: Optional[datetime] = None
    procesado_por: Optional[str] = None


class EstadoUpdateResponse(CamelModel):
    success: bool = True
    message: str
    data: EstadoUpdateData


class LoteOut(CamelModel):
    id: int
    numero_lote: Optional[int] = None
    fecha_creacion: Optional[datetime] = None
    nombre_ips: Optional[str] = None
    codigo_habilitacion: Optional[str] = None
    cantidad_facturas: Optional[int] = None
    valor_reclamado: Optional[str] = None
    nombre_envio: Optional[str] = None
    tipo_envio: Optional[str] = None


class LoteListResponse(CamelModel):
    success: bool = True
    data: List[LoteOut]
    pagination: Pagination


class IpsListResponse(CamelModel):
    success: bool = True
    data: List[str]
