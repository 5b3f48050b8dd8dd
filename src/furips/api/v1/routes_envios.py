"""Shipment (envío) API routes."""

import logging
from datetime import date

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from furips.api.deps import get_current_principal, require_roles
from furips.core.security import Principal, Role
from furips.db.models import ControlEnvioIps, EnvioEstado
from furips.db.session import get_db
from furips.models.envio import (
    EnvioListResponse,
    EnvioOut,
    EstadoUpdateData,
    EstadoUpdateRequest,
    EstadoUpdateResponse,
)
from furips.services.envios import EnvioService
from furips.services.excel_export import build_envios_workbook

router = APIRouter(prefix="/api/envios", tags=["envios"])
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _to_out(envio: ControlEnvioIps) -> EnvioOut:
    return EnvioOut(
        id=envio.id,
        codigo_habilitacion=envio.codigo_habilitacion,
        nombre_ips=envio.nombre_ips,
        nombre_archivo=envio.nombre_archivo,
        cantidad_facturas=envio.cantidad_facturas,
        cantidad_items=envio.cantidad_items,
        valor_total=float(envio.valor_total or 0),
        ruta_drive=envio.ruta_drive,
        estado=envio.estado,
        fecha_carga=envio.fecha_carga,
        fecha_procesado=envio.fecha_procesado,
        procesado_por=envio.procesado_por,
    )


@router.get("", response_model=EnvioListResponse)
async def list_envios(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> EnvioListResponse:
    """List shipments; institution users only see their own."""
    envios = EnvioService(db).list_for(principal)
    data = [_to_out(e) for e in envios]
    return EnvioListResponse(data=data, total=len(data))


@router.get("/export")
async def export_envios(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Response:
    """Download the visible shipments as an Excel workbook."""
    envios = EnvioService(db).list_for(principal)
    content = build_envios_workbook(envios)
    filename = f"envios_{date.today().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/{envio_id}/estado", response_model=EstadoUpdateResponse)
async def update_envio_estado(
    envio_id: int,
    request: EstadoUpdateRequest = Body(...),
    principal: Principal = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> EstadoUpdateResponse:
    """Change a shipment's processing status (administrators only)."""
    estado = EnvioEstado(request.estado)
    envio = EnvioService(db).update_status(envio_id, estado, principal)
    return EstadoUpdateResponse(
        message=f"Status updated to {estado.value}",
        data=EstadoUpdateData(
            id=envio.id,
            estado=envio.estado,
            fecha_procesado=envio.fecha_procesado,
            procesado_por=envio.procesado_por,
        ),
    )
