"""Claim batch (lote) and institution listing routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from furips.api.deps import get_current_principal
from furips.core.security import Principal
from furips.db.session import get_db
from furips.models.common import Pagination
from furips.models.envio import IpsListResponse, LoteListResponse, LoteOut
from furips.services.lotes import LoteFilters, list_ips_names, list_lotes

router = APIRouter(prefix="/api", tags=["lotes"])


@router.get("/lotes", response_model=LoteListResponse)
async def get_lotes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=500),
    numero_lote: Optional[int] = None,
    fecha_inicio: Optional[datetime] = None,
    fecha_fin: Optional[datetime] = None,
    nombre_ips: Optional[str] = None,
    codigo_habilitacion: Optional[str] = None,
    nombre_envio: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> LoteListResponse:
    """Page through claim batches visible to the caller."""
    filters = LoteFilters(
        numero_lote=numero_lote,
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
        nombre_ips=nombre_ips,
        codigo_habilitacion=codigo_habilitacion,
        nombre_envio=nombre_envio,
    )
    result = list_lotes(db, principal, filters, page=page, limit=limit)
    return LoteListResponse(
        data=[
            LoteOut(
                id=lote.id,
                numero_lote=lote.numero_lote,
                fecha_creacion=lote.fecha_creacion,
                nombre_ips=lote.nombre_ips,
                codigo_habilitacion=lote.codigo_habilitacion,
                cantidad_facturas=lote.cantidad_facturas,
                valor_reclamado=str(lote.valor_reclamado) if lote.valor_reclamado is not None else None,
                nombre_envio=lote.nombre_envio,
                tipo_envio=lote.tipo_envio,
            )
            for lote in result.items
        ],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/ips", response_model=IpsListResponse)
async def get_ips(
    search: str = "",
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> IpsListResponse:
    """Institution names for filter autocompletion."""
    return IpsListResponse(data=list_ips_names(db, search=search or None))
