"""Claim batch (lote) listing."""

import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, not_, select
from sqlalchemy.orm import Session

from furips.core.config import settings
from furips.core.exceptions import ValidationError
from furips.core.security import Principal, Role
from furips.db.models import ControlLote

# Batches whose shipment name contains this marker are never listed
EXCLUDED_ENVIO_MARKER = "RG"
INSTITUTION_PREFIX_LENGTH = 10


@dataclass
class LoteFilters:
    numero_lote: int | None = None
    fecha_inicio: datetime | None = None
    fecha_fin: datetime | None = None
    nombre_ips: str | None = None
    codigo_habilitacion: str | None = None
    nombre_envio: str | None = None


@dataclass
class LotePage:
    items: list[ControlLote]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def list_lotes(
    db: Session, principal: Principal, filters: LoteFilters, page: int = 1, limit: int = 20
) -> LotePage:
    """Page through batches visible to the principal, newest first.

    Non-admins only see batches whose enabling code shares the first ten
    characters of theirs, and may not query ranges longer than
    LOTES_MAX_RANGE_DAYS.
    """
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")

    if filters.fecha_inicio and filters.fecha_fin:
        if filters.fecha_fin < filters.fecha_inicio:
            raise ValidationError("fecha_fin must not be before fecha_inicio")
        span_days = (filters.fecha_fin - filters.fecha_inicio).total_seconds() / 86400
        if principal.role is not Role.ADMIN and span_days > settings.LOTES_MAX_RANGE_DAYS:
            raise ValidationError(
                f"Date range cannot exceed {settings.LOTES_MAX_RANGE_DAYS} days"
            )

    conditions = [
        not_(func.coalesce(ControlLote.nombre_envio, "").contains(EXCLUDED_ENVIO_MARKER))
    ]

    match principal.role:
        case Role.ADMIN:
            if filters.codigo_habilitacion:
                conditions.append(ControlLote.codigo_habilitacion.contains(filters.codigo_habilitacion))
        case Role.USER | Role.ANALYST:
            if principal.codigo_habilitacion:
                prefix = principal.codigo_habilitacion[:INSTITUTION_PREFIX_LENGTH]
                conditions.append(ControlLote.codigo_habilitacion.startswith(prefix))
            elif filters.codigo_habilitacion:
                conditions.append(ControlLote.codigo_habilitacion.contains(filters.codigo_habilitacion))

    if filters.numero_lote is not None:
        conditions.append(ControlLote.numero_lote == filters.numero_lote)
    if filters.fecha_inicio and filters.fecha_fin:
        conditions.append(ControlLote.fecha_creacion.between(filters.fecha_inicio, filters.fecha_fin))
    if filters.nombre_ips:
        conditions.append(ControlLote.nombre_ips.contains(filters.nombre_ips))
    if filters.nombre_envio:
        conditions.append(ControlLote.nombre_envio.contains(filters.nombre_envio))

    total = db.scalar(select(func.count()).select_from(ControlLote).where(*conditions)) or 0
    items = list(
        db.scalars(
            select(ControlLote)
            .where(*conditions)
            .order_by(ControlLote.fecha_creacion.desc(), ControlLote.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    )
    return LotePage(items=items, page=page, limit=limit, total=total)


def list_ips_names(db: Session, search: str | None = None, limit: int = 20) -> list[str]:
    """Distinct, non-empty institution names appearing in batches."""
    query = (
        select(ControlLote.nombre_ips)
        .where(ControlLote.nombre_ips.is_not(None), ControlLote.nombre_ips != "")
        .distinct()
        .order_by(ControlLote.nombre_ips)
        .limit(limit)
    )
    if search:
        query = query.where(func.lower(ControlLote.nombre_ips).contains(search.lower()))
    return [name for name in db.scalars(query) if name]
