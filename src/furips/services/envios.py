"""Shipment (envío) records."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from furips.core.exceptions import NotFoundError, PermissionDeniedError
from furips.core.security import Principal
from furips.db.models import ControlEnvioIps, EnvioEstado

logger = logging.getLogger(__name__)


class EnvioService:
    """Reads and transitions shipment records for one request."""

    def __init__(self, db: Session):
        self.db = db

    def list_for(self, principal: Principal) -> list[ControlEnvioIps]:
        """Shipments visible to the principal, newest first."""
        query = select(ControlEnvioIps).order_by(
            ControlEnvioIps.fecha_carga.desc(), ControlEnvioIps.id.desc()
        )
        if not principal.role.sees_all_institutions:
            if not principal.codigo_habilitacion:
                return []
            query = query.where(
                ControlEnvioIps.codigo_habilitacion == principal.codigo_habilitacion
            )
        return list(self.db.scalars(query))

    def get(self, envio_id: int) -> ControlEnvioIps:
        envio = self.db.get(ControlEnvioIps, envio_id)
        if envio is None:
            raise NotFoundError("Envío not found")
        return envio

    def update_status(
        self, envio_id: int, estado: EnvioEstado, principal: Principal
    ) -> ControlEnvioIps:
        """Move a shipment between EN_PROCESO and FINALIZADO.

        Finalizing stamps who processed it and when; reopening clears both.
        """
        if not principal.role.can_change_envio_status:
            raise PermissionDeniedError("Only administrators can change shipment status")

        envio = self.get(envio_id)
        envio.estado = estado.value
        if estado is EnvioEstado.FINALIZADO:
            envio.fecha_procesado = datetime.now(timezone.utc)
            envio.procesado_por = principal.email
        else:
            envio.fecha_procesado = None
            envio.procesado_por = None
        self.db.commit()
        self.db.refresh(envio)

        logger.info(
            f"Envío status updated to {estado.value}",
            extra={"envio_id": envio_id, "user": principal.email},
        )
        return envio

    def create(
        self,
        nombre_archivo: str,
        nombre_ips: str | None,
        codigo_habilitacion: str | None,
        ruta_drive: str,
        cantidad_facturas: int = 0,
        cantidad_items: int = 0,
        valor_total: Decimal | float = 0,
    ) -> ControlEnvioIps:
        """Record a freshly uploaded shipment as EN_PROCESO."""
        envio = ControlEnvioIps(
            nombre_archivo=nombre_archivo,
            nombre_ips=nombre_ips,
            codigo_habilitacion=codigo_habilitacion,
            ruta_drive=ruta_drive,
            cantidad_facturas=cantidad_facturas or 0,
            cantidad_items=cantidad_items or 0,
            valor_total=Decimal(str(valor_total or 0)),
            estado=EnvioEstado.EN_PROCESO.value,
            fecha_carga=datetime.now(timezone.utc),
        )
        self.db.add(envio)
        self.db.commit()
        self.db.refresh(envio)

        logger.info(
            "Envío registered",
            extra={"envio_id": envio.id, "nombre_archivo": nombre_archivo, "folder_path": ruta_drive},
        )
        return envio
