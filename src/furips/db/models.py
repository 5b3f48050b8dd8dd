"""Relational tables touched by the service."""

from datetime import datetime, timezone
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnvioEstado(str, Enum):
    """Processing status of a shipment."""

    EN_PROCESO = "EN_PROCESO"
    FINALIZADO = "FINALIZADO"


class User(Base):
    __tablename__ = "users"

    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    email = sa.Column(sa.String(255), nullable=False, unique=True, index=True)
    password = sa.Column(sa.String(255), nullable=True)
    nombre = sa.Column(sa.String(255), nullable=True)
    role = sa.Column(sa.String(20), nullable=False, default="USER")
    codigo_habilitacion = sa.Column(sa.String(50), nullable=True)


class ControlEnvioIps(Base):
    """One shipment of claim files sent by an IPS."""

    __tablename__ = "control_envio_ips"

    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    codigo_habilitacion = sa.Column(sa.String(50), nullable=True, index=True)
    nombre_ips = sa.Column(sa.String(255), nullable=True)
    nombre_archivo = sa.Column(sa.String(255), nullable=False)
    cantidad_facturas = sa.Column(sa.Integer, nullable=False, default=0)
    cantidad_items = sa.Column(sa.Integer, nullable=False, default=0)
    valor_total = sa.Column(sa.Numeric(18, 2), nullable=False, default=0)
    ruta_drive = sa.Column(sa.Text, nullable=True)
    estado = sa.Column(sa.String(20), nullable=False, default=EnvioEstado.EN_PROCESO.value)
    fecha_carga = sa.Column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    fecha_procesado = sa.Column(sa.DateTime(timezone=True), nullable=True)
    procesado_por = sa.Column(sa.String(255), nullable=True)


class ControlLote(Base):
    """A batch of claims submitted for audit."""

    __tablename__ = "control_lotes"

    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    numero_lote = sa.Column(sa.Integer, nullable=True, index=True)
    fecha_creacion = sa.Column(sa.DateTime(timezone=True), nullable=True)
    nombre_ips = sa.Column(sa.String(255), nullable=True)
    codigo_habilitacion = sa.Column(sa.String(50), nullable=True, index=True)
    cantidad_facturas = sa.Column(sa.Integer, nullable=True)
    valor_reclamado = sa.Column(sa.Numeric(18, 2), nullable=True)
    nombre_envio = sa.Column(sa.String(255), nullable=True)
    tipo_envio = sa.Column(sa.String(50), nullable=True)
