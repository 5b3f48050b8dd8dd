"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from furips.api.deps import get_upload_manager
from furips.core.config import settings
from furips.core.security import Principal, Role, create_access_token, hash_password
from furips.db.models import Base, ControlEnvioIps, ControlLote, User
from furips.db.session import get_db
from furips.ingest.sessions import UploadSessionManager
from furips.main import app
from furips.storage.factory import get_storage_backend
from furips.storage.local import LocalStorageBackend

ADMIN = Principal(id="1", email="admin@furips.test", role=Role.ADMIN, nombre="Admin")
IPS_USER = Principal(
    id="2",
    email="ips@clinica.test",
    role=Role.USER,
    codigo_habilitacion="7600100001-01",
    nombre="Clinica Norte",
)
OTHER_IPS_USER = Principal(
    id="3",
    email="ips@hospital.test",
    role=Role.USER,
    codigo_habilitacion="0500100002-01",
    nombre="Hospital Sur",
)
ANALYST = Principal(id="4", email="analyst@furips.test", role=Role.ANALYST, nombre="Analyst")


def auth_headers(principal: Principal) -> dict:
    return {"Authorization": f"Bearer {create_access_token(principal)}"}


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings for every test."""
    monkeypatch.setattr(settings, "AUTH_SECRET_KEY", "test-secret-key-0123456789-abcdefghijklmnop")
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "UPLOAD_WEBHOOK_URL", "")
    monkeypatch.setattr(settings, "SHIPMENT_FOLDER_DATE_PREFIX", False)
    monkeypatch.setattr(settings, "ENABLE_ARCHIVE_EXTRACTION", True)
    monkeypatch.setattr(settings, "PROVIDER_RETRY_BACKOFF_SECONDS", 0)
    return settings


@pytest.fixture
def db_session():
    """In-memory SQLite database shared by the test and the app."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def upload_manager(tmp_path):
    return UploadSessionManager(root=tmp_path / "scratch", retention_seconds=3600)


@pytest.fixture
def storage_backend(tmp_path):
    return LocalStorageBackend(base_path=tmp_path / "storage")


@pytest.fixture
def client(db_session, upload_manager, storage_backend):
    """Test client wired to the in-memory database and temp directories."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_upload_manager] = lambda: upload_manager
    app.dependency_overrides[get_storage_backend] = lambda: storage_backend
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded_users(db_session):
    users = [
        User(
            email=ADMIN.email,
            password=hash_password("admin-pass"),
            nombre=ADMIN.nombre,
            role=Role.ADMIN.value,
        ),
        User(
            email=IPS_USER.email,
            password=hash_password("ips-pass"),
            nombre=IPS_USER.nombre,
            role=Role.USER.value,
            codigo_habilitacion=IPS_USER.codigo_habilitacion,
        ),
    ]
    db_session.add_all(users)
    db_session.commit()
    return users


def make_envio(db, **overrides) -> ControlEnvioIps:
    values = {
        "codigo_habilitacion": IPS_USER.codigo_habilitacion,
        "nombre_ips": "Clinica Norte",
        "nombre_archivo": "ENV-001",
        "cantidad_facturas": 10,
        "cantidad_items": 25,
        "valor_total": Decimal("1500000.50"),
        "ruta_drive": "Clinica_Norte/ENV-001",
        "estado": "EN_PROCESO",
        "fecha_carga": datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    envio = ControlEnvioIps(**values)
    db.add(envio)
    db.commit()
    db.refresh(envio)
    return envio


def make_lote(db, **overrides) -> ControlLote:
    values = {
        "numero_lote": 1,
        "fecha_creacion": datetime(2024, 5, 10, 9, 0),
        "nombre_ips": "Clinica Norte",
        "codigo_habilitacion": IPS_USER.codigo_habilitacion,
        "cantidad_facturas": 5,
        "valor_reclamado": Decimal("250000.00"),
        "nombre_envio": "ENV-001",
        "tipo_envio": "FURIPS",
    }
    values.update(overrides)
    lote = ControlLote(**values)
    db.add(lote)
    db.commit()
    db.refresh(lote)
    return lote
