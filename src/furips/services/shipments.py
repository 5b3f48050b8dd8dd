"""Turning finished uploads into recorded shipments."""

import asyncio
import logging
import tempfile
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from sqlalchemy.orm import Session

from furips.core.config import settings
from furips.core.exceptions import PermissionDeniedError, StorageError, ValidationError
from furips.core.security import Principal, Role
from furips.db.models import ControlEnvioIps
from furips.ingest.archive import ArchiveExtractor
from furips.ingest.assembler import AssembledFile, ChunkAssembler
from furips.ingest.presign import DEFAULT_CONTENT_TYPE
from furips.ingest.sessions import UploadSessionManager
from furips.services.envios import EnvioService
from furips.services.notifications import notify_shipment_uploaded
from furips.storage.base import StorageBackend
from furips.storage.paths import (
    build_object_key,
    build_shipment_folder,
    is_object_key_in_folder,
    is_shipment_folder,
)

logger = logging.getLogger(__name__)


@dataclass
class ShipmentInfo:
    id_envio: str
    nombre_ips: str
    codigo_habilitacion: str | None = None
    cantidad_facturas: int = 0
    cantidad_items: int = 0
    valor_total: Decimal = Decimal("0")


@dataclass
class ShipmentResult:
    envio: ControlEnvioIps
    folder_path: str
    uploaded_keys: list[str] = field(default_factory=list)
    webhook_notified: bool = False


class ShipmentService:
    """Stores the files of a finished upload and records the shipment."""

    def __init__(
        self,
        db: Session,
        backend: StorageBackend,
        sessions: UploadSessionManager | None = None,
        extractor: ArchiveExtractor | None = None,
    ):
        self.db = db
        self.backend = backend
        self.sessions = sessions
        self.extractor = extractor or ArchiveExtractor(
            max_files=settings.MAX_FILES_PER_ARCHIVE,
            max_file_size_bytes=settings.max_extracted_file_size_bytes,
        )
        self.envios = EnvioService(db)

    async def complete_chunked_upload(
        self,
        principal: Principal,
        upload_id: str,
        total_chunks: int,
        shipment: ShipmentInfo,
    ) -> ShipmentResult:
        """Assemble a chunked upload and publish it as a shipment.

        ZIP archives are expanded so the shipment folder holds the individual
        files; anything else is stored as uploaded. The chunks are dropped
        only after the shipment is recorded. On any failure before that the
        upload goes back to RECEIVING and completion can be retried.
        """
        self._check_can_upload(principal)
        self._check_shipment(shipment)
        if self.sessions is None:
            raise RuntimeError("ShipmentService needs an UploadSessionManager for chunked uploads")

        assembler = ChunkAssembler(self.sessions)
        folder_path = build_shipment_folder(shipment.nombre_ips, shipment.id_envio)

        with tempfile.TemporaryDirectory(prefix="furips-work-") as work_dir:
            work_path = Path(work_dir)
            assembled = await asyncio.to_thread(
                assembler.assemble, upload_id, total_chunks, work_path / "assembled"
            )
            try:
                uploaded_keys = await self._publish(assembled, folder_path, work_path)
                result = await self._record(principal, shipment, folder_path, uploaded_keys)
            except Exception:
                logger.warning(
                    "Shipment not recorded, upload kept for retry",
                    extra={"upload_id": upload_id, "folder_path": folder_path},
                )
                await asyncio.to_thread(assembler.release, upload_id)
                raise

        await asyncio.to_thread(assembler.commit, upload_id)
        return result

    async def _publish(
        self, assembled: AssembledFile, folder_path: str, work_path: Path
    ) -> list[str]:
        if settings.ENABLE_ARCHIVE_EXTRACTION and self.extractor.is_zip(assembled.path):
            logger.info(
                f"Expanding ZIP archive {assembled.file_name}",
                extra={"upload_id": assembled.upload_id},
            )
            extracted = await asyncio.to_thread(
                self.extractor.extract_zip, assembled.path, work_path / "extracted"
            )
            files = [(f.filename, f.mime_type, Path(f.local_path)) for f in extracted]
        else:
            files = [(assembled.file_name, DEFAULT_CONTENT_TYPE, assembled.path)]

        uploaded_keys = []
        for file_name, content_type, local_path in files:
            key = build_object_key(folder_path, file_name)
            try:
                with open(local_path, "rb") as file_data:
                    await self.backend.store_file(key, content_type, file_data)
            except OSError as e:
                raise StorageError("Failed to store shipment file", details=f"{key}: {e}") from e
            uploaded_keys.append(key)

        logger.info(
            f"Stored {len(uploaded_keys)} file(s) under {folder_path}",
            extra={"upload_id": assembled.upload_id, "folder_path": folder_path},
        )
        return uploaded_keys

    async def complete_presigned_upload(
        self,
        principal: Principal,
        shipment: ShipmentInfo,
        folder_path: str,
        uploaded_keys: list[str],
    ) -> ShipmentResult:
        """Record a shipment whose files the client PUT through presigned URLs.

        folder_path must be the folder issued for this institution and
        shipment, and every key a file directly inside it.
        """
        self._check_can_upload(principal)
        self._check_shipment(shipment)
        if not folder_path or not folder_path.strip():
            raise ValidationError("folderPath is required")

        if not is_shipment_folder(folder_path, shipment.nombre_ips, shipment.id_envio):
            raise ValidationError(
                "folderPath does not belong to this shipment",
                details={"expected": build_shipment_folder(shipment.nombre_ips, shipment.id_envio)},
            )

        outside = [key for key in uploaded_keys if not is_object_key_in_folder(key, folder_path)]
        if outside:
            raise ValidationError(
                "Uploaded files must belong to the shipment folder",
                details={"keys": outside},
            )

        missing = []
        for key in uploaded_keys:
            if not await asyncio.to_thread(self.backend.object_exists, key):
                missing.append(key)
        if missing:
            raise ValidationError(
                "Some files do not exist in storage", details={"missingKeys": missing}
            )

        return await self._record(principal, shipment, folder_path, uploaded_keys)

    async def _record(
        self,
        principal: Principal,
        shipment: ShipmentInfo,
        folder_path: str,
        uploaded_keys: list[str],
    ) -> ShipmentResult:
        codigo = shipment.codigo_habilitacion
        match principal.role:
            case Role.USER:
                codigo = principal.codigo_habilitacion
            case Role.ADMIN | Role.ANALYST:
                pass

        envio = self.envios.create(
            nombre_archivo=shipment.id_envio.strip(),
            nombre_ips=shipment.nombre_ips,
            codigo_habilitacion=codigo,
            ruta_drive=folder_path,
            cantidad_facturas=shipment.cantidad_facturas,
            cantidad_items=shipment.cantidad_items,
            valor_total=shipment.valor_total,
        )

        webhook_notified = await notify_shipment_uploaded(
            settings.UPLOAD_WEBHOOK_URL,
            self.backend.get_storage_location(),
            folder_path,
            timeout=settings.WEBHOOK_TIMEOUT,
        )

        return ShipmentResult(
            envio=envio,
            folder_path=folder_path,
            uploaded_keys=uploaded_keys,
            webhook_notified=webhook_notified,
        )

    @staticmethod
    def _check_can_upload(principal: Principal) -> None:
        if not principal.role.can_upload:
            raise PermissionDeniedError("Analysts cannot upload files")

    @staticmethod
    def _check_shipment(shipment: ShipmentInfo) -> None:
        if not shipment.id_envio or not shipment.id_envio.strip():
            raise ValidationError("idEnvio is required")
        if not shipment.nombre_ips or not shipment.nombre_ips.strip():
            raise ValidationError("nombreIps is required")
