"""Object key layout for shipment folders."""

import re
import unicodedata
from datetime import date

from furips.core.config import settings


def sanitize_filename(filename: str) -> str:
    """Remove path traversal and dangerous characters."""
    safe = filename.replace("../", "").replace("..\\", "")
    safe = safe.replace("/", "_").replace("\\", "_")
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe)
    if set(safe) <= {"."}:
        safe = safe.replace(".", "_")
    return safe[:255]


def sanitize_folder_name(name: str) -> str:
    """Turn an institution name or shipment id into one safe path segment.

    Accents are stripped before replacing anything outside [A-Za-z0-9_.-].
    """
    decomposed = unicodedata.normalize("NFD", name.strip())
    without_accents = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    safe = re.sub(r"[^a-zA-Z0-9_.-]", "_", without_accents)
    safe = re.sub(r"_+", "_", safe)
    # A bare "." or ".." segment would escape the folder
    if set(safe) <= {"."}:
        safe = safe.replace(".", "_")
    return safe[:100]


def build_shipment_folder(
    institution_name: str, shipment_id: str, today: date | None = None
) -> str:
    """Folder shared by every object of one shipment.

    Layout is ``{institution}/{shipment}``, or ``{institution}/{YYYY-MM-DD}_{shipment}``
    when SHIPMENT_FOLDER_DATE_PREFIX is enabled.
    """
    ips_folder = sanitize_folder_name(institution_name)
    envio_folder = sanitize_folder_name(shipment_id)
    if settings.SHIPMENT_FOLDER_DATE_PREFIX:
        envio_folder = f"{(today or date.today()).isoformat()}_{envio_folder}"
    return f"{ips_folder}/{envio_folder}"


def build_object_key(folder_path: str, file_name: str) -> str:
    return f"{folder_path}/{sanitize_filename(file_name)}"


def is_shipment_folder(folder_path: str, institution_name: str, shipment_id: str) -> bool:
    """Whether folder_path is the folder build_shipment_folder issues for this shipment.

    With SHIPMENT_FOLDER_DATE_PREFIX any issue date is accepted, since the
    folder may have been handed out on an earlier day.
    """
    ips_folder = sanitize_folder_name(institution_name)
    envio_folder = sanitize_folder_name(shipment_id)
    if not settings.SHIPMENT_FOLDER_DATE_PREFIX:
        return folder_path == f"{ips_folder}/{envio_folder}"
    pattern = rf"{re.escape(ips_folder)}/\d{{4}}-\d{{2}}-\d{{2}}_{re.escape(envio_folder)}"
    return re.fullmatch(pattern, folder_path) is not None


def is_object_key_in_folder(key: str, folder_path: str) -> bool:
    """Whether key names a single file directly inside folder_path."""
    prefix = f"{folder_path}/"
    if not key.startswith(prefix):
        return False
    file_name = key[len(prefix):]
    return bool(file_name) and build_object_key(folder_path, file_name) == key
