"""Tests for shipment folder and object key layout."""

from datetime import date

from furips.core.config import settings
from furips.storage.paths import (
    build_object_key,
    build_shipment_folder,
    is_object_key_in_folder,
    is_shipment_folder,
    sanitize_filename,
    sanitize_folder_name,
)


def test_sanitize_filename():
    assert "../" not in sanitize_filename("../etc/passwd")
    assert "/" not in sanitize_filename("path/to/file.txt")
    assert "\\" not in sanitize_filename("path\\to\\file.txt")
    assert sanitize_filename("valid-file_name.123.txt") == "valid-file_name.123.txt"
    assert sanitize_filename("factura #1.pdf") == "factura__1.pdf"
    assert sanitize_filename("..") == "__"


def test_sanitize_folder_name_strips_accents():
    assert sanitize_folder_name("Clínica Señor de los Milagros") == "Clinica_Senor_de_los_Milagros"


def test_sanitize_folder_name_collapses_underscores():
    assert sanitize_folder_name("IPS   S.A.S. // Norte") == "IPS_S.A.S._Norte"


def test_sanitize_folder_name_truncates():
    assert len(sanitize_folder_name("x" * 300)) == 100


def test_sanitize_folder_name_never_yields_dot_segment():
    assert sanitize_folder_name("..") == "__"
    assert sanitize_folder_name(".") == "_"


def test_build_shipment_folder():
    assert build_shipment_folder("Clínica Norte", "ENV 001") == "Clinica_Norte/ENV_001"


def test_build_shipment_folder_with_date_prefix(monkeypatch):
    monkeypatch.setattr(settings, "SHIPMENT_FOLDER_DATE_PREFIX", True)

    folder = build_shipment_folder("Clínica Norte", "ENV-001", today=date(2024, 3, 5))

    assert folder == "Clinica_Norte/2024-03-05_ENV-001"


def test_build_object_key():
    assert build_object_key("IPS/ENV", "../soporte final.pdf") == "IPS/ENV/soporte_final.pdf"


def test_is_shipment_folder():
    assert is_shipment_folder("Clinica_Norte/ENV-001", "Clínica Norte", "ENV-001")
    assert not is_shipment_folder("Hospital_Sur/ENV-001", "Clínica Norte", "ENV-001")
    assert not is_shipment_folder("Clinica_Norte/ENV-002", "Clínica Norte", "ENV-001")
    assert not is_shipment_folder("Clinica_Norte/2024-03-05_ENV-001", "Clínica Norte", "ENV-001")
    assert not is_shipment_folder("..", "Clínica Norte", "ENV-001")


def test_is_shipment_folder_with_date_prefix(monkeypatch):
    monkeypatch.setattr(settings, "SHIPMENT_FOLDER_DATE_PREFIX", True)

    assert is_shipment_folder("Clinica_Norte/2024-03-05_ENV-001", "Clínica Norte", "ENV-001")
    assert not is_shipment_folder("Clinica_Norte/ENV-001", "Clínica Norte", "ENV-001")
    assert not is_shipment_folder("Clinica_Norte/2024-03-05_ENV-002", "Clínica Norte", "ENV-001")


def test_is_object_key_in_folder():
    folder = "Clinica_Norte/ENV-001"

    assert is_object_key_in_folder(f"{folder}/FURIPS1.txt", folder)
    assert not is_object_key_in_folder(f"{folder}/", folder)
    assert not is_object_key_in_folder(f"{folder}/sub/FURIPS1.txt", folder)
    assert not is_object_key_in_folder(f"{folder}/../../secret.txt", folder)
    assert not is_object_key_in_folder(f"{folder}/..", folder)
    assert not is_object_key_in_folder("Other/ENV-001/FURIPS1.txt", folder)
