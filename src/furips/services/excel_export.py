"""Excel export of shipment listings."""

import io
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from furips.db.models import ControlEnvioIps

ENVIO_COLUMNS = [
    ("ID", lambda e: e.id),
    ("Código habilitación", lambda e: e.codigo_habilitacion),
    ("IPS", lambda e: e.nombre_ips),
    ("Envío", lambda e: e.nombre_archivo),
    ("Facturas", lambda e: e.cantidad_facturas),
    ("Ítems", lambda e: e.cantidad_items),
    ("Valor total", lambda e: float(e.valor_total or 0)),
    ("Carpeta", lambda e: e.ruta_drive),
    ("Estado", lambda e: e.estado),
    ("Fecha carga", lambda e: _naive(e.fecha_carga)),
    ("Fecha procesado", lambda e: _naive(e.fecha_procesado)),
    ("Procesado por", lambda e: e.procesado_por),
]


def _naive(value):
    # openpyxl rejects timezone-aware datetimes
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def build_envios_workbook(envios: Iterable[ControlEnvioIps]) -> bytes:
    """Render shipments as a single-sheet .xlsx document."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Envios"

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor="1F4E78")
    for col, (title, _) in enumerate(ENVIO_COLUMNS, start=1):
        cell = sheet.cell(row=1, column=col, value=title)
        cell.font = header_font
        cell.fill = header_fill

    widths = [len(title) for title, _ in ENVIO_COLUMNS]
    for row, envio in enumerate(envios, start=2):
        for col, (_, getter) in enumerate(ENVIO_COLUMNS, start=1):
            value = getter(envio)
            cell = sheet.cell(row=row, column=col, value=value)
            if hasattr(value, "year"):
                cell.number_format = "yyyy-mm-dd hh:mm"
            widths[col - 1] = max(widths[col - 1], len(str(value)) if value is not None else 0)

    for col, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(col)].width = min(width + 2, 60)
    sheet.freeze_panes = "A2"

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
