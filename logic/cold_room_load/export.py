from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .calculator import project_frame
from .models import LoadResult, ProjectResult

logger = logging.getLogger(__name__)


# ----------------------------- helpers de estilo -----------------------------
_THIN = Side(style="thin", color="000000")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)

F_WHITE = PatternFill("solid", fgColor="FFFFFF")
F_GREY = PatternFill("solid", fgColor="F2F4F7")
F_GREY2 = PatternFill("solid", fgColor="E9EDF3")

FONT_TITLE = Font(name="Calibri", bold=True, size=12, color="000000")
FONT_HEADER = Font(name="Calibri", bold=True, size=11, color="000000")
FONT_CELL = Font(name="Calibri", size=11, color="000000")

NUM_FMT = "0.000"


def _autosize(ws) -> None:
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            v = "" if cell.value is None else str(cell.value)
            if len(v) > max_len:
                max_len = len(v)
        ws.column_dimensions[col_letter].width = max(10, min(60, max_len + 2))


def _write_meta(ws, meta: Sequence[Tuple[str, object]]) -> int:
    """Encabezado clave/valor (PROYECTO, CIUDAD, …) al inicio de la hoja."""
    for r, (label, value) in enumerate(meta, start=1):
        ws.cell(row=r, column=1, value=label).font = FONT_HEADER
        ws.cell(row=r, column=2, value=value).font = FONT_CELL
        for j in (1, 2):
            ws.cell(row=r, column=j).fill = F_GREY
            ws.cell(row=r, column=j).border = _BORDER
    return len(meta) + 2


def _write_section_header(ws, title: str, row: int, width: int = 3) -> int:
    for j in range(1, width + 1):
        c = ws.cell(row=row, column=j, value=title if j == 1 else None)
        c.font = FONT_TITLE
        c.fill = F_GREY2
        c.border = _BORDER
    return row + 1


def _write_table(ws, headers: List[str], rows: Iterable[Sequence[object]], row: int) -> int:
    for j, h in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=j, value=h)
        cell.font = FONT_HEADER
        cell.fill = F_GREY2
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = _BORDER
    row += 1
    for rdata in rows:
        for j, val in enumerate(rdata, start=1):
            cell = ws.cell(row=row, column=j, value=val)
            cell.font = FONT_CELL
            cell.fill = F_WHITE
            cell.border = _BORDER
            if isinstance(val, float):
                cell.number_format = NUM_FMT
        row += 1
    return row + 1


def _room_sections(ws, res: LoadResult, row: int) -> int:
    row = _write_section_header(ws, "GEOMETRÍA", row)
    row = _write_table(
        ws,
        ["CONCEPTO", "VALOR", "UNIDAD"],
        [
            ["LARGO", res.dimensions.length, "m"],
            ["ANCHO", res.dimensions.width, "m"],
            ["ALTO", res.dimensions.height, "m"],
            ["ÁREA MUROS", res.areas.wall, "m²"],
            ["ÁREA TECHO", res.areas.ceiling, "m²"],
            ["ÁREA PISO", res.areas.floor, "m²"],
            ["ÁREA PUERTA", res.areas.door, "m²"],
            ["VOLUMEN", res.volume, "m³"],
            ["AISLAMIENTO", f"{res.construction.type} {res.construction.thickness:g} mm", ""],
            ["FACTOR U", res.construction.u_factor, "W/m²K"],
            ["DELTA T", res.temperature_difference, "°C"],
            ["CAPACIDAD MÁX.", res.storage_capacity.maximum, "kg"],
            ["UTILIZACIÓN", res.storage_capacity.utilization, "%"],
        ],
        row,
    )
    pct = res.as_percentages()
    row = _write_section_header(ws, "CARGAS", row)
    row = _write_table(
        ws,
        ["CATEGORÍA", "kW", "%"],
        [
            ["TRANSMISIÓN - MUROS", res.transmission_load.walls, None],
            ["TRANSMISIÓN - TECHO", res.transmission_load.ceiling, None],
            ["TRANSMISIÓN - PISO", res.transmission_load.floor, None],
            ["TRANSMISIÓN", res.transmission_load.total, pct["transmission_pct"] * 100],
            ["PRODUCTO (SENSIBLE)", res.product_load.total, pct["product_pct"] * 100],
            ["INFILTRACIÓN", res.air_infiltration_load, pct["infiltration_pct"] * 100],
            ["PERSONAS", res.internal_loads.people, None],
            ["ILUMINACIÓN", res.internal_loads.lighting, None],
            ["EQUIPOS", res.internal_loads.equipment, None],
            ["INTERNAS", res.internal_loads.total, pct["internal_pct"] * 100],
            ["PUERTA", res.door_load, pct["door_pct"] * 100],
        ],
        row,
    )
    row = _write_section_header(ws, "TOTALES", row)
    row = _write_table(
        ws,
        ["CONCEPTO", "VALOR", "UNIDAD"],
        [
            ["CARGA TOTAL", res.total_load, "kW"],
            ["CARGA CON SEGURIDAD", res.total_load_with_safety, "kW"],
            ["CARGA CON SEGURIDAD", res.total_btuh, "BTU/h"],
            ["CAPACIDAD", res.refrigeration_tons, "TR"],
        ],
        row,
    )
    return row


# ----------------------------- API de exportación ----------------------------
def export_load_report(
    data: Union[LoadResult, ProjectResult],
    out_path: Path | str,
    meta: Optional[Sequence[Tuple[str, object]]] = None,
    room_names: Optional[Sequence[str]] = None,
) -> Path:
    """
    Genera el Excel de cargas: hoja RESUMEN y, para proyectos, hoja CUARTOS.
    Devuelve la ruta del archivo.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "RESUMEN"
    row = _write_meta(ws, list(meta)) if meta else 1

    if isinstance(data, ProjectResult):
        row = _write_section_header(ws, "PROYECTO", row)
        row = _write_table(
            ws,
            ["CONCEPTO", "VALOR", "UNIDAD"],
            [
                ["CUARTOS", len(data.rooms), ""],
                ["CARGA TOTAL", data.total_load, "kW"],
                ["CARGA CON SEGURIDAD", data.total_load_with_safety, "kW"],
                ["CAPACIDAD", data.refrigeration_tons, "TR"],
            ],
            row,
        )
        ws2 = wb.create_sheet("CUARTOS")
        df = project_frame(data, room_names)
        headers = [str(c).upper() for c in df.columns]
        _write_table(ws2, headers, df.itertuples(index=False, name=None), 1)
        _autosize(ws2)
    else:
        _room_sections(ws, data, row)
    _autosize(ws)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(out_path)
    logger.info("Reporte de cargas guardado en %s", out_path)
    return out_path
