from __future__ import annotations

import re
import unicodedata
from io import BytesIO
from typing import Any, Sequence

from openpyxl import Workbook

from dashboard.services.field_values import calendar_day, field_value, parse_bool, parse_number
from dashboard.services.list_registry import ExportColumn, ListConfig

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_SHEET_TITLE_MAX = 31
_SHEET_FORBIDDEN_RE = re.compile(r"[\[\]\*\?/\\:]")


def _cell_value(record: Any, column: ExportColumn) -> Any:
    value = field_value(record, column.path)
    if column.kind == "count":
        return len(value) if isinstance(value, (list, tuple)) else 0
    if value is None or value == "":
        return column.empty
    if column.kind == "date":
        day = calendar_day(value)
        return day.strftime("%d/%m/%Y") if day else column.empty
    if column.kind == "bool":
        flag = parse_bool(value)
        if flag is None:
            return column.empty
        return column.labels[0] if flag else column.labels[1]
    if column.kind in {"money", "number"}:
        number = parse_number(value)
        if number is None:
            return column.empty
        if column.kind == "number" and number == number.to_integral_value():
            return int(number)
        return float(number)
    return str(value)


def _header_label(header: dict[str, Any] | None) -> str:
    return str((header or {}).get("descripcion") or "").strip()


def sheet_title(config: ListConfig, header: dict[str, Any] | None = None) -> str:
    title = (config.sheet_name or config.title).format(header=_header_label(header)).strip()
    title = _SHEET_FORBIDDEN_RE.sub(" ", title)
    return title[:_SHEET_TITLE_MAX] or "Datos"


def export_filename(config: ListConfig, header: dict[str, Any] | None = None) -> str:
    stem = (config.file_stem or config.name).format(header=_header_label(header))
    stem = unicodedata.normalize("NFKD", stem).encode("ascii", "ignore").decode("ascii")
    stem = re.sub(r"\s+", "_", stem.strip()).strip("_") or config.name
    return f"{stem}.xlsx"


def build_workbook_bytes(
    config: ListConfig,
    rows: Sequence[Any],
    header: dict[str, Any] | None = None,
) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title(config, header)
    columns = config.export_columns
    sheet.append([column.header for column in columns])
    for record in rows:
        sheet.append([_cell_value(record, column) for column in columns])
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
