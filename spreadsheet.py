"""Read the first sheet of a voter spreadsheet into header -> text dicts."""
import csv
import logging
from pathlib import Path

from errors import UnsupportedFile

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xls")


def cell_text(value) -> str:
    """Spreadsheet cell as text. Numeric ids come back as ``2023001``, not ``2023001.0``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    text = str(value).strip()
    return "" if text == "NaN" else text


class SheetRow(dict):
    """Header -> text mapping that remembers its 1-based row in the sheet."""

    def __init__(self, values, number):
        super().__init__(values)
        self.number = number


def _to_dicts(header, body):
    names = [cell_text(h) for h in header]
    rows = []
    # the header is sheet row 1; blank rows are skipped but still counted
    for number, values in enumerate(body, start=2):
        values = list(values)
        if not any(cell_text(v) for v in values):
            continue
        values += [None] * (len(names) - len(values))
        rows.append(SheetRow({name: cell_text(v) for name, v in zip(names, values) if name}, number))
    return rows


def _read_csv(path: Path):
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            return []
        return _to_dicts(header, reader)


def _read_xlsx(path: Path):
    import openpyxl

    # not read_only: that mode can drop empty rows and shift the numbering
    wb = openpyxl.load_workbook(path, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        return _to_dicts(header, rows)
    finally:
        wb.close()


def _read_xls(path: Path):
    import xlrd

    wb = xlrd.open_workbook(str(path))
    ws = wb.sheet_by_index(0)
    if ws.nrows == 0:
        return []
    return _to_dicts(ws.row_values(0), (ws.row_values(i) for i in range(1, ws.nrows)))


def read_rows(path):
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        rows = _read_csv(path)
    elif suffix == ".xlsx":
        rows = _read_xlsx(path)
    elif suffix == ".xls":
        rows = _read_xls(path)
    else:
        raise UnsupportedFile()
    logger.info(f"Read {len(rows)} rows from {path.name}")
    return rows
