"""
Source readers.

Reads uploaded trial balances (CSV text / files, Excel workbooks, pandas
DataFrames) into a uniform ``SourceTable``: an ordered list of trimmed
headers plus one ``{header: cell_text}`` dict per data row.

Conventions shared by all readers:
* header whitespace is trimmed;
* rows whose cells are all blank are skipped;
* duplicate headers keep their first position, the last cell value wins.
"""

from __future__ import annotations

import csv
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO, StringIO
from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Union
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from trial_balance.logging_setup import get_logger

logger = get_logger("sources")

Source = Union[str, Path, bytes, IO[Any]]


class SourceTable(NamedTuple):
    headers: List[str]
    rows: List[Dict[str, str]]


def _unique(headers: Sequence[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for h in headers:
        seen.setdefault(h, None)
    return list(seen)


def build_table(raw_rows: Iterable[Sequence[Any]]) -> SourceTable:
    """Turn a grid (first non-blank row = header) into a ``SourceTable``."""
    headers: Optional[List[str]] = None
    rows: List[Dict[str, str]] = []

    for raw in raw_rows:
        cells = [cell_text(c) for c in raw]
        if not any(c.strip() for c in cells):
            continue
        if headers is None:
            headers = [c.strip() for c in cells]
            continue
        row: Dict[str, str] = {}
        for i, header in enumerate(headers):
            if not header:
                continue
            row[header] = cells[i] if i < len(cells) else ""
        rows.append(row)

    if headers is None:
        logger.warning("Source contains no header row")
        return SourceTable([], [])

    unique = [h for h in _unique(headers) if h]
    if len(unique) != len([h for h in headers if h]):
        logger.warning("Duplicate headers in source; last value wins: %r", headers)
    logger.info("Read %d rows with %d columns", len(rows), len(unique))
    return SourceTable(unique, rows)


def cell_text(value: Any) -> str:
    """Render a spreadsheet cell as the text a CSV export would contain."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

def decode_text(data: bytes) -> str:
    """UTF-8 (BOM optional), else Windows-1252 with undecodable bytes replaced.

    Spreadsheet exports from Windows are often cp1252 ("£" is 0xA3).
    """
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Input is not UTF-8; decoding as cp1252")
        return data.decode("cp1252", errors="replace")


def read_csv(source: Source, delimiter: str = ",") -> SourceTable:
    """Read from a CSV file path, raw CSV text or bytes, or a file object.

    A string naming an existing file is read from disk; any other string
    is treated as CSV text.
    """
    if isinstance(source, bytes):
        text = decode_text(source)
    elif isinstance(source, Path) or (
        isinstance(source, str) and source and "\n" not in source and Path(source).is_file()
    ):
        text = decode_text(Path(source).read_bytes())
    elif isinstance(source, str):
        text = source
    else:
        data = source.read()
        text = decode_text(data) if isinstance(data, bytes) else data

    text = text.lstrip("\ufeff")
    return build_table(csv.reader(StringIO(text), delimiter=delimiter))


def read_excel(source: Source, sheet: Optional[str] = None) -> SourceTable:
    """Read one worksheet of an .xlsx workbook.

    Parameters
    ----------
    source:
        Path, raw bytes or a binary file object.
    sheet:
        Worksheet name; the first (active) sheet when omitted.
    """
    if isinstance(source, bytes):
        source = BytesIO(source)
    elif isinstance(source, str):
        source = Path(source)

    try:
        wb = openpyxl.load_workbook(source, data_only=True, read_only=True)
    except (BadZipFile, InvalidFileException) as exc:
        raise ValueError(f"Not a readable Excel workbook: {exc}") from exc
    try:
        ws = wb[sheet] if sheet else wb.worksheets[0]
        logger.info("Reading sheet %r", ws.title)
        return build_table(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def read_dataframe(df: Any) -> SourceTable:
    """Read from a pandas DataFrame; column labels become headers."""
    try:
        import pandas as pd  # noqa: F811
    except ImportError as exc:
        raise ImportError(
            "pandas is required to use read_dataframe"
        ) from exc

    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"Expected pandas DataFrame, got {type(df).__name__}")

    header = [str(c) for c in df.columns]
    grid: List[Sequence[Any]] = [header]
    for values in df.itertuples(index=False, name=None):
        grid.append([None if pd.isna(v) else v for v in values])
    return build_table(grid)


def read_upload(filename: str, data: bytes) -> SourceTable:
    """Dispatch on file extension (``.csv``/``.txt`` or ``.xlsx``/``.xlsm``)."""
    ext = Path(filename).suffix.lower()
    if ext in (".csv", ".txt"):
        return read_csv(data)
    if ext in (".xlsx", ".xlsm"):
        return read_excel(data)
    raise ValueError(f"Unsupported file type: {ext or filename!r}")
