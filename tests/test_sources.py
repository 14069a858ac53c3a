"""
Unit tests for the source readers.
"""

from __future__ import annotations

import io
from datetime import date
from pathlib import Path

import openpyxl
import pytest

from trial_balance.sources import build_table, cell_text, read_csv, read_excel, read_upload

CSV_TEXT = (
    " Account , Description ,Prelim\n"
    "400.100,Cash,100\n"
    "\n"
    ",,\n"
    "600.100,Payables,-30\n"
)


def _xlsx_bytes(rows) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "TB"
    for r in rows:
        ws.append(r)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# ======================================================================
# CSV
# ======================================================================

class TestReadCsv:
    def test_headers_trimmed(self) -> None:
        table = read_csv(CSV_TEXT)
        assert table.headers == ["Account", "Description", "Prelim"]

    def test_blank_lines_skipped(self) -> None:
        table = read_csv(CSV_TEXT)
        assert len(table.rows) == 2
        assert table.rows[1] == {"Account": "600.100", "Description": "Payables", "Prelim": "-30"}

    def test_bytes_with_bom(self) -> None:
        table = read_csv(("\ufeff" + CSV_TEXT).encode("utf-8"))
        assert table.headers[0] == "Account"

    def test_file_path(self, tmp_path: Path) -> None:
        path = tmp_path / "tb.csv"
        path.write_text(CSV_TEXT, encoding="utf-8")
        assert len(read_csv(path).rows) == 2
        assert len(read_csv(str(path)).rows) == 2

    def test_file_object(self) -> None:
        assert len(read_csv(io.StringIO(CSV_TEXT)).rows) == 2

    def test_short_rows_padded(self) -> None:
        table = read_csv("Account,Description,Prelim\n400.100\n")
        assert table.rows == [{"Account": "400.100", "Description": "", "Prelim": ""}]

    def test_duplicate_headers_last_value_wins(self) -> None:
        table = read_csv("Account,Amount,Amount\n400.100,1,2\n")
        assert table.headers == ["Account", "Amount"]
        assert table.rows[0]["Amount"] == "2"

    def test_semicolon_delimiter(self) -> None:
        table = read_csv("Account;Amount\n400.100;5\n", delimiter=";")
        assert table.rows[0]["Amount"] == "5"

    def test_windows_1252_bytes(self) -> None:
        data = "Account,Description,Prelim\n400.100,Petty cash £,5\n".encode("cp1252")
        table = read_csv(data)
        assert table.rows[0]["Description"] == "Petty cash £"

    def test_windows_1252_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tb.csv"
        path.write_bytes("Account,Description\n400.100,Café\n".encode("cp1252"))
        assert read_csv(path).rows[0]["Description"] == "Café"

    def test_empty_input(self) -> None:
        table = read_csv("")
        assert table.headers == []
        assert table.rows == []


# ======================================================================
# Excel
# ======================================================================

class TestReadExcel:
    def test_reads_first_sheet(self) -> None:
        data = _xlsx_bytes([
            ["Account", "Description", "Prelim"],
            ["400.100", "Cash", 100],
            [None, None, None],
            ["600.100", "Payables", -30.5],
        ])
        table = read_excel(data)
        assert table.headers == ["Account", "Description", "Prelim"]
        assert table.rows == [
            {"Account": "400.100", "Description": "Cash", "Prelim": "100"},
            {"Account": "600.100", "Description": "Payables", "Prelim": "-30.5"},
        ]

    def test_named_sheet(self, tmp_path: Path) -> None:
        path = tmp_path / "tb.xlsx"
        path.write_bytes(_xlsx_bytes([["Account", "Amount"], ["700.100", -1000]]))
        table = read_excel(path, sheet="TB")
        assert table.rows[0]["Amount"] == "-1000"

    def test_unknown_sheet(self) -> None:
        with pytest.raises(KeyError):
            read_excel(_xlsx_bytes([["Account"]]), sheet="Nope")

    def test_corrupt_workbook(self) -> None:
        with pytest.raises(ValueError, match="Not a readable Excel workbook"):
            read_excel(b"this is not a zip archive")

    def test_wrong_file_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "tb.csv"
        path.write_text("Account\n1\n", encoding="utf-8")
        with pytest.raises(ValueError):
            read_excel(path)


# ======================================================================
# Cells and dispatch
# ======================================================================

class TestHelpers:
    def test_cell_text(self) -> None:
        assert cell_text(None) == ""
        assert cell_text(12.0) == "12"
        assert cell_text(12.25) == "12.25"
        assert cell_text(date(2024, 12, 31)) == "2024-12-31"

    def test_build_table_skips_leading_blank_rows(self) -> None:
        table = build_table([[None, None], ["Account", "Amount"], ["1", "2"]])
        assert table.headers == ["Account", "Amount"]

    def test_read_upload_dispatch(self) -> None:
        assert read_upload("tb.CSV", CSV_TEXT.encode()).headers[0] == "Account"
        assert read_upload("tb.xlsx", _xlsx_bytes([["Account"], ["1"]])).rows == [{"Account": "1"}]

    def test_read_upload_rejects_other_types(self) -> None:
        with pytest.raises(ValueError):
            read_upload("tb.pdf", b"%PDF")


# ======================================================================
# pandas
# ======================================================================

class TestReadDataframe:
    def test_dataframe(self) -> None:
        pd = pytest.importorskip("pandas")
        from trial_balance.sources import read_dataframe

        df = pd.DataFrame({"Account": ["400.100", None], "Amount": [1.5, None]})
        table = read_dataframe(df)
        assert table.headers == ["Account", "Amount"]
        assert table.rows == [{"Account": "400.100", "Amount": "1.5"}]
