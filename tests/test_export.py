"""
Tests for pipeline/export.py — CSV / Excel export of the filtered view.
"""
import csv
import io
import sys
from datetime import date
from pathlib import Path

import openpyxl
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conftest import SAMPLE_ROWS
from pipeline.export import EXPORT_HEADERS, export_filename, to_csv, to_xlsx
from pipeline.normalize import normalize, normalize_row
from utils.errors import ExportEmptyError


@pytest.fixture()
def records():
    return normalize(SAMPLE_ROWS, today=date(2025, 6, 15))


class TestToCsv:
    def test_header_line(self, records):
        first = to_csv(records).split("\n")[0]
        assert first == "REQUEST NO,HOSPITAL,DATE,SERVICES,SUB-SYSTEM,ACTION PLAN,VENDOR,COST"

    def test_rows_fully_quoted(self, records):
        lines = to_csv(records).split("\n")
        assert len(lines) == 1 + len(records)
        assert lines[1] == '"WO-001","HSA","2024-03-05","BEMS","Chiller","","Acme","12000"'

    def test_decimal_cost(self, records):
        lines = to_csv(records).split("\n")
        assert lines[4].endswith('"750.5"')

    def test_invalid_cost_written_as_zero(self, records):
        lines = to_csv(records).split("\n")
        assert lines[3].endswith('"0"')

    def test_embedded_quotes_doubled(self):
        rec = normalize_row({"REQUEST NO": "Q1", "ACTION PLAN": 'He said "ok"'}, 1)
        line = to_csv([rec]).split("\n")[1]
        assert '"He said ""ok"""' in line

    def test_round_trip(self, records):
        records = records + [normalize_row(
            {"REQUEST NO": "Q1", "HOSPITAL": "H, with comma", "ACTION PLAN": 'He said "ok"\nthen left'},
            5,
        )]
        parsed = list(csv.reader(io.StringIO(to_csv(records))))
        assert parsed[0] == EXPORT_HEADERS
        for rec, row in zip(records, parsed[1:]):
            assert row[0] == rec.request_no
            assert row[1] == rec.hospital
            assert row[2] == rec.request_date
            assert row[5] == rec.action_plan
            assert float(row[7]) == rec.cost

    def test_no_undefined_literal(self):
        rec = normalize_row({"REQUEST NO": "X"}, 1)
        assert "undefined" not in to_csv([rec])
        assert "None" not in to_csv([rec])

    def test_empty_rejected(self):
        with pytest.raises(ExportEmptyError) as exc:
            to_csv([])
        assert str(exc.value) == "No data to export"


class TestToXlsx:
    def test_workbook_contents(self, records):
        wb = openpyxl.load_workbook(io.BytesIO(to_xlsx(records)))
        ws = wb["Work Orders"]
        rows = list(ws.iter_rows(values_only=True))
        assert list(rows[0]) == EXPORT_HEADERS
        assert rows[1][0] == "WO-001"
        assert rows[1][7] == 12000
        assert len(rows) == 1 + len(records)

    def test_empty_rejected(self):
        with pytest.raises(ExportEmptyError):
            to_xlsx([])


class TestFilename:
    def test_csv_name(self):
        assert export_filename(today=date(2025, 1, 31)) == "work-orders-2025-01-31.csv"

    def test_xlsx_name(self):
        assert export_filename("xlsx", today=date(2025, 1, 31)) == "work-orders-2025-01-31.xlsx"
