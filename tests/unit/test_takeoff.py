"""Unit tests for take-off file reading and import previews."""

from __future__ import annotations

import pytest
from openpyxl import Workbook

from mtocalc.config import IngestionConfig
from mtocalc.ingestion.takeoff import TakeoffFileError, preview_import, read_takeoff
from mtocalc.models import ExpectedField, ValidationCategory

CSV_TEXT = (
    "DRAWING*, Type ,QTY,Commodity Code,Size,Area,Item #\n"
    "P-001,Valve,2,V-100,2,North,1\n"
    "P-001,Threaded Pipe,12.5,TP-1,1,North,2\n"
    "P-002,Flange,007,F-9,,South,\n"
)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "takeoff.csv"
    path.write_text(CSV_TEXT)
    return path


class TestReadTakeoff:
    """Test CSV/XLSX reading."""

    def test_csv(self, csv_file):
        headers, rows = read_takeoff(csv_file)

        assert headers == ["DRAWING*", "Type", "QTY", "Commodity Code", "Size", "Area", "Item #"]
        assert len(rows) == 3
        assert rows[0]["DRAWING*"] == "P-001"
        assert rows[1]["QTY"] == "12.5"

    def test_cells_kept_as_text(self, csv_file):
        _, rows = read_takeoff(csv_file)
        assert rows[2]["QTY"] == "007"
        assert rows[2]["Size"] == ""
        assert rows[2]["Item #"] == ""

    def test_xlsx(self, tmp_path):
        path = tmp_path / "takeoff.xlsx"
        wb = Workbook()
        ws = wb.active
        ws.append(["DRAWING", "TYPE", "QTY", "CMDTY CODE", "SIZE"])
        ws.append(["P-001", "Valve", "4", "V-100", "1/2"])
        ws.append(["P-001", "Support", 3, "S-1", "2"])
        wb.save(path)

        headers, rows = read_takeoff(path)

        assert headers == ["DRAWING", "TYPE", "QTY", "CMDTY CODE", "SIZE"]
        assert rows[0]["SIZE"] == "1/2"
        assert rows[1]["QTY"] == "3"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_takeoff(tmp_path / "nope.csv")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "takeoff.txt"
        path.write_text("DRAWING\n")
        with pytest.raises(TakeoffFileError, match="Unsupported file format"):
            read_takeoff(path)

    def test_too_many_rows(self, csv_file):
        with pytest.raises(TakeoffFileError, match="Too many rows"):
            read_takeoff(csv_file, IngestionConfig(max_rows=2))

    def test_file_too_large(self, csv_file):
        with pytest.raises(TakeoffFileError, match="too large"):
            read_takeoff(csv_file, IngestionConfig(max_file_size_mb=0.00001))


class TestPreviewImport:
    """Test the end-to-end import preview."""

    def test_importable_batch(self, csv_file):
        headers, rows = read_takeoff(csv_file)
        preview = preview_import(headers, rows, {"P-001": "uuid-1"})

        assert preview.can_import is True
        assert preview.summary.valid_count == 3
        assert preview.metadata.areas == ["North", "South"]

        keys = [c.identity_key for c in preview.components]
        assert keys[:2] == ["P-001-2-V-100-001", "P-001-2-V-100-002"]
        assert "P-002-NOSIZE-F-9-007" in keys
        assert keys[-1] == "P-001-1-TP-1-AGG"
        assert len(preview.components) == 2 + 7 + 1

    def test_unmapped_columns_travel_with_components(self, csv_file):
        headers, rows = read_takeoff(csv_file)
        preview = preview_import(headers, rows)
        assert preview.components[0].unmapped_fields == {"Item #": "1"}

    def test_missing_required_columns(self):
        preview = preview_import(["DRAWING", "QTY"], [{"DRAWING": "P-1", "QTY": "1"}])

        assert preview.can_import is False
        assert preview.summary is None
        assert preview.outcomes == []
        assert preview.mapping.missing_required_fields == [
            ExpectedField.TYPE,
            ExpectedField.CMDTY_CODE,
        ]

    def test_errors_block_components(self, make_row):
        headers = ["DRAWING", "TYPE", "QTY", "CMDTY CODE"]
        rows = [make_row(), make_row()]
        preview = preview_import(headers, rows)

        assert preview.can_import is False
        assert preview.summary.error_count == 1
        assert preview.outcomes[1].category is ValidationCategory.DUPLICATE_IDENTITY_KEY
        assert preview.components == []

    def test_duplicates_detected_across_chunks(self, make_row):
        headers = ["DRAWING", "TYPE", "QTY", "CMDTY CODE"]
        rows = [make_row(), make_row(QTY="2"), make_row()]
        preview = preview_import(headers, rows, config=IngestionConfig(chunk_size=1))

        assert [o.row_number for o in preview.outcomes] == [1, 2, 3]
        assert preview.summary.error_count == 2

    def test_custom_synonyms(self):
        rows = [{"ISO": "P-1", "TYPE": "Valve", "QTY": "1", "CMDTY CODE": "V1"}]
        synonyms = {ExpectedField.DRAWING: ("ISO",)}
        preview = preview_import(["ISO", "TYPE", "QTY", "CMDTY CODE"], rows, synonyms=synonyms)
        assert preview.can_import is True

    def test_quantity_over_limit_blocks_import(self, make_row):
        headers = ["DRAWING", "TYPE", "QTY", "CMDTY CODE"]
        preview = preview_import(headers, [make_row(QTY="1000")])

        assert preview.can_import is False
        assert preview.outcomes[0].category is ValidationCategory.INVALID_QUANTITY
        assert preview.components == []
