"""
Test: SpreadsheetExporter, covering sheet naming, value typing and section selection.
"""

import io
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from report_layout.models import ReportData
from report_layout.samples import build_sample_report
from report_layout.xlsx_writer import (
    CONTENT_TYPES, SpreadsheetExporter, cell_value, output_filename,
)


def load(content: bytes):
    return load_workbook(io.BytesIO(content))


@pytest.fixture
def empty_workbook():
    workbook = Workbook()
    workbook.remove(workbook.active)
    return workbook


class TestExport:
    def test_sample_sheets(self):
        report = ReportData.from_dict(build_sample_report(num_orders=4))
        workbook = load(SpreadsheetExporter().export(report))

        assert workbook.sheetnames == ["Orders", "By Status", "Top Customers"]
        orders = workbook["Orders"]
        header = [cell.value for cell in orders[1]]
        assert header == ["Order", "Customer", "Date", "Status", "Discount", "Amount"]
        assert orders.max_row == 5
        assert isinstance(orders.cell(row=2, column=6).value, float)

    def test_only_table_sections_with_data(self):
        report = ReportData.from_dict({
            "reportType": "t",
            "title": "T",
            "sections": [
                {"type": "text", "title": "Text", "content": "x"},
                {"type": "table", "title": "Empty", "columns": {"a": "A"}, "data": []},
                {"type": "table", "title": "Full", "columns": {"a": "A"}, "data": [{"a": 1}]},
            ],
        })
        workbook = load(SpreadsheetExporter().export(report))
        assert workbook.sheetnames == ["Full"]

    def test_nothing_to_export_keeps_one_sheet(self):
        report = ReportData.from_dict({"reportType": "t", "title": "T"})
        workbook = load(SpreadsheetExporter().export(report))
        assert workbook.sheetnames == ["Sheet1"]

    def test_values_keep_types(self):
        report = ReportData.from_dict({
            "reportType": "t",
            "title": "T",
            "sections": [{
                "type": "table",
                "title": "Values",
                "columns": {"n": "N", "f": "F", "b": "B", "s": "S", "l": "L"},
                "data": [{"n": 3, "f": 2.5, "b": True, "s": "text", "l": [1, 2]}],
            }],
        })
        sheet = load(SpreadsheetExporter().export(report))["Values"]
        values = [cell.value for cell in sheet[2]]
        assert values == [3, 2.5, True, "text", "[1, 2]"]


class TestCreateSheet:
    def test_long_titles_truncated_and_unique(self, empty_workbook):
        exporter = SpreadsheetExporter()
        title = "A very long section title that exceeds the limit"
        first = exporter.create_sheet(empty_workbook, title)
        second = exporter.create_sheet(empty_workbook, title)

        assert first.title == title[:31]
        assert len(second.title) <= 31
        assert second.title.endswith(" (1)")

    def test_duplicate_titles(self, empty_workbook):
        exporter = SpreadsheetExporter()
        names = [exporter.create_sheet(empty_workbook, "Orders").title for _ in range(3)]
        assert names == ["Orders", "Orders (1)", "Orders (2)"]

    def test_untitled_sheets(self, empty_workbook):
        exporter = SpreadsheetExporter()
        assert exporter.create_sheet(empty_workbook, None).title == "Sheet1"
        assert exporter.create_sheet(empty_workbook, "").title == "Sheet2"

    def test_invalid_characters_replaced(self, empty_workbook):
        assert SpreadsheetExporter().create_sheet(empty_workbook, "Q1/Q2: [draft]").title == "Q1-Q2- -draft-"


class TestHelpers:
    def test_cell_value(self):
        assert cell_value(None) == ""
        assert cell_value(False) is False
        assert cell_value(Decimal("1.50")) == 1.5
        assert cell_value({"a": 1}) == "{'a': 1}"

    def test_output_filename_and_content_types(self):
        report = ReportData.from_dict({"reportType": "orders", "title": "T"})
        assert output_filename(report, "xlsx") == "orders.xlsx"
        assert CONTENT_TYPES["pdf"] == "application/pdf"
        assert CONTENT_TYPES["xlsx"].endswith("spreadsheetml.sheet")

    def test_autosize_columns(self, empty_workbook):
        exporter = SpreadsheetExporter()
        sheet = exporter.create_sheet(empty_workbook, "Sizes")
        exporter.write_header_row(sheet, ["Short", "A much longer header"])
        exporter.autosize_columns(sheet)
        assert sheet.column_dimensions["A"].width == 7
        assert sheet.column_dimensions["B"].width == 22
