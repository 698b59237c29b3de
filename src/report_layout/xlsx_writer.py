"""Spreadsheet export: one worksheet per table section."""

import io
import logging
from decimal import Decimal
from numbers import Number
from typing import Any, Dict, Mapping, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .errors import SpreadsheetGenerationError
from .models import ReportData, Section, SectionType

logger = logging.getLogger(__name__)


SHEET_TITLE_LIMIT = 31
# Characters Excel refuses in sheet titles
INVALID_TITLE_CHARS = "[]:*?/\\"
MAX_COLUMN_WIDTH = 60

PDF_CONTENT_TYPE = "application/pdf"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

CONTENT_TYPES: Dict[str, str] = {
    "pdf": PDF_CONTENT_TYPE,
    "xlsx": XLSX_CONTENT_TYPE,
}


def output_filename(report: ReportData, fmt: str) -> str:
    """Download file name for a rendered report, e.g. "orders.pdf"."""
    return f"{report.report_type}.{fmt}"


def cell_value(value: Any) -> Any:
    """Convert a row value to something a worksheet cell keeps typed."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Number):
        return value
    return str(value)


class SpreadsheetExporter:
    """Writes the table sections of a report to an XLSX workbook."""

    def export(self, report: ReportData) -> bytes:
        """
        Export every table section with data to its own worksheet.

        Sections are taken from the flat list first, then from each group.
        Nested sections and non-table sections are not exported.

        Raises:
            SpreadsheetGenerationError: When the workbook cannot be written.
        """
        try:
            workbook = Workbook()
            workbook.remove(workbook.active)

            exported = 0
            for section in report.all_sections():
                if section.section_type is not SectionType.TABLE or not section.data:
                    continue
                self.add_section(workbook, section)
                exported += 1

            # A workbook needs at least one sheet to be saved
            if not exported:
                workbook.create_sheet(title="Sheet1")

            for worksheet in workbook.worksheets:
                self.autosize_columns(worksheet)

            buffer = io.BytesIO()
            workbook.save(buffer)
        except Exception as e:
            logger.error("Spreadsheet generation failed for %r: %s", report.title, e, exc_info=True)
            raise SpreadsheetGenerationError(f"Failed to generate spreadsheet: {e}") from e

        logger.info("Exported %d sheet(s) for %r", exported, report.title)
        return buffer.getvalue()

    def add_section(self, workbook: Workbook, section: Section) -> Worksheet:
        worksheet = self.create_sheet(workbook, section.title)
        column_ids = section.column_ids()
        self.write_header_row(worksheet, [section.column_title(c) for c in column_ids])
        for row in section.data:
            self.write_data_row(worksheet, column_ids, row)
        return worksheet

    def create_sheet(self, workbook: Workbook, title: Optional[str]) -> Worksheet:
        """
        Create a worksheet with a valid, unique title.

        Titles are cut to 31 characters. Clashes get a " (n)" suffix that still
        fits the limit. Untitled sections become "Sheet<n>".
        """
        existing = [ws.title.lower() for ws in workbook.worksheets]
        if title:
            base = "".join("-" if ch in INVALID_TITLE_CHARS else ch for ch in title)
        else:
            base = f"Sheet{len(existing) + 1}"
        base = base[:SHEET_TITLE_LIMIT]

        name = base
        index = 1
        while name.lower() in existing:
            suffix = f" ({index})"
            name = base[:SHEET_TITLE_LIMIT - len(suffix)] + suffix
            index += 1

        return workbook.create_sheet(title=name)

    def write_header_row(self, worksheet: Worksheet, titles: Sequence[str]) -> None:
        worksheet.append(list(titles))
        for cell in worksheet[worksheet.max_row]:
            cell.font = Font(bold=True)

    def write_data_row(self, worksheet: Worksheet, column_ids: Sequence[str], row: Mapping[str, Any]) -> None:
        worksheet.append([cell_value(row.get(column_id)) for column_id in column_ids])

    def autosize_columns(self, worksheet: Worksheet) -> None:
        """Fit each column to its longest rendered value."""
        widths: Dict[int, int] = {}
        for row in worksheet.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                length = len(str(cell.value))
                widths[cell.column] = max(widths.get(cell.column, 0), length)

        for column, length in widths.items():
            worksheet.column_dimensions[get_column_letter(column)].width = min(length + 2, MAX_COLUMN_WIDTH)
