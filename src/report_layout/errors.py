"""Exception types raised by the report layout engine."""

from typing import Optional


class ReportLayoutError(Exception):
    """Base class for all report layout errors."""


class ReportValidationError(ReportLayoutError):
    """The inbound report description is malformed and cannot be laid out."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class ReportGenerationError(ReportLayoutError):
    """The rendering backend failed while assembling the output artifact."""


class SpreadsheetGenerationError(ReportGenerationError):
    """The spreadsheet backend failed while writing the workbook."""
