"""
Render surfaces backed by ReportLab Platypus flowables.

A Surface is anything layout code can append paragraphs, tables and boxed
blocks to. The root page flow (FlowSurface) and a table cell (CellSurface)
implement the same interface, so renderers never need to know which one they
were handed. Only page-level concerns (page breaks, margins) are absent from
cells.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union
from xml.sax.saxutils import escape

from reportlab.lib.colors import black
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Flowable, Paragraph, Spacer, Table, TableStyle

from .styles import CellBox, ResolvedStyle

# Smallest width (points) a column or cell content area may shrink to
MIN_WIDTH = 1.0
BORDER_WIDTH = 0.5
RULE_WIDTH = 1.0

TEXT_ALIGNMENTS = {
    "left": TA_LEFT,
    "center": TA_CENTER,
    "right": TA_RIGHT,
    "justified": TA_JUSTIFY,
}


def paragraph_style(
    style: ResolvedStyle,
    space_before: float = 0.0,
    space_after: float = 0.0,
) -> ParagraphStyle:
    """Translate a resolved style into a ReportLab paragraph style."""
    return ParagraphStyle(
        name="cell",
        fontName=style.font_name,
        fontSize=style.font_size,
        leading=style.font_size * 1.2,
        textColor=style.font_color,
        backColor=style.background_color,
        alignment=TEXT_ALIGNMENTS.get(style.alignment, TA_LEFT),
        spaceBefore=space_before,
        spaceAfter=space_after,
    )


def to_markup(text: str) -> str:
    """Escape plain text for a Paragraph, keeping line breaks."""
    return escape(text).replace("\n", "<br/>")


class Surface(ABC):
    """Target that layout code appends content to."""

    width: float

    @abstractmethod
    def append_paragraph(
        self,
        text: str,
        style: ResolvedStyle,
        markup: bool = False,
        space_before: float = 0.0,
        space_after: float = 0.0,
    ) -> None:
        """Append a styled paragraph. With markup=True the text is ReportLab markup."""

    @abstractmethod
    def append_table(
        self,
        widths: Sequence[float],
        repeat_header: bool = True,
        split_in_row: bool = False,
    ) -> "TableHandle":
        """
        Append a table whose column widths are fractions of this surface's width.

        With split_in_row=True a row taller than the page is broken inside
        its cells instead of being moved whole to the next page.
        """

    @abstractmethod
    def append_block(self, box: CellBox) -> "Surface":
        """Append a boxed container spanning the full width and return its inside."""

    @abstractmethod
    def append_spacer(self, height: float) -> None:
        """Append vertical whitespace."""


class TableHandle:
    """
    A table under construction.

    Cells are added left to right, wrapping to a new row when the current one
    is full. Each cell is a CellSurface that can receive any content,
    including further tables. Header rows added before the first body row are
    repeated when the table breaks across pages.
    """

    def __init__(
        self,
        widths: Sequence[float],
        total_width: float,
        repeat_header: bool = True,
        split_in_row: bool = False,
    ):
        if not widths:
            raise ValueError("A table needs at least one column")
        self.fractions = list(widths)
        self.col_widths = [max(MIN_WIDTH, w * total_width) for w in widths]
        self.repeat_header = repeat_header
        self.split_in_row = split_in_row
        self._rows: List[List[Optional["CellSurface"]]] = []
        self._header_rows: List[bool] = []
        self._spans: List[tuple] = []
        self._filled = 0

    @property
    def column_count(self) -> int:
        return len(self.col_widths)

    def add_header_cell(self, box: Optional[CellBox] = None, colspan: int = 1) -> "CellSurface":
        return self._add(box or CellBox(), colspan, header=True)

    def add_cell(self, box: Optional[CellBox] = None, colspan: int = 1) -> "CellSurface":
        return self._add(box or CellBox(), colspan, header=False)

    def _add(self, box: CellBox, colspan: int, header: bool) -> "CellSurface":
        colspan = max(1, min(colspan, self.column_count))
        if not self._rows or self._filled + colspan > self.column_count:
            self._start_row(header)

        row_index = len(self._rows) - 1
        col_index = self._filled
        cell_width = sum(self.col_widths[col_index:col_index + colspan])
        cell = CellSurface(cell_width, box)

        row = self._rows[row_index]
        row[col_index] = cell
        if colspan > 1:
            self._spans.append(((col_index, row_index), (col_index + colspan - 1, row_index)))
        self._filled += colspan
        return cell

    def _start_row(self, header: bool) -> None:
        self._rows.append([None] * self.column_count)
        self._header_rows.append(header)
        self._filled = 0

    def _leading_header_rows(self) -> int:
        count = 0
        for is_header in self._header_rows:
            if not is_header:
                break
            count += 1
        return count

    def _commands(self) -> list:
        commands = [
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
            ("TOPPADDING", (0, 0), (-1, -1), 0),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]
        span_end = {start: end for start, end in self._spans}

        for row_index, row in enumerate(self._rows):
            for col_index, cell in enumerate(row):
                if cell is None:
                    continue
                start = (col_index, row_index)
                end = span_end.get(start, start)
                box = cell.box
                top, right, bottom, left = box.padding
                commands.extend([
                    ("TOPPADDING", start, end, top),
                    ("RIGHTPADDING", start, end, right),
                    ("BOTTOMPADDING", start, end, bottom),
                    ("LEFTPADDING", start, end, left),
                    ("VALIGN", start, end, box.valign),
                ])
                if box.background is not None:
                    commands.append(("BACKGROUND", start, end, box.background))
                if box.border:
                    commands.append(("BOX", start, end, BORDER_WIDTH, black))
                if box.top_rule:
                    commands.append(("LINEABOVE", start, end, RULE_WIDTH, black))

        for start, end in self._spans:
            commands.append(("SPAN", start, end))
        return commands

    def build(self) -> Optional[Table]:
        """Materialize the ReportLab table, or None when no cell was added."""
        if not self._rows:
            return None

        data = [
            [(cell.flowables() or "") if cell is not None else "" for cell in row]
            for row in self._rows
        ]
        repeat_rows = self._leading_header_rows() if self.repeat_header else 0
        # A table made only of header rows has nothing to repeat over
        if repeat_rows >= len(self._rows):
            repeat_rows = 0

        return Table(
            data,
            colWidths=self.col_widths,
            repeatRows=repeat_rows,
            style=TableStyle(self._commands()),
            hAlign="LEFT",
            splitInRow=1 if self.split_in_row else 0,
        )


class FlowableSurface(Surface):
    """Surface that collects ReportLab flowables."""

    def __init__(self, width: float):
        self.width = max(MIN_WIDTH, width)
        self._items: List[Union[Flowable, TableHandle]] = []

    def append_paragraph(
        self,
        text: str,
        style: ResolvedStyle,
        markup: bool = False,
        space_before: float = 0.0,
        space_after: float = 0.0,
    ) -> None:
        body = text if markup else to_markup(text)
        self._items.append(Paragraph(body, paragraph_style(style, space_before, space_after)))

    def append_table(
        self,
        widths: Sequence[float],
        repeat_header: bool = True,
        split_in_row: bool = False,
    ) -> TableHandle:
        handle = TableHandle(widths, self.width, repeat_header=repeat_header, split_in_row=split_in_row)
        self._items.append(handle)
        return handle

    def append_block(self, box: CellBox) -> "CellSurface":
        handle = TableHandle([1.0], self.width, repeat_header=False)
        self._items.append(handle)
        return handle.add_cell(box)

    def append_spacer(self, height: float) -> None:
        if height > 0:
            self._items.append(Spacer(self.width, height))

    def flowables(self) -> List[Flowable]:
        """Materialize pending tables and return the flowables in order."""
        result = []
        for item in self._items:
            if isinstance(item, TableHandle):
                table = item.build()
                if table is not None:
                    result.append(table)
            else:
                result.append(item)
        return result


class FlowSurface(FlowableSurface):
    """The root page flow of a document."""


class CellSurface(FlowableSurface):
    """The inside of a table cell. Its width excludes the cell's horizontal padding."""

    def __init__(self, cell_width: float, box: CellBox):
        super().__init__(cell_width - box.horizontal_padding)
        self.cell_width = cell_width
        self.box = box
