"""Shared fixtures and a recording surface for observing paint calls."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pytest

from report_layout.config import RenderConfig
from report_layout.layout_engine import LayoutEngine
from report_layout.styles import CellBox, ResolvedStyle
from report_layout.surfaces import Surface


@dataclass
class RecordedCell:
    header: bool
    colspan: int
    box: CellBox
    surface: "RecordingSurface"


class RecordingTable:
    """Stand-in for TableHandle that remembers every cell added to it."""

    def __init__(
        self,
        widths: Sequence[float],
        total_width: float,
        repeat_header: bool = True,
        split_in_row: bool = False,
    ):
        self.fractions = list(widths)
        self.total_width = total_width
        self.repeat_header = repeat_header
        self.split_in_row = split_in_row
        self.cells: List[RecordedCell] = []

    @property
    def column_count(self) -> int:
        return len(self.fractions)

    def add_header_cell(self, box: Optional[CellBox] = None, colspan: int = 1) -> "RecordingSurface":
        return self._add(box or CellBox(), colspan, header=True)

    def add_cell(self, box: Optional[CellBox] = None, colspan: int = 1) -> "RecordingSurface":
        return self._add(box or CellBox(), colspan, header=False)

    def _add(self, box: CellBox, colspan: int, header: bool) -> "RecordingSurface":
        surface = RecordingSurface(self.total_width * colspan / self.column_count)
        self.cells.append(RecordedCell(header, colspan, box, surface))
        return surface

    def rows(self) -> List[List[RecordedCell]]:
        """Cells grouped into table rows by accumulated colspan."""
        rows: List[List[RecordedCell]] = []
        filled = self.column_count
        for cell in self.cells:
            if filled + cell.colspan > self.column_count:
                rows.append([])
                filled = 0
            rows[-1].append(cell)
            filled += cell.colspan
        return rows

    def texts(self) -> List[str]:
        result = []
        for cell in self.cells:
            result.extend(cell.surface.texts())
        return result


class RecordingSurface(Surface):
    """Surface that records calls instead of building flowables."""

    def __init__(self, width: float = 500.0):
        self.width = width
        self.events: List[Dict[str, Any]] = []

    def append_paragraph(
        self,
        text: str,
        style: ResolvedStyle,
        markup: bool = False,
        space_before: float = 0.0,
        space_after: float = 0.0,
    ) -> None:
        self.events.append({"kind": "paragraph", "text": text, "style": style, "markup": markup})

    def append_table(
        self,
        widths: Sequence[float],
        repeat_header: bool = True,
        split_in_row: bool = False,
    ) -> RecordingTable:
        table = RecordingTable(widths, self.width, repeat_header, split_in_row)
        self.events.append({"kind": "table", "table": table})
        return table

    def append_block(self, box: CellBox) -> "RecordingSurface":
        block = RecordingSurface(self.width)
        self.events.append({"kind": "block", "box": box, "surface": block})
        return block

    def append_spacer(self, height: float) -> None:
        self.events.append({"kind": "spacer", "height": height})

    def kinds(self) -> List[str]:
        return [event["kind"] for event in self.events]

    def tables(self) -> List[RecordingTable]:
        return [event["table"] for event in self.events if event["kind"] == "table"]

    def paragraphs(self) -> List[str]:
        return [event["text"] for event in self.events if event["kind"] == "paragraph"]

    def texts(self) -> List[str]:
        """Every paragraph text in paint order, including nested tables and blocks."""
        result = []
        for event in self.events:
            if event["kind"] == "paragraph":
                result.append(event["text"])
            elif event["kind"] == "table":
                result.extend(event["table"].texts())
            elif event["kind"] == "block":
                result.extend(event["surface"].texts())
        return result


@pytest.fixture
def config():
    return RenderConfig()


@pytest.fixture
def resolver(config):
    return config.resolver()


@pytest.fixture
def engine(config):
    return LayoutEngine(config)


@pytest.fixture
def surface():
    return RecordingSurface()
