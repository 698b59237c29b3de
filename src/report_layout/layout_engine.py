"""Layout engine: column widths, column bands and table layout plans."""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np
from reportlab.lib.colors import Color

from .config import RenderConfig
from .models import NestedSection, Section
from .styles import CellBox, ResolvedStyle, Style, StyleResolver, header_color_for_level

logger = logging.getLogger(__name__)


# Widths whose sum is within this distance of 1.0 are left untouched
WIDTH_TOLERANCE = 0.001
# Slack for float accumulation when packing columns into bands
BAND_EPSILON = 1e-9

T = TypeVar("T")


# ============================================================================
# COLUMN WIDTHS
# ============================================================================

def width_hint(styles: Optional[Mapping[str, Style]], column_id: str) -> Optional[float]:
    """Width hint of a column in percent, or None when the column has none."""
    if not styles:
        return None
    style = styles.get(column_id)
    if style is None or style.width is None:
        return None
    return max(0.0, style.width)


def normalize_widths(widths: np.ndarray) -> np.ndarray:
    """Scale widths so they sum to 1. A zero vector becomes an even split."""
    if widths.size == 0:
        return widths
    total = float(widths.sum())
    if total <= 0:
        return np.full(widths.size, 1.0 / widths.size)
    if abs(total - 1.0) > WIDTH_TOLERANCE:
        return widths / total
    return widths


def compute_column_widths(
    column_ids: Sequence[str],
    styles: Optional[Mapping[str, Style]] = None,
) -> List[float]:
    """
    Compute width fractions for one row of columns.

    Pass 1 converts explicit percent hints to fractions. Pass 2 splits what is
    left of the row evenly across the columns without a hint. The result is
    then normalized so it sums to 1.

    Returns:
        List of fractions aligned with column_ids.
    """
    count = len(column_ids)
    if count == 0:
        return []

    widths = np.zeros(count)
    defined = np.zeros(count, dtype=bool)

    # First pass: explicit hints
    for i, column_id in enumerate(column_ids):
        hint = width_hint(styles, column_id)
        if hint is not None:
            widths[i] = hint / 100.0
            defined[i] = True

    # Second pass: share the remaining space among undefined columns
    undefined = int(count - defined.sum())
    if undefined > 0:
        remaining = max(0.0, 1.0 - float(widths[defined].sum()))
        widths[~defined] = remaining / undefined

    return normalize_widths(widths).tolist()


def organize_column_rows(
    column_ids: Sequence[str],
    styles: Optional[Mapping[str, Style]] = None,
) -> List[List[str]]:
    """
    Greedily pack columns into bands whose width hints fit in 100%.

    Unhinted columns count as an even share of the row. A band is closed when
    the next column would push it past 100% and it already holds a column, so
    an over-wide column still gets a band of its own.
    """
    if not column_ids:
        return []

    even_share = 1.0 / len(column_ids)
    bands: List[List[str]] = []
    current: List[str] = []
    cumulative = 0.0

    for column_id in column_ids:
        hint = width_hint(styles, column_id)
        width = hint / 100.0 if hint is not None else even_share

        if current and cumulative + width > 1.0 + BAND_EPSILON:
            bands.append(current)
            current = []
            cumulative = 0.0

        current.append(column_id)
        cumulative += width

    if current:
        bands.append(current)
    return bands


def arrange_grid(items: Sequence[T], columns: int) -> List[List[Optional[T]]]:
    """Place items row-major into rows of `columns` cells, padding the last row with None."""
    columns = max(1, columns)
    rows: List[List[Optional[T]]] = []
    for start in range(0, len(items), columns):
        row: List[Optional[T]] = list(items[start:start + columns])
        row.extend([None] * (columns - len(row)))
        rows.append(row)
    return rows


# ============================================================================
# LAYOUT PLAN
# ============================================================================

@dataclass(frozen=True)
class CellPlan:
    """One cell: its text, text style and box."""
    column_id: str
    text: str
    style: ResolvedStyle
    box: CellBox


@dataclass(frozen=True)
class BandPlan:
    """One header or data line of a column band."""
    column_ids: Tuple[str, ...]
    widths: Tuple[float, ...]
    cells: Tuple[CellPlan, ...]


@dataclass(frozen=True)
class NestedRowsPlan:
    """Sub-table rows for one nested section under one parent row."""
    source_field: str
    indentation: float
    outer_widths: Tuple[float, ...]
    rows: Tuple["RowPlan", ...]

    @property
    def is_banded(self) -> bool:
        return bool(self.rows) and len(self.rows[0].bands) > 1


@dataclass(frozen=True)
class RowPlan:
    """A data row: its bands followed by the nested sub-tables expanded under it."""
    index: int
    background: Optional[Color]
    bands: Tuple[BandPlan, ...]
    nested: Tuple[NestedRowsPlan, ...] = ()


@dataclass(frozen=True)
class NestedHeaderPlan:
    """Header band announcing the columns of a nested section."""
    source_field: str
    level: int
    color: Color
    indentation: float
    title: Optional[str]
    title_style: ResolvedStyle
    outer_widths: Tuple[float, ...]
    bands: Tuple[BandPlan, ...]

    @property
    def is_banded(self) -> bool:
        return len(self.bands) > 1


@dataclass(frozen=True)
class TablePlan:
    """Immutable layout of a whole table section, built before any painting."""
    column_bands: Tuple[Tuple[str, ...], ...]
    header_bands: Tuple[BandPlan, ...]
    nested_headers: Tuple[NestedHeaderPlan, ...]
    rows: Tuple[RowPlan, ...]

    @property
    def is_banded(self) -> bool:
        """True when the columns wrap onto more than one band."""
        return len(self.column_bands) > 1

    @property
    def outer_widths(self) -> Tuple[float, ...]:
        """Column widths of the outermost table."""
        if self.is_banded:
            return (1.0,)
        return self.header_bands[0].widths

    @property
    def span(self) -> int:
        return len(self.outer_widths)


@dataclass(frozen=True)
class Diagnostic:
    """One-line message rendered in place of content that cannot be laid out."""
    message: str


TABLE_DATA_MISSING = "Table data not provided"


class LayoutEngine:
    """
    Builds TablePlans from sections.

    Holds only read-only configuration, so one instance can serve concurrent
    report generation calls.
    """

    def __init__(self, config: Optional[RenderConfig] = None, resolver: Optional[StyleResolver] = None):
        self.config = config or RenderConfig()
        self.resolver = resolver or self.config.resolver()
        self.primary_color = self.resolver.parse_color(self.config.primary_color) or self.resolver.defaults.font_color
        self.header_text_color = self.resolver.parse_color(self.config.header_text_color)
        self.default_alternate_color = self.resolver.parse_color(self.config.default_alternate_row_color)

    # ------------------------------------------------------------------
    # Colors and styles
    # ------------------------------------------------------------------

    def header_color(self, level: int) -> Color:
        return header_color_for_level(self.primary_color, level)

    def alternate_color(self, enabled: bool, color: Optional[str]) -> Optional[Color]:
        """Alternate row background, or None when alternation is disabled."""
        if not enabled:
            return None
        return self.resolver.parse_color(color) or self.default_alternate_color

    @staticmethod
    def row_background(index: int, alternate: Optional[Color]) -> Optional[Color]:
        """Odd 0-based rows get the alternate color; even rows get none."""
        if alternate is not None and index % 2 == 1:
            return alternate
        return None

    def header_style(self, column_style: Optional[Style]) -> ResolvedStyle:
        """Header text style: bold, header text color, column alignment and size."""
        base = Style(
            bold=True,
            font_color=self.config.header_text_color,
            padding=self.config.header_padding,
        )
        overrides = None
        if column_style is not None:
            overrides = Style(
                alignment=column_style.alignment,
                italic=column_style.italic,
                font_size=column_style.font_size,
                padding=column_style.padding,
                border=column_style.border,
            )
        return self.resolver.resolve(StyleResolver.merge(base, overrides))

    def title_style(self, style: Optional[Style], font_size: float) -> ResolvedStyle:
        base = Style(bold=True, font_size=font_size, font_color=self.config.primary_color)
        return self.resolver.resolve(StyleResolver.merge(base, style))

    # ------------------------------------------------------------------
    # Bands
    # ------------------------------------------------------------------

    def header_band(
        self,
        column_ids: Sequence[str],
        titles: Mapping[str, str],
        styles: Mapping[str, Style],
        color: Color,
    ) -> BandPlan:
        widths = compute_column_widths(column_ids, styles)
        cells = []
        for column_id in column_ids:
            style = self.header_style(styles.get(column_id))
            box = CellBox.uniform(
                style.padding, background=color, border=style.has_border, valign="MIDDLE"
            )
            cells.append(CellPlan(column_id, titles.get(column_id, column_id), style, box))
        return BandPlan(tuple(column_ids), tuple(widths), tuple(cells))

    def data_band(
        self,
        column_ids: Sequence[str],
        row: Mapping[str, Any],
        styles: Mapping[str, Style],
        background: Optional[Color],
        extra_left: float = 0.0,
        gap: float = 0.0,
    ) -> BandPlan:
        widths = compute_column_widths(column_ids, styles)
        cells = []
        for column_id in column_ids:
            column_style = styles.get(column_id)
            style = self.resolver.resolve(column_style)
            text = self.resolver.format(row.get(column_id, ""), column_style)
            # Column background wins over the alternating row color
            cell_background = style.background_color or background
            box = CellBox.uniform(style.padding, background=cell_background, border=style.has_border)
            box = box.with_extra_padding(left=extra_left + gap / 2.0, right=gap / 2.0)
            cells.append(CellPlan(column_id, text, style, box))
        return BandPlan(tuple(column_ids), tuple(widths), tuple(cells))

    # ------------------------------------------------------------------
    # Nested sections
    # ------------------------------------------------------------------

    def nested_header(self, nested: NestedSection, level: int) -> NestedHeaderPlan:
        color = self.header_color(level)
        column_bands = organize_column_rows(nested.column_ids(), nested.column_styles)
        bands = tuple(
            self.header_band(band, nested.columns, nested.column_styles, color)
            for band in column_bands
        )
        title_style = self.resolver.resolve(StyleResolver.merge(
            Style(bold=True, font_size=self.config.nested_title_font_size,
                  font_color=self.config.header_text_color, padding=self.config.header_padding),
            nested.title_style,
        ))
        return NestedHeaderPlan(
            source_field=nested.source_field,
            level=level,
            color=color,
            indentation=nested.indentation,
            title=nested.title or None,
            title_style=title_style,
            outer_widths=self._outer_widths(bands),
            bands=bands,
        )

    def expand_nested(
        self,
        row: Mapping[str, Any],
        nested_sections: Sequence[NestedSection],
    ) -> Tuple[NestedRowsPlan, ...]:
        """
        Plan the sub-tables expanded under one parent row.

        Nested sections whose source field is missing, not a list, or empty
        are skipped without a diagnostic.
        """
        plans = []
        for nested in nested_sections:
            nested_rows = nested.rows_for(row)
            if not nested_rows or not nested.columns:
                continue

            column_bands = organize_column_rows(nested.column_ids(), nested.column_styles)
            alternate = self.alternate_color(nested.use_alternate_row_color, nested.alternate_row_color)
            rows = []
            for index, nested_row in enumerate(nested_rows):
                background = self.row_background(index, alternate)
                bands = tuple(
                    self.data_band(
                        band, nested_row, nested.column_styles, background,
                        extra_left=self.config.nested_row_extra_padding,
                        gap=nested.column_gap,
                    )
                    for band in column_bands
                )
                rows.append(RowPlan(index=index, background=background, bands=bands))

            plans.append(NestedRowsPlan(
                source_field=nested.source_field,
                indentation=nested.indentation,
                outer_widths=self._outer_widths(rows[0].bands),
                rows=tuple(rows),
            ))
        return tuple(plans)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def plan_table(self, section: Section) -> Union[TablePlan, Diagnostic]:
        """
        Lay out a table section.

        Returns a Diagnostic instead of a plan when the section has no
        columns or no data rows.
        """
        if not section.has_table_data():
            logger.debug("Section %r has no table data", section.title)
            return Diagnostic(TABLE_DATA_MISSING)

        column_bands = organize_column_rows(section.column_ids(), section.column_styles)
        primary = self.header_color(0)
        header_bands = tuple(
            self.header_band(band, section.columns, section.column_styles, primary)
            for band in column_bands
        )

        # Nested header levels follow the position in the nested list
        nested_headers = tuple(
            self.nested_header(nested, level)
            for level, nested in enumerate(section.nested_sections, start=1)
            if nested.show_headers and nested.columns
        )

        alternate = self.alternate_color(section.use_alternate_row_color, section.alternate_row_color)
        rows = []
        for index, row in enumerate(section.data):
            background = self.row_background(index, alternate)
            bands = tuple(
                self.data_band(band, row, section.column_styles, background)
                for band in column_bands
            )
            nested = self.expand_nested(row, section.nested_sections)
            rows.append(RowPlan(index=index, background=background, bands=bands, nested=nested))

        return TablePlan(
            column_bands=tuple(tuple(band) for band in column_bands),
            header_bands=header_bands,
            nested_headers=nested_headers,
            rows=tuple(rows),
        )

    @staticmethod
    def _outer_widths(bands: Sequence[BandPlan]) -> Tuple[float, ...]:
        if len(bands) == 1:
            return bands[0].widths
        return (1.0,)
