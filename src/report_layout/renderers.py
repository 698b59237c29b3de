"""Renderers that paint sections, groups, headers and footers onto surfaces."""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from xml.sax.saxutils import escape

from .layout_engine import (
    BandPlan, Diagnostic, LayoutEngine, NestedHeaderPlan, NestedRowsPlan,
    RowPlan, TablePlan, arrange_grid,
)
from .models import HeaderConfig, ReportData, Section, SectionGroup, SectionType
from .styles import CellBox, Style
from .surfaces import Surface, TableHandle

logger = logging.getLogger(__name__)


NO_TEXT_CONTENT = "No text content provided."
CHART_PLACEHOLDER = "[Chart would be displayed here]"
CHART_NOTE = "Note: chart generation requires additional libraries."
IMAGE_PLACEHOLDER = "[Image would be displayed here]"
UNSUPPORTED_SECTION = "Unsupported section type: {}"
FOOTER_HEADING = "Footer Information"


class TableSectionRenderer:
    """Paints a table section by walking its layout plan once."""

    def __init__(self, engine: LayoutEngine):
        self.engine = engine
        self.resolver = engine.resolver

    def render(self, surface: Surface, section: Section) -> None:
        plan = self.engine.plan_table(section)
        if isinstance(plan, Diagnostic):
            surface.append_paragraph(plan.message, self.resolver.resolve(None))
            return
        self.paint(surface, plan)

    def paint(self, surface: Surface, plan: TablePlan) -> None:
        table = surface.append_table(plan.outer_widths)

        for band in plan.header_bands:
            self._paint_band(table, band, header=True, direct=not plan.is_banded)

        for nested_header in plan.nested_headers:
            self._paint_nested_header(table, nested_header, plan.span)

        for row in plan.rows:
            self._paint_row(table, row, direct=not plan.is_banded, span=plan.span)

    def _paint_row(self, table: TableHandle, row: RowPlan, direct: bool, span: int) -> None:
        for band in row.bands:
            self._paint_band(table, band, header=False, direct=direct)
        # Nested rows go right under their parent row
        for nested in row.nested:
            self._paint_nested_rows(table, nested, span)

    def _paint_band(self, table: TableHandle, band: BandPlan, header: bool, direct: bool) -> None:
        """
        Paint one band of cells.

        In direct mode the band's columns are the table's columns. Otherwise
        the table has a single column and the band becomes an inner table.
        """
        add = table.add_header_cell if header else table.add_cell
        if direct:
            target = table
        else:
            holder = add(CellBox())
            target = holder.append_table(band.widths)

        add_cell = target.add_header_cell if header else target.add_cell
        for cell in band.cells:
            cell_surface = add_cell(cell.box)
            cell_surface.append_paragraph(cell.text, cell.style)

    def _paint_nested_header(self, table: TableHandle, plan: NestedHeaderPlan, span: int) -> None:
        container = table.add_header_cell(CellBox(padding=(0, 0, 0, plan.indentation)), colspan=span)

        if plan.title:
            title_box = CellBox.uniform(plan.title_style.padding, background=plan.color)
            container.append_block(title_box).append_paragraph(plan.title, plan.title_style)

        inner = container.append_table(plan.outer_widths)
        for band in plan.bands:
            self._paint_band(inner, band, header=True, direct=not plan.is_banded)

    def _paint_nested_rows(self, table: TableHandle, plan: NestedRowsPlan, span: int) -> None:
        # Each nested row is its own spanned row of the parent table
        for row in plan.rows:
            container = table.add_cell(CellBox(padding=(0, 0, 0, plan.indentation)), colspan=span)
            inner = container.append_table(plan.outer_widths, repeat_header=False)
            self._paint_row(inner, row, direct=not plan.is_banded, span=len(plan.outer_widths))


class SectionDispatcher:
    """Renders a section's title and routes its content by section type."""

    def __init__(self, engine: LayoutEngine):
        self.engine = engine
        self.config = engine.config
        self.resolver = engine.resolver
        self.table_renderer = TableSectionRenderer(engine)

    def render(self, surface: Surface, section: Section) -> None:
        if section.title:
            self.render_title(surface, section.title, section.title_style)

        section_type = section.section_type
        if section_type is SectionType.TABLE:
            self.table_renderer.render(surface, section)
        elif section_type is SectionType.TEXT:
            self.render_text(surface, section)
        elif section_type is SectionType.CHART:
            self.render_chart_placeholder(surface)
        elif section_type is SectionType.IMAGE:
            self.render_image_placeholder(surface)
        else:
            logger.warning("Unsupported section type %r", section.type)
            surface.append_paragraph(
                UNSUPPORTED_SECTION.format(section.type), self.resolver.resolve(None)
            )

    def render_title(self, surface: Surface, title: str, style: Optional[Style] = None) -> None:
        resolved = self.engine.title_style(style, self.config.section_title_font_size)
        surface.append_paragraph(title, resolved, space_before=10, space_after=5)

    def render_text(self, surface: Surface, section: Section) -> None:
        if section.content:
            surface.append_paragraph(
                section.content, self.resolver.resolve(Style(font_size=10)),
                space_before=5, space_after=5,
            )
        else:
            surface.append_paragraph(NO_TEXT_CONTENT, self.resolver.resolve(Style(font_size=10)))

    def render_chart_placeholder(self, surface: Surface) -> None:
        surface.append_paragraph(
            CHART_PLACEHOLDER, self.resolver.resolve(Style(alignment="center", font_size=10)),
            space_before=10, space_after=10,
        )
        surface.append_paragraph(CHART_NOTE, self.resolver.resolve(Style(font_size=10)))

    def render_image_placeholder(self, surface: Surface) -> None:
        surface.append_paragraph(
            IMAGE_PLACEHOLDER, self.resolver.resolve(Style(alignment="center", font_size=10)),
            space_before=10, space_after=10,
        )


class SectionGroupRenderer:
    """Renders a group of sections stacked or side by side."""

    def __init__(self, dispatcher: SectionDispatcher):
        self.dispatcher = dispatcher

    def render(self, surface: Surface, group: SectionGroup) -> None:
        surface.append_spacer(group.margin_top)

        if group.title:
            self.dispatcher.render_title(surface, group.title, group.title_style)

        if group.is_grid:
            self.render_grid(surface, group)
        else:
            for section in group.sections:
                self.dispatcher.render(surface, section)

        surface.append_spacer(group.margin_bottom)

    def render_grid(self, surface: Surface, group: SectionGroup) -> TableHandle:
        """
        Lay sections out row-major in a grid of equal columns.

        The gap between columns is split as inner padding of neighbouring
        cells. A short last row is padded with empty cells. Rows may break
        inside a cell so a long member section can run across pages.
        """
        columns = group.columns
        table = surface.append_table([1.0 / columns] * columns, repeat_header=False, split_in_row=True)
        half_gap = group.column_gap / 2.0

        for row in group.grid_rows():
            for col_index, section in enumerate(row):
                left = half_gap if col_index > 0 else 0.0
                right = half_gap if col_index < columns - 1 else 0.0
                cell = table.add_cell(CellBox(padding=(0.0, right, 0.0, left)))
                if section is not None:
                    self.dispatcher.render(cell, section)
        return table


class HeaderRenderer:
    """Renders the report title band and the label/value header grid."""

    def __init__(self, engine: LayoutEngine):
        self.engine = engine
        self.config = engine.config
        self.resolver = engine.resolver

    def render(self, surface: Surface, report: ReportData) -> None:
        title_style = self.resolver.resolve(Style(
            bold=True,
            font_size=self.config.title_font_size,
            font_color=self.config.header_text_color,
            background_color=self.config.primary_color,
            alignment="center",
        ))
        surface.append_paragraph(report.title, title_style)

        if report.header_config is not None:
            self.render_label_grid(surface, report.header_config)

    def label_markup(self, header: HeaderConfig, key: str, value: str) -> str:
        """Label text as Paragraph markup: key optionally bold, the rest plain."""
        before, key, between, value, after = header.split_label(key, value, self.config.label_format)
        key_markup = escape(key)
        if header.bold_keys:
            key_markup = f"<b>{key_markup}</b>"
        return f"{escape(before)}{key_markup}{escape(between)}{escape(value)}{escape(after)}"

    def render_label_grid(self, surface: Surface, header: HeaderConfig) -> Optional[TableHandle]:
        if not header.data:
            return None

        columns = header.column_count(self.config.header_columns)
        background = None
        if header.use_background:
            background = self.resolver.parse_color(header.background_color)
        padding = (header.padding_top, header.padding_right, header.padding_bottom, header.padding_left)

        surface.append_spacer(10)
        table = surface.append_table([1.0 / columns] * columns, repeat_header=False)
        for row in arrange_grid(list(header.data.items()), columns):
            for entry in row:
                if entry is None:
                    table.add_cell(CellBox())
                    continue
                key, value = entry
                field_style = header.styles.get(key)
                resolved = self.resolver.resolve(field_style)
                box = CellBox(
                    background=resolved.background_color or background,
                    padding=padding,
                    border=resolved.has_border,
                )
                cell = table.add_cell(box)
                cell.append_paragraph(self.label_markup(header, key, value), resolved, markup=True)
        surface.append_spacer(10)
        return table


class FooterRenderer:
    """Renders the footer label/value block at the end of the report."""

    def __init__(self, engine: LayoutEngine):
        self.engine = engine
        self.resolver = engine.resolver

    def render(self, surface: Surface, footer_data: Mapping[str, str]) -> Optional[TableHandle]:
        if not footer_data:
            return None

        surface.append_spacer(12)
        table = surface.append_table([0.5, 0.5], repeat_header=False)
        heading = table.add_cell(CellBox(padding=(2, 0, 2, 0), top_rule=True), colspan=2)
        heading.append_paragraph(FOOTER_HEADING, self.resolver.resolve(Style(alignment="center", font_size=10)))

        plain = self.resolver.resolve(Style(font_size=10))
        for key, value in footer_data.items():
            table.add_cell(CellBox()).append_paragraph(key, plain)
            table.add_cell(CellBox()).append_paragraph(value, plain)
        return table


@dataclass(frozen=True)
class PageFooter:
    """Text drawn at the bottom of every page."""
    system_name: str
    timestamp: str
    font_size: float = 6.0

    def texts(self, page_number: int, total_pages: int) -> Tuple[str, str, str]:
        """(left, center, right) texts for one page."""
        return (f"Page {page_number} of {total_pages}", self.system_name, self.timestamp)
