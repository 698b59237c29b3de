"""PDF rendering of report descriptions using ReportLab Platypus."""

import logging
from datetime import datetime
from functools import partial
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional

from reportlab.lib.colors import black
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Flowable, SimpleDocTemplate

from .config import RenderConfig
from .errors import ReportGenerationError
from .layout_engine import LayoutEngine
from .models import PageSettings, ReportData
from .renderers import (
    FooterRenderer, HeaderRenderer, PageFooter, SectionDispatcher, SectionGroupRenderer,
)
from .surfaces import FlowSurface

logger = logging.getLogger(__name__)


# SimpleDocTemplate's frame keeps this much padding on each side
FRAME_PADDING = 6.0
# Page decoration placement (points)
FOOTER_Y = 15.0
FOOTER_MARGIN = 30.0


class PageFooterCanvas(Canvas):
    """
    Canvas that draws "Page i of n" footers.

    Page states are kept until save() so the total page count is known when
    the footer of each page is drawn.
    """

    def __init__(self, *args: Any, footer: Optional[PageFooter] = None, **kwargs: Any) -> None:
        Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states: List[Dict[str, Any]] = []
        self._footer = footer

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            if self._footer is not None:
                self._draw_footer(total_pages)
            Canvas.showPage(self)
        Canvas.save(self)

    def _draw_footer(self, total_pages: int) -> None:
        left, center, right = self._footer.texts(self._pageNumber, total_pages)
        page_width = self._pagesize[0]

        self.saveState()
        self.setFont("Helvetica", self._footer.font_size)
        self.setFillColor(black)
        self.drawString(FOOTER_MARGIN, FOOTER_Y, left)
        self.drawCentredString(page_width / 2.0, FOOTER_Y, center)
        self.drawRightString(page_width - FOOTER_MARGIN, FOOTER_Y, right)
        self.restoreState()


class ReportRenderer:
    """
    Assembles a report into a PDF document.

    Holds only read-only configuration; all per-call state lives in render().
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()
        self.engine = LayoutEngine(self.config)
        self.dispatcher = SectionDispatcher(self.engine)
        self.group_renderer = SectionGroupRenderer(self.dispatcher)
        self.header_renderer = HeaderRenderer(self.engine)
        self.footer_renderer = FooterRenderer(self.engine)

    def build_story(self, report: ReportData, width: float) -> List[Flowable]:
        """Lay the report out as a list of flowables for a frame `width` points wide."""
        surface = FlowSurface(width)

        self.header_renderer.render(surface, report)

        for group in report.groups():
            self.group_renderer.render(surface, group)

        self.footer_renderer.render(surface, report.footer_data)

        return surface.flowables()

    def page_footer(self, generated_at: Optional[datetime] = None) -> PageFooter:
        generated_at = generated_at or datetime.now()
        return PageFooter(
            system_name=self.config.system_name,
            timestamp=generated_at.strftime(self.config.timestamp_format),
            font_size=self.config.page_footer_font_size,
        )

    def render(self, report: ReportData) -> bytes:
        """
        Render a report to PDF bytes.

        Raises:
            ReportGenerationError: When ReportLab fails to build the document.
        """
        settings = report.page_settings or PageSettings()
        buffer = BytesIO()

        try:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=settings.pagesize(),
                leftMargin=settings.margin_left,
                rightMargin=settings.margin_right,
                topMargin=settings.margin_top,
                bottomMargin=settings.margin_bottom,
                title=settings.document_title or report.title,
                author=settings.author,
                creator=settings.creator,
                pageCompression=1 if settings.compress_content else 0,
            )
            story = self.build_story(report, doc.width - 2 * FRAME_PADDING)
            doc.build(
                story,
                canvasmaker=partial(PageFooterCanvas, footer=self.page_footer()),
            )
        except Exception as e:
            logger.error("PDF generation failed for %r: %s", report.title, e, exc_info=True)
            raise ReportGenerationError(f"Failed to generate PDF: {e}") from e

        pdf = buffer.getvalue()
        logger.info("Rendered %r (%d bytes)", report.title, len(pdf))
        return pdf

    def render_to_file(self, report: ReportData, path: Path) -> Path:
        """Render a report and write the PDF to path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.render(report))
        return path
