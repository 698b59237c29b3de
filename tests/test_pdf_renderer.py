"""
Test: ReportRenderer, covering end-to-end PDF generation on real ReportLab.
"""

from datetime import datetime

import pytest
from reportlab.platypus import Paragraph, Table

from report_layout.config import RenderConfig
from report_layout.errors import ReportGenerationError
from report_layout.models import ReportData
from report_layout.pdf_renderer import ReportRenderer
from report_layout.samples import build_sample_report


def report_from(**extra):
    payload = {"reportType": "test", "title": "Test Report"}
    payload.update(extra)
    return ReportData.from_dict(payload)


@pytest.fixture
def renderer():
    return ReportRenderer(RenderConfig(system_name="Test System"))


class TestReportRenderer:
    def test_sample_report(self, renderer):
        pdf = renderer.render(ReportData.from_dict(build_sample_report(seed=7, num_orders=8)))
        assert pdf.startswith(b"%PDF")

    def test_flat_sections(self, renderer):
        report = report_from(
            headerConfig={"data": {"Client": "ACME", "Date": "01/01/2024"}},
            sections=[
                {
                    "type": "table",
                    "title": "Prices",
                    "columns": {"name": "Name", "value": "Value"},
                    "columnStyles": {"value": {"format": "currency", "alignment": "right"}},
                    "data": [{"name": "Widget", "value": 100.0}],
                },
                {"type": "text", "content": "Some notes\nover two lines"},
                {"type": "unknown"},
            ],
            footerData={"Printed by": "Ana"},
        )
        assert renderer.render(report).startswith(b"%PDF")

    def test_grouped_sections(self, renderer):
        report = report_from(sectionGroups=[{
            "columns": 2,
            "title": "Side by side",
            "sections": [
                {"type": "table", "columns": {"a": "A"}, "data": [{"a": 1}, {"a": 2}]},
                {"type": "text", "content": "Right"},
                {"type": "chart"},
            ],
        }])
        assert renderer.render(report).startswith(b"%PDF")

    def test_nested_and_banded(self, renderer):
        columns = {f"c{i}": f"Column {i}" for i in range(8)}
        rows = [
            dict({c: f"{c}-{r}" for c in columns}, items=[{"sku": f"S{r}", "qty": r}])
            for r in range(30)
        ]
        report = report_from(
            pdfSettings={"orientation": "LANDSCAPE"},
            sections=[{
                "type": "table",
                "columns": columns,
                "columnStyles": {c: {"width": 30} for c in columns},
                "data": rows,
                "useAlternateRowColor": True,
                "nestedSections": [{
                    "sourceField": "items",
                    "title": "Items",
                    "showHeaders": True,
                    "columns": {"sku": "SKU", "qty": "Qty"},
                }],
            }],
        )
        assert renderer.render(report).startswith(b"%PDF")

    def test_multi_page_table(self, renderer):
        report = report_from(sections=[{
            "type": "table",
            "columns": {"n": "N", "square": "Square"},
            "data": [{"n": i, "square": i * i} for i in range(400)],
        }])
        assert renderer.render(report).startswith(b"%PDF")

    def test_long_nested_list_breaks_across_pages(self, renderer):
        items = [{"sku": f"SKU-{i}", "qty": i} for i in range(200)]
        report = report_from(sections=[{
            "type": "table",
            "columns": {"id": "Order", "total": "Total"},
            "data": [{"id": "1", "total": 10, "items": items}, {"id": "2", "total": 20}],
            "nestedSections": [{"sourceField": "items", "columns": {"sku": "SKU", "qty": "Qty"}}],
        }])
        assert renderer.render(report).startswith(b"%PDF")

    def test_long_table_inside_column_group(self, renderer):
        report = report_from(sectionGroups=[{
            "columns": 2,
            "sections": [
                {"type": "table", "columns": {"n": "N"}, "data": [{"n": i} for i in range(200)]},
                {"type": "text", "content": "Beside the table"},
            ],
        }])
        assert renderer.render(report).startswith(b"%PDF")

    def test_render_to_file(self, renderer, tmp_path):
        path = renderer.render_to_file(report_from(), tmp_path / "out" / "report.pdf")
        assert path.read_bytes().startswith(b"%PDF")

    def test_backend_failure_is_wrapped(self, renderer, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("backend down")

        monkeypatch.setattr(renderer, "build_story", boom)
        with pytest.raises(ReportGenerationError, match="backend down") as info:
            renderer.render(report_from())
        assert isinstance(info.value.__cause__, RuntimeError)


class TestBuildStory:
    def test_story_order(self, renderer):
        report = report_from(
            sections=[{"type": "table", "columns": {"a": "A"}, "data": [{"a": 1}]}],
            footerData={"k": "v"},
        )
        story = renderer.build_story(report, 500)

        assert isinstance(story[0], Paragraph)
        assert story[0].getPlainText() == "Test Report"
        tables = [f for f in story if isinstance(f, Table)]
        assert len(tables) == 2

    def test_header_repeats_on_page_break(self, renderer):
        report = report_from(sections=[{"type": "table", "columns": {"a": "A"}, "data": [{"a": 1}, {"a": 2}]}])
        table = [f for f in renderer.build_story(report, 500) if isinstance(f, Table)][0]
        assert table.repeatRows == 1

    def test_group_grid_rows_may_split(self, renderer):
        report = report_from(sectionGroups=[{
            "columns": 2,
            "sections": [{"type": "text", "content": "Left"}, {"type": "text", "content": "Right"}],
        }])
        grid = [f for f in renderer.build_story(report, 500) if isinstance(f, Table)][0]
        assert grid.splitInRow

    def test_page_footer_timestamp(self, renderer):
        footer = renderer.page_footer(datetime(2024, 2, 1, 9, 30, 0))
        assert footer.texts(1, 1) == ("Page 1 of 1", "Test System", "01/02/2024 09:30:00")
