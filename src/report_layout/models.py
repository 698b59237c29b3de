"""Report description model: sections, nested sections, groups and page settings."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from reportlab.lib.pagesizes import A3, A4, A5, LEGAL, LETTER, landscape

from .errors import ReportValidationError
from .styles import Style

logger = logging.getLogger(__name__)


DEFAULT_ALTERNATE_ROW_COLOR = "#F5F5F5"
DEFAULT_NESTED_ALTERNATE_ROW_COLOR = "#F9F9F9"
DEFAULT_INDENTATION = 20.0
DEFAULT_COLUMN_GAP = 5.0

PAGE_SIZES = {
    "A3": A3,
    "A4": A4,
    "A5": A5,
    "LETTER": LETTER,
    "LEGAL": LEGAL,
}


class SectionType(Enum):
    """Kinds of content a section can hold."""
    TABLE = "table"
    TEXT = "text"
    CHART = "chart"  # Placeholder only
    IMAGE = "image"  # Placeholder only

    @classmethod
    def parse(cls, tag: Optional[str]) -> Optional["SectionType"]:
        """Map a type tag to a SectionType, or None when the tag is unknown."""
        if not tag:
            return None
        try:
            return cls(str(tag).strip().lower())
        except ValueError:
            return None


# ============================================================================
# JSON FIELD HELPERS
# ============================================================================

def _mapping(data: Any, path: str, required: bool = False) -> Dict[str, Any]:
    if data is None:
        if required:
            raise ReportValidationError("is required", path)
        return {}
    if not isinstance(data, Mapping):
        raise ReportValidationError("must be an object", path)
    return dict(data)


def _list(data: Any, path: str) -> List[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ReportValidationError("must be an array", path)
    return data


def _text_map(data: Any, path: str) -> Dict[str, str]:
    """Ordered id -> text mapping (column maps, header/footer data)."""
    return {
        str(key): "" if value is None else str(value)
        for key, value in _mapping(data, path).items()
    }


def _style_map(data: Any, path: str) -> Dict[str, Style]:
    styles = {}
    for key, value in _mapping(data, path).items():
        style = Style.from_dict(value)
        if style is not None:
            styles[str(key)] = style
    return styles


def _rows(data: Any, path: str) -> List[Dict[str, Any]]:
    rows = []
    for index, row in enumerate(_list(data, path)):
        if row is None:
            continue
        if not isinstance(row, Mapping):
            raise ReportValidationError("rows must be objects", f"{path}[{index}]")
        rows.append(dict(row))
    return rows


def _number(data: Mapping[str, Any], key: str, default: Optional[float], path: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReportValidationError("must be a number", f"{path}.{key}")
    return float(value)


def _flag(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    return bool(value)


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value)


# ============================================================================
# MODEL
# ============================================================================

@dataclass
class NestedSection:
    """Sub-table rendered under each parent row from a list-valued row field."""
    source_field: str
    columns: Dict[str, str] = field(default_factory=dict)
    column_styles: Dict[str, Style] = field(default_factory=dict)
    title: Optional[str] = None
    title_style: Optional[Style] = None
    indentation: float = DEFAULT_INDENTATION  # Points
    show_headers: bool = False
    use_alternate_row_color: bool = False
    alternate_row_color: Optional[str] = DEFAULT_NESTED_ALTERNATE_ROW_COLOR
    column_gap: float = DEFAULT_COLUMN_GAP  # Points

    @classmethod
    def from_dict(cls, data: Any, path: str = "nestedSections") -> "NestedSection":
        data = _mapping(data, path, required=True)
        source_field = data.get("sourceField")
        if not source_field or not isinstance(source_field, str):
            raise ReportValidationError("is required", f"{path}.sourceField")

        alternate = DEFAULT_NESTED_ALTERNATE_ROW_COLOR
        if "alternateRowColor" in data:
            alternate = _optional_text(data, "alternateRowColor")

        return cls(
            source_field=source_field,
            columns=_text_map(data.get("columns"), f"{path}.columns"),
            column_styles=_style_map(data.get("columnStyles"), f"{path}.columnStyles"),
            title=_optional_text(data, "title"),
            title_style=Style.from_dict(data.get("titleStyle")),
            indentation=_number(data, "indentation", DEFAULT_INDENTATION, path),
            show_headers=_flag(data, "showHeaders", False),
            use_alternate_row_color=_flag(data, "useAlternateRowColor", False),
            alternate_row_color=alternate,
            column_gap=_number(data, "columnGap", DEFAULT_COLUMN_GAP, path),
        )

    def column_ids(self) -> List[str]:
        return list(self.columns.keys())

    def column_titles(self) -> List[str]:
        return list(self.columns.values())

    def column_title(self, column_id: str) -> str:
        """Display title for a column, or the id itself when it is not mapped."""
        return self.columns.get(column_id, column_id)

    def rows_for(self, row: Mapping[str, Any]) -> Optional[List[Mapping[str, Any]]]:
        """
        Nested rows stored in a parent row.

        Returns None when the source field is absent or not list-shaped.
        Entries that are not objects are dropped.
        """
        value = row.get(self.source_field)
        if not isinstance(value, (list, tuple)):
            return None
        return [item for item in value if isinstance(item, Mapping)]


@dataclass
class Section:
    """One content block of a report."""
    type: str
    title: Optional[str] = None
    columns: Dict[str, str] = field(default_factory=dict)
    data: List[Dict[str, Any]] = field(default_factory=list)
    column_styles: Dict[str, Style] = field(default_factory=dict)
    content: Optional[str] = None
    nested_sections: List[NestedSection] = field(default_factory=list)
    title_style: Optional[Style] = None
    use_alternate_row_color: bool = False
    alternate_row_color: Optional[str] = DEFAULT_ALTERNATE_ROW_COLOR

    @classmethod
    def from_dict(cls, data: Any, path: str = "sections") -> "Section":
        data = _mapping(data, path, required=True)
        section_type = data.get("type")
        if not section_type or not isinstance(section_type, str):
            raise ReportValidationError("is required", f"{path}.type")

        alternate = DEFAULT_ALTERNATE_ROW_COLOR
        if "alternateRowColor" in data:
            alternate = _optional_text(data, "alternateRowColor")

        nested = [
            NestedSection.from_dict(item, f"{path}.nestedSections[{i}]")
            for i, item in enumerate(_list(data.get("nestedSections"), f"{path}.nestedSections"))
        ]

        return cls(
            type=section_type,
            title=_optional_text(data, "title"),
            columns=_text_map(data.get("columns"), f"{path}.columns"),
            data=_rows(data.get("data"), f"{path}.data"),
            column_styles=_style_map(data.get("columnStyles"), f"{path}.columnStyles"),
            content=_optional_text(data, "content"),
            nested_sections=nested,
            title_style=Style.from_dict(data.get("titleStyle")),
            use_alternate_row_color=_flag(data, "useAlternateRowColor", False),
            alternate_row_color=alternate,
        )

    @property
    def section_type(self) -> Optional[SectionType]:
        return SectionType.parse(self.type)

    def column_ids(self) -> List[str]:
        return list(self.columns.keys())

    def column_titles(self) -> List[str]:
        return list(self.columns.values())

    def column_title(self, column_id: str) -> str:
        """Display title for a column, or the id itself when it is not mapped."""
        return self.columns.get(column_id, column_id)

    def has_table_data(self) -> bool:
        return bool(self.columns) and bool(self.data)


@dataclass
class SectionGroup:
    """Sections laid out together, stacked or side by side in a grid."""
    sections: List[Section] = field(default_factory=list)
    columns: Optional[int] = None  # None/0/1 = stacked full width; >1 = grid
    column_gap: float = DEFAULT_COLUMN_GAP
    group_id: Optional[str] = None
    title: Optional[str] = None
    title_style: Optional[Style] = None
    margin_top: float = 0.0
    margin_bottom: float = 0.0

    @classmethod
    def from_dict(cls, data: Any, path: str = "sectionGroups") -> "SectionGroup":
        data = _mapping(data, path, required=True)
        columns = data.get("columns")
        if columns is not None and (isinstance(columns, bool) or not isinstance(columns, int)):
            raise ReportValidationError("must be an integer", f"{path}.columns")

        sections = [
            Section.from_dict(item, f"{path}.sections[{i}]")
            for i, item in enumerate(_list(data.get("sections"), f"{path}.sections"))
        ]
        return cls(
            sections=sections,
            columns=columns,
            column_gap=_number(data, "columnGap", DEFAULT_COLUMN_GAP, path),
            group_id=_optional_text(data, "groupId"),
            title=_optional_text(data, "title"),
            title_style=Style.from_dict(data.get("titleStyle")),
            margin_top=_number(data, "marginTop", 0.0, path),
            margin_bottom=_number(data, "marginBottom", 0.0, path),
        )

    @property
    def is_grid(self) -> bool:
        return self.columns is not None and self.columns > 1

    def grid_rows(self) -> List[List[Optional[Section]]]:
        """Sections in row-major rows of `columns` cells; the last row is padded with None."""
        width = self.columns if self.is_grid else 1
        rows = []
        for start in range(0, len(self.sections), width):
            row: List[Optional[Section]] = list(self.sections[start:start + width])
            row.extend([None] * (width - len(row)))
            rows.append(row)
        return rows


@dataclass
class HeaderConfig:
    """Label/value block rendered under the report title."""
    data: Dict[str, str] = field(default_factory=dict)
    styles: Dict[str, Style] = field(default_factory=dict)
    columns: Optional[int] = None
    label_format: Optional[str] = None
    bold_keys: bool = True
    padding_top: float = 0.0
    padding_right: float = 0.0
    padding_bottom: float = 0.0
    padding_left: float = 0.0
    use_background: bool = False
    background_color: str = "#EEEEEE"

    @classmethod
    def from_dict(cls, data: Any, path: str = "headerConfig") -> "HeaderConfig":
        data = _mapping(data, path)
        columns = data.get("columns")
        if columns is not None and (isinstance(columns, bool) or not isinstance(columns, int)):
            raise ReportValidationError("must be an integer", f"{path}.columns")
        return cls(
            data=_text_map(data.get("data"), f"{path}.data"),
            styles=_style_map(data.get("styles"), f"{path}.styles"),
            columns=columns,
            label_format=_optional_text(data, "labelFormat"),
            bold_keys=_flag(data, "boldKeys", True),
            padding_top=_number(data, "paddingTop", 0.0, path),
            padding_right=_number(data, "paddingRight", 0.0, path),
            padding_bottom=_number(data, "paddingBottom", 0.0, path),
            padding_left=_number(data, "paddingLeft", 0.0, path),
            use_background=_flag(data, "useBackground", False),
            background_color=_optional_text(data, "backgroundColor") or "#EEEEEE",
        )

    def column_count(self, default: int = 3) -> int:
        if self.columns is not None and self.columns > 0:
            return self.columns
        return default

    def split_label(
        self, key: str, value: str, default_format: str = "%s: %s"
    ) -> Tuple[str, str, str, str, str]:
        """
        Split the label format around its two %s placeholders.

        default_format applies when the header sets no format of its own.
        Returns (before, key, between, value, after). Formats without two
        placeholders fall back to "key: value".
        """
        fmt = self.label_format or default_format
        first = fmt.find("%s")
        second = fmt.find("%s", first + 2) if first >= 0 else -1
        if first < 0 or second < 0:
            return ("", key, ": ", value, "")
        return (fmt[:first], key, fmt[first + 2:second], value, fmt[second + 2:])


@dataclass
class PageSettings:
    """Page size, orientation, margins, compression and document metadata."""
    page_size: str = "A4"
    orientation: str = "PORTRAIT"
    margin_left: float = 8.0
    margin_right: float = 8.0
    margin_top: float = 8.0
    margin_bottom: float = 2.0
    compress_content: bool = True
    document_title: Optional[str] = None
    author: str = "PDF Service"
    creator: str = "PDF Microservice"

    @classmethod
    def from_dict(cls, data: Any, path: str = "pdfSettings") -> "PageSettings":
        data = _mapping(data, path)
        return cls(
            page_size=(_optional_text(data, "pageSize") or "A4").upper(),
            orientation=(_optional_text(data, "orientation") or "PORTRAIT").upper(),
            margin_left=_number(data, "marginLeft", 8.0, path),
            margin_right=_number(data, "marginRight", 8.0, path),
            margin_top=_number(data, "marginTop", 8.0, path),
            margin_bottom=_number(data, "marginBottom", 2.0, path),
            compress_content=_flag(data, "compressContent", True),
            document_title=_optional_text(data, "documentTitle"),
            author=_optional_text(data, "author") or "PDF Service",
            creator=_optional_text(data, "creator") or "PDF Microservice",
        )

    @property
    def is_landscape(self) -> bool:
        return self.orientation == "LANDSCAPE"

    def pagesize(self) -> Tuple[float, float]:
        """ReportLab page size tuple, rotated for landscape. Unknown sizes use A4."""
        size = PAGE_SIZES.get(self.page_size.upper(), A4)
        if self.is_landscape:
            return landscape(size)
        return size

    @property
    def content_width(self) -> float:
        return self.pagesize()[0] - self.margin_left - self.margin_right


@dataclass
class ReportData:
    """A complete report description."""
    report_type: str
    title: str
    header_config: Optional[HeaderConfig] = None
    footer_data: Dict[str, str] = field(default_factory=dict)
    sections: List[Section] = field(default_factory=list)
    section_groups: List[SectionGroup] = field(default_factory=list)
    additional_data: Dict[str, Any] = field(default_factory=dict)
    page_settings: Optional[PageSettings] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ReportData":
        """Build and validate a report from its decoded JSON form."""
        if not isinstance(data, Mapping):
            raise ReportValidationError("report payload must be a JSON object")

        report_type = data.get("reportType")
        if not isinstance(report_type, str) or not report_type.strip():
            raise ReportValidationError("must not be blank", "reportType")
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ReportValidationError("must not be blank", "title")

        header_config = None
        if data.get("headerConfig") is not None:
            header_config = HeaderConfig.from_dict(data["headerConfig"])

        page_settings = None
        if data.get("pdfSettings") is not None:
            page_settings = PageSettings.from_dict(data["pdfSettings"])

        sections = [
            Section.from_dict(item, f"sections[{i}]")
            for i, item in enumerate(_list(data.get("sections"), "sections"))
        ]
        groups = [
            SectionGroup.from_dict(item, f"sectionGroups[{i}]")
            for i, item in enumerate(_list(data.get("sectionGroups"), "sectionGroups"))
        ]

        return cls(
            report_type=report_type,
            title=title,
            header_config=header_config,
            footer_data=_text_map(data.get("footerData"), "footerData"),
            sections=sections,
            section_groups=groups,
            additional_data=_mapping(data.get("additionalData"), "additionalData"),
            page_settings=page_settings,
        )

    @classmethod
    def from_json(cls, text: str) -> "ReportData":
        """Parse a JSON document. Unparseable JSON is a validation error."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ReportValidationError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)

    def groups(self) -> List[SectionGroup]:
        """
        Top-level layout units.

        Section groups win when present; flat sections become one implicit
        single-column group.
        """
        if self.section_groups:
            if self.sections:
                logger.debug("Both sections and sectionGroups given; rendering sectionGroups")
            return self.section_groups
        return [SectionGroup(sections=list(self.sections), columns=1)]

    def all_sections(self) -> List[Section]:
        """Every section of the report, flat ones first, then group members."""
        result = list(self.sections)
        for group in self.section_groups:
            result.extend(group.sections)
        return result
