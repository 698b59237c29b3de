"""Style descriptors, style resolution, color parsing and cell value formatting."""

import logging
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from decimal import Decimal
from numbers import Number
from typing import Any, Dict, Mapping, Optional, Tuple

from reportlab.lib.colors import Color

logger = logging.getLogger(__name__)


ALIGNMENTS = ("left", "center", "right", "justified")
BORDERS = ("none", "solid")
FORMATS = ("currency", "percentage", "number", "integer", "date", "none")

# Fixed set of color names accepted in style descriptors
DEFAULT_NAMED_COLORS: Dict[str, str] = {
    "red": "#FF0000",
    "green": "#00FF00",
    "blue": "#0000FF",
    "black": "#000000",
    "white": "#FFFFFF",
    "gray": "#808080",
}

# Per-level lightening step for nested header colors
HEADER_LIGHTEN_STEP = 0.25


@dataclass(frozen=True)
class NumberLocale:
    """Separators and symbols used when formatting numeric cell values."""
    name: str
    decimal_separator: str
    thousands_separator: str
    currency_symbol: str
    date_format: str


NUMBER_LOCALES: Dict[str, NumberLocale] = {
    "pt_BR": NumberLocale("pt_BR", ",", ".", "R$", "%d/%m/%Y"),
    "en_US": NumberLocale("en_US", ".", ",", "$", "%m/%d/%Y"),
    "de_DE": NumberLocale("de_DE", ",", ".", "€", "%d.%m.%Y"),
}


def get_number_locale(name: str) -> NumberLocale:
    """Get a number locale by name, with fallback to pt_BR."""
    if name in NUMBER_LOCALES:
        return NUMBER_LOCALES[name]
    logger.warning("Unknown locale %r, falling back to pt_BR", name)
    return NUMBER_LOCALES["pt_BR"]


def _optional_float(value: Any, key: str) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    try:
        return float(str(value))
    except ValueError:
        logger.debug("Ignoring non-numeric style value %s=%r", key, value)
        return None


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _optional_tag(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


@dataclass(frozen=True)
class Style:
    """A style descriptor as sent by the caller. Every field is optional."""
    alignment: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    font_size: Optional[float] = None
    font_color: Optional[str] = None
    background_color: Optional[str] = None
    padding: Optional[float] = None
    border: Optional[str] = None
    format: Optional[str] = None
    width: Optional[float] = None  # Percent of the row (0-100)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["Style"]:
        """Build a style from its JSON form. Unparseable values are left unset."""
        if data is None:
            return None
        if not isinstance(data, Mapping):
            logger.debug("Ignoring style that is not an object: %r", data)
            return None
        return cls(
            alignment=_optional_tag(data.get("alignment")),
            bold=_optional_bool(data.get("bold")),
            italic=_optional_bool(data.get("italic")),
            font_size=_optional_float(data.get("fontSize"), "fontSize"),
            font_color=data.get("fontColor"),
            background_color=data.get("backgroundColor"),
            padding=_optional_float(data.get("padding"), "padding"),
            border=_optional_tag(data.get("border")),
            format=_optional_tag(data.get("format")),
            width=_optional_float(data.get("width"), "width"),
        )


@dataclass(frozen=True)
class ResolvedStyle:
    """A style with every field filled in."""
    alignment: str
    bold: bool
    italic: bool
    font_size: float
    font_color: Color
    background_color: Optional[Color]
    padding: float
    border: str
    format: str
    width: Optional[float]
    font_family: str = "Helvetica"

    @property
    def font_name(self) -> str:
        return font_name(self.font_family, self.bold, self.italic)

    @property
    def has_border(self) -> bool:
        return self.border == "solid"


@dataclass(frozen=True)
class CellBox:
    """Box properties of a table cell: background, paddings and rules."""
    background: Optional[Color] = None
    padding: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)  # top, right, bottom, left
    border: bool = False
    top_rule: bool = False
    valign: str = "TOP"

    @classmethod
    def uniform(cls, padding: float, **kwargs) -> "CellBox":
        return cls(padding=(padding, padding, padding, padding), **kwargs)

    @property
    def horizontal_padding(self) -> float:
        return self.padding[1] + self.padding[3]

    def with_extra_padding(self, left: float = 0.0, right: float = 0.0) -> "CellBox":
        top, cur_right, bottom, cur_left = self.padding
        return replace(self, padding=(top, cur_right + right, bottom, cur_left + left))


def font_name(font_family: str, bold: bool, italic: bool) -> str:
    """Get the standard font variant for a family and weight/slant combination."""
    if font_family == "Times-Roman":
        if bold and italic:
            return "Times-BoldItalic"
        if bold:
            return "Times-Bold"
        if italic:
            return "Times-Italic"
        return "Times-Roman"
    if bold and italic:
        return f"{font_family}-BoldOblique"
    if bold:
        return f"{font_family}-Bold"
    if italic:
        return f"{font_family}-Oblique"
    return font_family


def parse_hex_color(text: Optional[str]) -> Optional[Color]:
    """Parse a #RRGGBB string. Returns None for anything else."""
    if not text or not isinstance(text, str):
        return None
    text = text.strip()
    if not text.startswith("#") or len(text) != 7:
        return None
    try:
        r = int(text[1:3], 16)
        g = int(text[3:5], 16)
        b = int(text[5:7], 16)
    except ValueError:
        return None
    return Color(r / 255.0, g / 255.0, b / 255.0)


def color_to_rgb255(color: Color) -> Tuple[int, int, int]:
    return (
        int(round(color.red * 255)),
        int(round(color.green * 255)),
        int(round(color.blue * 255)),
    )


def header_color_for_level(primary: Color, level: int) -> Color:
    """
    Header background for a nesting level.

    Level 0 is the primary color; each further level moves every RGB channel
    toward white by level * 0.25, clamped at white.
    """
    if level <= 0:
        return primary

    factor = level * HEADER_LIGHTEN_STEP
    channels = []
    for value in color_to_rgb255(primary):
        channels.append(min(255, int(value + (255 - value) * factor)))
    r, g, b = channels
    return Color(r / 255.0, g / 255.0, b / 255.0)


def _group_digits(digits: str, separator: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return separator.join(groups)


class StyleResolver:
    """Fills style descriptors with defaults and formats cell values."""

    def __init__(
        self,
        defaults: ResolvedStyle,
        number_locale: NumberLocale,
        named_colors: Optional[Dict[str, Color]] = None,
    ):
        self.defaults = defaults
        self.number_locale = number_locale
        if named_colors is None:
            named_colors = {
                name: parse_hex_color(value) for name, value in DEFAULT_NAMED_COLORS.items()
            }
        self.named_colors = named_colors

    def parse_color(self, text: Optional[str]) -> Optional[Color]:
        """Parse #RRGGBB or a named color. Invalid input yields None."""
        if not text or not isinstance(text, str):
            return None
        if text.strip().startswith("#"):
            color = parse_hex_color(text)
        else:
            color = self.named_colors.get(text.strip().lower())
        if color is None:
            logger.debug("Unparseable color %r, keeping default", text)
        return color

    def resolve(self, style: Optional[Style] = None) -> ResolvedStyle:
        """Return a ResolvedStyle with every unset field taken from the defaults."""
        base = self.defaults
        if style is None:
            return base

        alignment = style.alignment if style.alignment in ALIGNMENTS else base.alignment
        border = style.border if style.border in BORDERS else base.border
        font_color = self.parse_color(style.font_color) or base.font_color
        background = self.parse_color(style.background_color) or base.background_color

        return ResolvedStyle(
            alignment=alignment,
            bold=base.bold if style.bold is None else style.bold,
            italic=base.italic if style.italic is None else style.italic,
            font_size=style.font_size if style.font_size and style.font_size > 0 else base.font_size,
            font_color=font_color,
            background_color=background,
            padding=style.padding if style.padding is not None and style.padding >= 0 else base.padding,
            border=border,
            format=style.format or base.format,
            width=style.width if style.width is not None else base.width,
            font_family=base.font_family,
        )

    @staticmethod
    def merge(base: Optional[Style], override: Optional[Style]) -> Optional[Style]:
        """Overlay the set fields of override on top of base."""
        if base is None:
            return override
        if override is None:
            return base
        changes = {
            f.name: getattr(override, f.name)
            for f in fields(Style)
            if getattr(override, f.name) is not None
        }
        return replace(base, **changes)

    def format(self, value: Any, style: Optional[Style] = None) -> str:
        """Render a raw cell value as text according to the style's format tag."""
        if value is None:
            return ""

        tag = style.format if style is not None else None
        if not tag or tag == "none":
            return str(value)

        try:
            if tag == "currency":
                if not self._is_number(value):
                    return str(value)
                symbol = self.number_locale.currency_symbol
                return f"{symbol} {self.format_number(value, 2)}"
            if tag == "percentage":
                if not self._is_number(value):
                    return str(value)
                return f"{self.format_number(value, 2)}%"
            if tag == "number":
                if not self._is_number(value):
                    return str(value)
                return self.format_number(value, 2)
            if tag == "integer":
                if not self._is_number(value):
                    return str(value)
                return str(int(value))
            if tag == "date":
                return self._format_date(value)
        except (ValueError, TypeError, ArithmeticError) as exc:
            logger.debug("Formatting %r as %s failed: %s", value, tag, exc)
            return str(value)

        # Unknown format tag
        return str(value)

    def format_number(self, value: Any, decimals: int) -> str:
        """Format a number with the configured locale's separators."""
        text = f"{float(value):.{decimals}f}"
        negative = text.startswith("-")
        if negative:
            text = text[1:]
        if "." in text:
            integer_part, fraction = text.split(".")
        else:
            integer_part, fraction = text, ""

        grouped = _group_digits(integer_part, self.number_locale.thousands_separator)
        result = grouped
        if fraction:
            result = f"{grouped}{self.number_locale.decimal_separator}{fraction}"
        return f"-{result}" if negative else result

    def _format_date(self, value: Any) -> str:
        if isinstance(value, (date, datetime)):
            return value.strftime(self.number_locale.date_format)
        if isinstance(value, str):
            try:
                parsed = date.fromisoformat(value[:10])
            except ValueError:
                return value
            return parsed.strftime(self.number_locale.date_format)
        return str(value)

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, Number) and not isinstance(value, bool)

