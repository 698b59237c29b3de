"""Configuration dataclasses and YAML loading for the report renderer."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import yaml

from .styles import (
    ResolvedStyle, StyleResolver, get_number_locale, parse_hex_color,
    DEFAULT_NAMED_COLORS,
)


@dataclass
class RenderConfig:
    """Deployment-wide settings shared by every report generation call."""

    # Locale used for currency/number/date formatting (see styles.NUMBER_LOCALES)
    locale: str = "pt_BR"

    # Colors
    primary_color: str = "#088241"  # Title band, level-0 headers, section titles
    header_text_color: str = "#FFFFFF"
    default_alternate_row_color: str = "#F5F5F5"
    font_color: str = "#000000"

    # Typography
    font_family: str = "Helvetica"
    default_font_size: float = 8.0
    title_font_size: float = 22.0
    section_title_font_size: float = 14.0
    nested_title_font_size: float = 14.0

    # Spacing (points)
    header_padding: float = 5.0
    nested_row_extra_padding: float = 5.0

    # Header label grid
    header_columns: int = 3
    label_format: str = "%s: %s"

    # Page decoration
    system_name: str = "Report Layout Engine"
    page_footer_font_size: float = 6.0
    timestamp_format: str = "%d/%m/%Y %H:%M:%S"

    # Named colors accepted in style descriptors: {name: "#RRGGBB"}
    named_colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NAMED_COLORS))

    @classmethod
    def from_yaml(cls, path: Path) -> "RenderConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        # Normalize named color keys so lookups are case-insensitive
        if "named_colors" in data:
            data["named_colors"] = {
                str(k).lower(): v for k, v in data["named_colors"].items()
            }

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        data = {
            "locale": self.locale,
            "primary_color": self.primary_color,
            "header_text_color": self.header_text_color,
            "default_alternate_row_color": self.default_alternate_row_color,
            "font_color": self.font_color,
            "font_family": self.font_family,
            "default_font_size": self.default_font_size,
            "title_font_size": self.title_font_size,
            "section_title_font_size": self.section_title_font_size,
            "nested_title_font_size": self.nested_title_font_size,
            "header_padding": self.header_padding,
            "nested_row_extra_padding": self.nested_row_extra_padding,
            "header_columns": self.header_columns,
            "label_format": self.label_format,
            "system_name": self.system_name,
            "page_footer_font_size": self.page_footer_font_size,
            "timestamp_format": self.timestamp_format,
            "named_colors": self.named_colors,
        }
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def default_style(self) -> ResolvedStyle:
        """Build the immutable style every unset descriptor field falls back to."""
        return ResolvedStyle(
            alignment="left",
            bold=False,
            italic=False,
            font_size=self.default_font_size,
            font_color=parse_hex_color(self.font_color),
            background_color=None,
            padding=0.0,
            border="none",
            format="none",
            width=None,
            font_family=self.font_family,
        )

    def resolver(self) -> StyleResolver:
        """Build a style resolver bound to this configuration."""
        named = {
            name.lower(): parse_hex_color(value)
            for name, value in self.named_colors.items()
        }
        return StyleResolver(
            defaults=self.default_style(),
            number_locale=get_number_locale(self.locale),
            named_colors={k: v for k, v in named.items() if v is not None},
        )


def load_config(path: Optional[Path] = None) -> RenderConfig:
    """Load config from path or return default config."""
    if path is None:
        return RenderConfig()
    return RenderConfig.from_yaml(path)
