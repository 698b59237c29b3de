"""
Test: StyleResolver, covering defaults, color parsing, header color levels and
locale-aware value formatting.
"""

import pytest

from report_layout.styles import (
    CellBox, Style, StyleResolver, color_to_rgb255, font_name,
    get_number_locale, header_color_for_level, parse_hex_color,
)


class TestResolve:
    def test_none_gives_defaults(self, resolver):
        resolved = resolver.resolve(None)
        assert resolved.alignment == "left"
        assert resolved.bold is False
        assert resolved.font_size == 8.0
        assert resolved.background_color is None
        assert resolved.format == "none"

    def test_set_fields_override_defaults(self, resolver):
        resolved = resolver.resolve(Style(alignment="right", bold=True, font_size=12, padding=4))
        assert resolved.alignment == "right"
        assert resolved.bold is True
        assert resolved.font_size == 12
        assert resolved.padding == 4
        assert resolved.font_name == "Helvetica-Bold"

    def test_invalid_values_fall_back(self, resolver):
        resolved = resolver.resolve(Style(alignment="sideways", border="dotted", font_color="#XYZXYZ"))
        assert resolved.alignment == "left"
        assert resolved.border == "none"
        assert color_to_rgb255(resolved.font_color) == (0, 0, 0)

    def test_from_dict_reads_camel_case(self):
        style = Style.from_dict({"fontSize": "11", "backgroundColor": "#EEEEEE", "bold": "true", "width": 25})
        assert style.font_size == 11.0
        assert style.background_color == "#EEEEEE"
        assert style.bold is True
        assert style.width == 25.0

    def test_from_dict_drops_unparseable_numbers(self):
        style = Style.from_dict({"fontSize": "big", "padding": None})
        assert style.font_size is None
        assert style.padding is None

    def test_merge_overlays_set_fields(self):
        merged = StyleResolver.merge(Style(bold=True, font_size=14), Style(font_size=10, italic=True))
        assert merged.bold is True
        assert merged.font_size == 10
        assert merged.italic is True


class TestColors:
    def test_hex_color(self, resolver):
        assert color_to_rgb255(resolver.parse_color("#088241")) == (8, 130, 65)

    def test_named_color_is_case_insensitive(self, resolver):
        assert color_to_rgb255(resolver.parse_color("Red")) == (255, 0, 0)

    def test_unknown_color_is_none(self, resolver):
        assert resolver.parse_color("chartreuse") is None
        assert resolver.parse_color("#12345") is None
        assert parse_hex_color(None) is None

    def test_level_zero_is_primary(self):
        primary = parse_hex_color("#088241")
        assert header_color_for_level(primary, 0) is primary

    def test_levels_lighten_toward_white(self):
        primary = parse_hex_color("#088241")
        assert color_to_rgb255(header_color_for_level(primary, 1)) == (69, 161, 112)
        assert color_to_rgb255(header_color_for_level(primary, 2)) == (131, 192, 160)

    def test_deep_levels_clamp_at_white(self):
        primary = parse_hex_color("#088241")
        assert color_to_rgb255(header_color_for_level(primary, 4)) == (255, 255, 255)
        assert color_to_rgb255(header_color_for_level(primary, 7)) == (255, 255, 255)

    def test_font_variants(self):
        assert font_name("Helvetica", True, True) == "Helvetica-BoldOblique"
        assert font_name("Times-Roman", False, True) == "Times-Italic"
        assert font_name("Courier", False, False) == "Courier"


class TestFormat:
    def test_currency_pt_br(self, resolver):
        assert resolver.format(100.0, Style(format="currency")) == "R$ 100,00"
        assert resolver.format(1234.56, Style(format="currency")) == "R$ 1.234,56"

    def test_number_groups_thousands(self, resolver):
        assert resolver.format(-1234567.891, Style(format="number")) == "-1.234.567,89"

    def test_percentage_is_not_scaled(self, resolver):
        assert resolver.format(12.5, Style(format="percentage")) == "12,50%"

    def test_integer_truncates(self, resolver):
        assert resolver.format(3.7, Style(format="integer")) == "3"

    def test_date_uses_locale_pattern(self, resolver):
        assert resolver.format("2024-03-05", Style(format="date")) == "05/03/2024"
        assert resolver.format("not a date", Style(format="date")) == "not a date"

    @pytest.mark.parametrize("tag", ["currency", "percentage", "number", "integer"])
    def test_non_numeric_falls_back_to_string(self, resolver, tag):
        assert resolver.format("abc", Style(format=tag)) == "abc"
        assert resolver.format(True, Style(format=tag)) == "True"

    def test_none_is_empty(self, resolver):
        assert resolver.format(None, Style(format="currency")) == ""

    def test_no_format_is_plain_string(self, resolver):
        assert resolver.format(42, None) == "42"
        assert resolver.format(42, Style(format="mystery")) == "42"

    def test_en_us_locale(self, resolver):
        us = StyleResolver(resolver.defaults, get_number_locale("en_US"))
        assert us.format(1234.5, Style(format="currency")) == "$ 1,234.50"

    def test_unknown_locale_falls_back(self):
        assert get_number_locale("xx_XX").name == "pt_BR"


class TestCellBox:
    def test_extra_padding(self):
        box = CellBox.uniform(5).with_extra_padding(left=10, right=2)
        assert box.padding == (5, 7, 5, 15)
        assert box.horizontal_padding == 22
