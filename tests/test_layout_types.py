"""Tests for layout_models.layout_types and layout_models.errors."""

import pytest

from layout_models.errors import AppError, LayoutError, NotFoundError, ValidationError
from layout_models.layout_types import (
    DEFAULT_PAGE_CONFIG,
    BubblePosition,
    BubbleStyle,
    ComposedLayout,
    GridCell,
    LayoutFormat,
    PageConfig,
    ReadingOrder,
    SpeechBubble,
    reading_order_from,
)


class TestPageConfig:

    def test_defaults(self):
        config = DEFAULT_PAGE_CONFIG
        assert config.total_panels == 4
        assert config.format is LayoutFormat.VERTICAL
        assert config.reading_order is ReadingOrder.RIGHT_TO_LEFT
        assert (config.gutter_size, config.border_width) == (10, 2)
        assert (config.border_color, config.background_color) == ("#000000", "#FFFFFF")
        assert (config.page_width, config.page_height) == (800, 1200)

    def test_from_dict_accepts_camel_case_and_ignores_unknown_keys(self):
        config = PageConfig.from_dict({
            "totalPanels": 6,
            "format": "square",
            "readingOrder": "leftToRight",
            "gutterSize": 4,
            "pageWidth": 600,
            "somethingElse": True,
        })

        assert config.total_panels == 6
        assert config.format is LayoutFormat.SQUARE
        assert config.reading_order is ReadingOrder.LEFT_TO_RIGHT
        assert config.gutter_size == 4
        assert config.page_width == 600
        assert config.page_height == 1200

    def test_to_dict_round_trips_through_from_dict(self):
        config = PageConfig(total_panels=3, format=LayoutFormat.HORIZONTAL, gutter_size=0)
        assert PageConfig.from_dict(config.to_dict()) == config

    def test_invalid_format_raises(self):
        with pytest.raises(ValidationError, match="layout format"):
            PageConfig.from_dict({"format": "diagonal"})

    def test_with_overrides_skips_none(self):
        config = DEFAULT_PAGE_CONFIG.with_overrides(format="horizontal", reading_order=None,
                                                    total_panels=2)

        assert config.format is LayoutFormat.HORIZONTAL
        assert config.reading_order is ReadingOrder.RIGHT_TO_LEFT
        assert config.total_panels == 2
        assert DEFAULT_PAGE_CONFIG.total_panels == 4

    @pytest.mark.parametrize("field_name, value", [
        ("page_width", 0),
        ("page_height", -5),
        ("total_panels", 0),
        ("gutter_size", -1),
        ("border_width", 1.5),
    ])
    def test_validate_rejects_out_of_range(self, field_name, value):
        config = PageConfig(**{field_name: value})

        with pytest.raises(ValidationError, match=field_name):
            config.validate()

    def test_validate_accepts_zero_gutter_and_border(self):
        PageConfig(gutter_size=0, border_width=0).validate()


class TestReadingOrder:

    @pytest.mark.parametrize("value, expected", [
        ("rightToLeft", ReadingOrder.RIGHT_TO_LEFT),
        ("leftToRight", ReadingOrder.LEFT_TO_RIGHT),
        ("japanese", ReadingOrder.RIGHT_TO_LEFT),
        ("Western", ReadingOrder.LEFT_TO_RIGHT),
        ("rtl", ReadingOrder.RIGHT_TO_LEFT),
    ])
    def test_aliases(self, value, expected):
        assert reading_order_from(value) is expected

    def test_unknown_order_raises(self):
        with pytest.raises(ValidationError, match="reading order"):
            reading_order_from("topToBottom")


class TestSpeechBubble:

    def test_from_dict_with_defaults(self):
        bubble = SpeechBubble.from_dict({"panelIndex": 2, "text": "Hi"})

        assert bubble == SpeechBubble(2, "Hi", BubblePosition.TOP, BubbleStyle.ROUNDED)

    def test_from_dict_snake_case(self):
        bubble = SpeechBubble.from_dict({"panel_index": 0, "text": "Boom", "position": "bottom",
                                         "style": "spiked"})

        assert bubble.position is BubblePosition.BOTTOM
        assert bubble.style is BubbleStyle.SPIKED

    def test_missing_panel_index_raises(self):
        with pytest.raises(ValidationError, match="panelIndex"):
            SpeechBubble.from_dict({"text": "orphan"})

    def test_non_numeric_panel_index_raises(self):
        with pytest.raises(ValidationError, match="panelIndex"):
            SpeechBubble.from_dict({"panelIndex": "first", "text": "?"})

    def test_unknown_style_raises(self):
        with pytest.raises(ValidationError, match="bubble style"):
            SpeechBubble.from_dict({"panelIndex": 0, "style": "thought"})


class TestGeometry:

    def test_grid_cell_edges_and_dict(self):
        cell = GridCell(panel_index=1, x=10, y=20, width=100, height=50)

        assert (cell.right, cell.bottom) == (110, 70)
        assert cell.to_dict() == {"panelIndex": 1, "x": 10, "y": 20, "width": 100, "height": 50}

    def test_find_cell(self):
        cells = (GridCell(0, 0, 0, 10, 10), GridCell(1, 10, 0, 10, 10))
        layout = ComposedLayout(buffer=b"", width=20, height=10, panel_positions=cells)

        assert layout.find_cell(1) is cells[1]
        assert layout.find_cell(5) is None


class TestErrors:

    def test_status_codes(self):
        assert ValidationError("bad").status_code == 400
        assert LayoutError("tight").status_code == 400
        assert NotFoundError("Panel 3").status_code == 404
        assert AppError("boom").status_code == 500

    def test_not_found_message(self):
        error = NotFoundError("Panel 3")

        assert str(error) == "Panel 3 not found"
        assert error.resource == "Panel 3"
        assert isinstance(error, AppError)
