"""Tests for layout_engine.grid_planner."""

import itertools

import pytest

from conftest import make_config
from layout_engine.grid_planner import grid_shape, plan
from layout_models.errors import LayoutError, ValidationError
from layout_models.layout_types import LayoutFormat


def _overlap(a, b) -> bool:
    return a.x < b.right and b.x < a.right and a.y < b.bottom and b.y < a.bottom


class TestGridShape:

    @pytest.mark.parametrize("count, expected", [(1, (1, 1)), (4, (4, 1)), (5, (3, 2)), (8, (4, 2))])
    def test_vertical(self, count, expected):
        assert grid_shape(count, LayoutFormat.VERTICAL) == expected

    @pytest.mark.parametrize("count, expected", [(1, (1, 1)), (4, (1, 4)), (5, (2, 3)), (8, (2, 4))])
    def test_horizontal(self, count, expected):
        assert grid_shape(count, LayoutFormat.HORIZONTAL) == expected

    @pytest.mark.parametrize("count, expected", [(1, (1, 1)), (4, (2, 2)), (5, (2, 3)), (9, (3, 3)), (10, (3, 4))])
    def test_square(self, count, expected):
        assert grid_shape(count, LayoutFormat.SQUARE) == expected


class TestPlan:

    @pytest.mark.parametrize(
        "count, layout_format, reading_order",
        list(itertools.product(range(1, 13), ["vertical", "horizontal", "square"],
                               ["rightToLeft", "leftToRight"])),
    )
    def test_cells_cover_every_panel_without_overlap(self, count, layout_format, reading_order):
        config = make_config(format=layout_format, reading_order=reading_order,
                             page_width=1200, page_height=1200)
        cells = plan(count, config)

        assert len(cells) == count
        assert [c.panel_index for c in cells] == list(range(count))
        for cell in cells:
            assert cell.width > 0 and cell.height > 0
            assert cell.x >= 0 and cell.y >= 0
            assert cell.right <= config.page_width and cell.bottom <= config.page_height
        for a, b in itertools.combinations(cells, 2):
            assert not _overlap(a, b)
        assert len({(c.width, c.height) for c in cells}) == 1

    def test_right_to_left_places_first_panel_rightmost(self):
        config = make_config(format="horizontal", reading_order="rightToLeft",
                             page_width=400, page_height=100, gutter_size=0, border_width=0)
        cells = plan(4, config)

        assert cells[0].x == 300
        assert cells[3].x == 0

    def test_left_to_right_places_first_panel_leftmost(self):
        config = make_config(format="horizontal", reading_order="leftToRight",
                             page_width=400, page_height=100, gutter_size=0, border_width=0)
        cells = plan(4, config)

        assert cells[0].x == 0
        assert cells[3].x == 300

    def test_japanese_alias_reads_right_to_left(self):
        config = make_config(format="horizontal", reading_order="japanese",
                             page_width=400, page_height=100, gutter_size=0)
        assert plan(4, config)[0].x == 300

    def test_gutters_surround_and_separate_cells(self):
        config = make_config(format="vertical", page_width=800, page_height=1200, gutter_size=10)
        first, second = plan(2, config)

        assert (first.x, first.y, first.width, first.height) == (10, 10, 780, 585)
        assert (second.x, second.y) == (10, 605)

    def test_square_five_panels_right_to_left_leaves_bottom_left_empty(self):
        config = make_config(format="square", reading_order="rightToLeft",
                             page_width=300, page_height=200, gutter_size=0)
        cells = plan(5, config)

        positions = {c.panel_index: (c.x, c.y) for c in cells}
        assert positions == {0: (200, 0), 1: (100, 0), 2: (0, 0), 3: (200, 100), 4: (100, 100)}

    def test_square_five_panels_left_to_right_leaves_bottom_right_empty(self):
        config = make_config(format="square", reading_order="leftToRight",
                             page_width=300, page_height=200, gutter_size=0)
        positions = {c.panel_index: (c.x, c.y) for c in plan(5, config)}

        assert positions[3] == (0, 100)
        assert positions[4] == (100, 100)
        assert (200, 100) not in positions.values()

    def test_two_rows_right_to_left_mirrors_each_row(self):
        config = make_config(format="vertical", reading_order="rightToLeft",
                             page_width=200, page_height=300, gutter_size=0)
        cells = plan(6, config)

        assert [(c.x, c.y) for c in cells] == [
            (100, 0), (0, 0), (100, 100), (0, 100), (100, 200), (0, 200),
        ]

    def test_zero_panels_raises(self):
        with pytest.raises(ValidationError, match="no panels to compose"):
            plan(0, make_config())

    def test_page_too_small_raises_layout_error(self):
        config = make_config(format="horizontal", page_width=40, gutter_size=10)

        with pytest.raises(LayoutError):
            plan(4, config)

    def test_layout_error_is_a_validation_error(self):
        config = make_config(page_height=20, gutter_size=10)

        with pytest.raises(ValidationError):
            plan(1, config)
