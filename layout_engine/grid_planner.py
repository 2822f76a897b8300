"""
Grid Planner — Panel count + page config → cell rects
======================================================
Pure geometry, no I/O.  The grid shape is a fixed heuristic per layout
format rather than a general packer:

  - **vertical**:   1 column up to 4 panels, otherwise 2
  - **horizontal**: 1 row up to 4 panels, otherwise 2
  - **square**:     ``ceil(sqrt(n))`` columns

Counts that do not tile evenly leave trailing slots empty (e.g. 5 panels on
a square page give a 3×2 grid with one background-only slot).

Usage::

    cells = plan(4, PageConfig(format="horizontal"))
"""

import logging
import math
from typing import List, Tuple

from layout_models.errors import LayoutError, ValidationError
from layout_models.layout_types import (
    GridCell,
    LayoutFormat,
    PageConfig,
    ReadingOrder,
    reading_order_from,
)

logger = logging.getLogger(__name__)

# Above this count vertical/horizontal pages switch to two columns/rows.
SINGLE_STRIP_MAX = 4


def grid_shape(panel_count: int, layout_format: LayoutFormat) -> Tuple[int, int]:
    """Return ``(rows, cols)`` for ``panel_count`` panels in ``layout_format``."""
    layout_format = LayoutFormat(layout_format)

    if layout_format is LayoutFormat.VERTICAL:
        cols = 1 if panel_count <= SINGLE_STRIP_MAX else 2
        rows = math.ceil(panel_count / cols)
    elif layout_format is LayoutFormat.HORIZONTAL:
        rows = 1 if panel_count <= SINGLE_STRIP_MAX else 2
        cols = math.ceil(panel_count / rows)
    else:
        cols = math.ceil(math.sqrt(panel_count))
        rows = math.ceil(panel_count / cols)

    return rows, cols


def cell_size(rows: int, cols: int, config: PageConfig) -> Tuple[int, int]:
    """Uniform ``(width, height)`` of every cell after gutters are removed."""
    gutter = config.gutter_size
    width = (config.page_width - gutter * (cols + 1)) // cols
    height = (config.page_height - gutter * (rows + 1)) // rows

    if width <= 0 or height <= 0:
        raise LayoutError(
            f"Page {config.page_width}×{config.page_height} with gutter {gutter} "
            f"cannot fit a {rows}×{cols} grid (cell would be {width}×{height})"
        )
    return width, height


def slot_panel_index(row: int, col: int, cols: int, reading_order: ReadingOrder) -> int:
    """Logical panel index for the raster slot at ``(row, col)``."""
    if reading_order_from(reading_order) is ReadingOrder.RIGHT_TO_LEFT:
        return row * cols + (cols - 1 - col)
    return row * cols + col


def plan(panel_count: int, config: PageConfig) -> List[GridCell]:
    """
    Lay out ``panel_count`` cells on the page described by ``config``.

    Parameters
    ----------
    panel_count : int
        Number of panels actually being composed.
    config : PageConfig
        Page size, gutter, format and reading order.

    Returns
    -------
    list[GridCell]
        Exactly ``panel_count`` cells, sorted by ``panel_index``.

    Raises
    ------
    ValidationError
        ``panel_count`` is zero or exceeds the grid capacity.
    LayoutError
        The page is too small for the derived grid.
    """
    if panel_count <= 0:
        raise ValidationError("no panels to compose")

    rows, cols = grid_shape(panel_count, config.format)
    if panel_count > rows * cols:
        raise ValidationError("no panels to compose")

    width, height = cell_size(rows, cols, config)
    gutter = config.gutter_size

    cells: List[GridCell] = []
    for row in range(rows):
        for col in range(cols):
            index = slot_panel_index(row, col, cols, config.reading_order)
            if index >= panel_count:
                continue
            cells.append(GridCell(
                panel_index=index,
                x=gutter + col * (width + gutter),
                y=gutter + row * (height + gutter),
                width=width,
                height=height,
            ))

    cells.sort(key=lambda cell: cell.panel_index)
    logger.debug(f"Planned {panel_count} panels as {rows}×{cols} grid of {width}×{height} cells")
    return cells
