"""
Border Renderer — One stroked rectangle per cell
=================================================
Reads the same cells the grid planner produced, so borders always sit
exactly on the panel bounds.  Strokes are drawn inside the cell rect and
therefore never reach into the gutters.
"""

from typing import Sequence

from layout_models.layout_types import GridCell, PageConfig
from layout_engine.vector_overlay import Rect, VectorOverlay


def render(cells: Sequence[GridCell], config: PageConfig) -> VectorOverlay:
    """Build the border overlay for ``cells`` on a page described by ``config``."""
    overlay = VectorOverlay(width=config.page_width, height=config.page_height)
    if config.border_width <= 0:
        return overlay

    for cell in cells:
        overlay.elements.append(Rect(
            x0=cell.x,
            y0=cell.y,
            x1=cell.right,
            y1=cell.bottom,
            fill=None,
            outline=config.border_color,
            width=config.border_width,
        ))
    return overlay
