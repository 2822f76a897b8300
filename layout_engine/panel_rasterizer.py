"""
Panel Rasterizer — Decode and cover-fit each panel into its cell
=================================================================
Panels are independent of each other, so decoding and resampling is fanned
out over a thread pool.  Results are gathered back in panel order before
anything is pasted, which keeps the final page identical no matter which
decode finishes first.

A single unreadable panel aborts the whole batch: a page with a gap would
silently break the grid the caller asked for.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Sequence

from PIL import Image

from layout_models.errors import ValidationError
from layout_models.layout_types import GridCell
from layout_engine.context import CompositorContext
from layout_engine.imaging import ImageSource, cover_fit, open_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PanelFragment:
    """A panel already sized to its cell, ready to paste at ``cell.x, cell.y``."""
    cell: GridCell
    image: Image.Image


def rasterize_panel(source: ImageSource, cell: GridCell, ctx: CompositorContext) -> PanelFragment:
    """Load one panel and cover-fit it to ``cell``."""
    image = open_image(source, label=f"Panel {cell.panel_index} image")
    fitted = cover_fit(image.convert("RGBA"), cell.width, cell.height, ctx.resample)
    logger.debug(
        f"Panel {cell.panel_index}: {image.width}×{image.height} → "
        f"{cell.width}×{cell.height} at ({cell.x}, {cell.y})"
    )
    return PanelFragment(cell=cell, image=fitted)


def rasterize_panels(
    sources: Sequence[ImageSource],
    cells: Sequence[GridCell],
    ctx: CompositorContext,
) -> List[PanelFragment]:
    """
    Rasterize every panel concurrently.

    Parameters
    ----------
    sources : sequence of path or bytes
        One source per panel; ``sources[i]`` is panel index ``i``.
    cells : sequence[GridCell]
        Cells sorted by panel index, as returned by the grid planner.
    ctx : CompositorContext
        Per-call state (worker budget, resampling filter).

    Returns
    -------
    list[PanelFragment]
        Fragments in panel-index order.
    """
    if len(sources) != len(cells):
        raise ValidationError(f"Got {len(sources)} panel images for {len(cells)} cells")

    workers = ctx.worker_count(len(sources))
    logger.info(f"Rasterizing {len(sources)} panels on {workers} worker(s)")

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="panel") as executor:
        futures = [
            executor.submit(rasterize_panel, source, cell, ctx)
            for source, cell in zip(sources, cells)
        ]
        try:
            return [future.result() for future in futures]
        except Exception:
            for future in futures:
                future.cancel()
            raise
