"""
Page Compositor — Assemble panel images into a comic page
==========================================================
Composite order is fixed:

1. Solid background canvas at the configured page size
2. Cover-fitted panel fragments, in panel-index order
3. Border overlay (when ``border_width > 0``), always on top of panels

The page is returned PNG-encoded together with the rect of every panel,
sorted by panel index.

Usage::

    compositor = PageCompositor()
    layout = compositor.compose(["p1.png", "p2.png"], PageConfig(total_panels=2))
"""

import logging
from typing import Optional, Sequence

from PIL import Image

from layout_models.errors import ValidationError
from layout_models.layout_types import ComposedLayout, LayoutFormat, PageConfig
from layout_engine import border_renderer, grid_planner
from layout_engine.context import CompositorContext
from layout_engine.imaging import ImageSource, cover_fit, decode_layout, encode_png
from layout_engine.panel_rasterizer import rasterize_panels

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_SIZE = (200, 300)


class PageCompositor:
    """
    Compose panel images into a single page raster.

    Parameters
    ----------
    max_workers : int | None
        Upper bound on concurrent panel decodes.  ``None`` uses the
        context default.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers

    # ── Public API ───────────────────────────────────────────────────
    def compose(self, image_paths: Sequence[ImageSource], config: PageConfig) -> ComposedLayout:
        """
        Compose panel images into a comic page.

        Parameters
        ----------
        image_paths : sequence of path or bytes
            Panel images in reading order (index 0 is read first).
        config : PageConfig
            Page size, grid format, reading order, gutter and border style.

        Returns
        -------
        ComposedLayout
            PNG page buffer plus ``panel_positions`` sorted by panel index.

        Raises
        ------
        ValidationError
            No images, an invalid config, or an undecodable image.
        NotFoundError
            A panel image path does not exist.
        """
        if not image_paths:
            raise ValidationError("no panels to compose")

        config.validate()
        panel_count = len(image_paths)
        if config.total_panels != panel_count:
            logger.warning(
                f"Config expects {config.total_panels} panels but {panel_count} "
                f"images were given; laying out {panel_count}"
            )

        ctx = CompositorContext.for_page(config, self.max_workers)
        cells = grid_planner.plan(panel_count, config)
        fragments = rasterize_panels(image_paths, cells, ctx)

        canvas = Image.new("RGBA", (ctx.page_width, ctx.page_height), (*ctx.background, 255))
        for fragment in fragments:
            canvas.alpha_composite(fragment.image, dest=(fragment.cell.x, fragment.cell.y))

        if config.border_width > 0:
            borders = border_renderer.render(cells, config)
            canvas.alpha_composite(borders.rasterize())

        buffer = encode_png(canvas.convert("RGB"))
        logger.info(
            f"Composed {panel_count}-panel page ({ctx.page_width}×{ctx.page_height}, "
            f"{LayoutFormat(config.format).value}, "
            f"{len(buffer)} bytes)"
        )

        return ComposedLayout(
            buffer=buffer,
            width=ctx.page_width,
            height=ctx.page_height,
            format="png",
            panel_positions=tuple(cells),
        )

    def generate_thumbnail(
        self,
        layout: ComposedLayout,
        width: int = DEFAULT_THUMBNAIL_SIZE[0],
        height: int = DEFAULT_THUMBNAIL_SIZE[1],
    ) -> bytes:
        """Cover-fit the composed page into ``width × height`` and return PNG bytes."""
        if width <= 0 or height <= 0:
            raise ValidationError(f"Thumbnail size must be positive, got {width}×{height}")

        page = decode_layout(layout).convert("RGB")
        thumbnail = cover_fit(page, width, height)
        logger.debug(f"Thumbnail {width}×{height} from {layout.width}×{layout.height} page")
        return encode_png(thumbnail)


def compose(image_paths: Sequence[ImageSource], config: PageConfig,
            max_workers: Optional[int] = None) -> ComposedLayout:
    """Functional shortcut for :meth:`PageCompositor.compose`."""
    return PageCompositor(max_workers=max_workers).compose(image_paths, config)
