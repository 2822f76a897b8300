"""
Koma Pipeline — End-to-end page assembly
=========================================
Chains all steps:

1. Compose panel images into a page (grid + cover fit + borders)
2. Overlay speech bubbles (optional)
3. Export to the delivery format (PNG / JPG / PDF)
4. Write ``layout.png``, the export file and an optional thumbnail

Usage::

    from layout_engine.koma_pipeline import KomaPipeline

    pipe = KomaPipeline.from_config("config.yaml")
    output = pipe.run(
        image_paths=["panel_0.png", "panel_1.png", "panel_2.png", "panel_3.png"],
        bubbles=[SpeechBubble(0, "Where am I?")],
    )
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from layout_models.layout_types import ComposedLayout, PageConfig, SpeechBubble
from layout_engine import border_renderer
from layout_engine.bubble_overlay import BubbleOverlay
from layout_engine.config import load_config
from layout_engine.context import DEFAULT_FONT_SIZE
from layout_engine.export_service import ExportOptions, ExportService
from layout_engine.imaging import ImageSource
from layout_engine.page_compositor import DEFAULT_THUMBNAIL_SIZE, PageCompositor

logger = logging.getLogger(__name__)

LAYOUT_FILENAME = "layout.png"
THUMBNAIL_FILENAME = "thumbnail.png"


class KomaPipeline:
    """
    Compose, decorate and export one comic page.

    Parameters
    ----------
    config : dict
        Parsed config.yaml contents.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        engine_cfg = config.get("engine", {}) or {}
        output_cfg = config.get("output", {}) or {}
        thumb_cfg = output_cfg.get("thumbnail", {}) or {}

        # ── Build sub-components ─────────────────────────────────────
        self.page_config = PageConfig.from_dict(config.get("layout", {}))
        self.export_defaults = config.get("export", {}) or {}

        self.compositor = PageCompositor(max_workers=engine_cfg.get("max_workers"))
        self.bubble_overlay = BubbleOverlay(
            font_path=engine_cfg.get("font_path"),
            font_size=engine_cfg.get("font_size", DEFAULT_FONT_SIZE),
        )
        self.exporter = ExportService()

        self.output_dir = output_cfg.get("dir", "output")
        self.thumbnail_size = (
            thumb_cfg.get("width", DEFAULT_THUMBNAIL_SIZE[0]),
            thumb_cfg.get("height", DEFAULT_THUMBNAIL_SIZE[1]),
        )

    # ── Factory ──────────────────────────────────────────────────────
    @classmethod
    def from_config(cls, config_path: Optional[str] = None) -> "KomaPipeline":
        """Load pipeline from a YAML config file."""
        return cls(load_config(config_path))

    # ── Main entry point ─────────────────────────────────────────────
    def run(
        self,
        image_paths: Sequence[ImageSource],
        bubbles: Optional[Sequence[SpeechBubble]] = None,
        output_dir: Optional[str] = None,
        filename: str = "page",
        export_options: Optional[ExportOptions] = None,
        page_config: Optional[PageConfig] = None,
        thumbnail: bool = False,
        svg: bool = False,
    ) -> Dict[str, Any]:
        """
        Run composition, bubble overlay and export.

        Parameters
        ----------
        image_paths : sequence of path or bytes
            Panel images in reading order.
        bubbles : list[SpeechBubble] | None
            Bubbles to draw over the composed page.
        output_dir : str | None
            Where to write files; defaults to ``output.dir`` from config.
        filename : str
            Base name of the export file.
        export_options : ExportOptions | None
            Defaults to the ``export:`` section of config.
        page_config : PageConfig | None
            Overrides the ``layout:`` section of config.
        thumbnail : bool
            Also write ``thumbnail.png``.
        svg : bool
            Also write the border and bubble overlay as ``overlay.svg``.

        Returns
        -------
        dict
            Written paths, panel positions, page dimensions and export info.
        """
        t0 = time.time()
        config = page_config or self.page_config
        options = export_options or ExportOptions.from_dict(self.export_defaults)
        bubbles = list(bubbles or [])
        out_dir = Path(output_dir or self.output_dir)

        # ── Step 1: Composition ──────────────────────────────────────
        logger.info("=" * 60)
        logger.info("STEP 1 · Page Composition")
        logger.info("=" * 60)
        layout = self.compositor.compose(image_paths, config)

        # ── Step 2: Speech bubbles ───────────────────────────────────
        if bubbles:
            logger.info("=" * 60)
            logger.info("STEP 2 · Speech Bubbles")
            logger.info("=" * 60)
            layout = self.bubble_overlay.apply(layout, bubbles)
        else:
            logger.info("No speech bubbles requested; skipping overlay.")

        out_dir.mkdir(parents=True, exist_ok=True)
        layout_path = out_dir / LAYOUT_FILENAME
        layout_path.write_bytes(layout.buffer)

        # ── Step 3: Export ───────────────────────────────────────────
        logger.info("=" * 60)
        logger.info(f"STEP 3 · Export ({options.format.value})")
        logger.info("=" * 60)
        result = self.exporter.export(layout, options)
        export_path = self.exporter.save_to_file(result, str(out_dir), filename)

        output: Dict[str, Any] = {
            "layout_path": str(layout_path),
            "export_path": export_path,
            "format": result.format.value,
            "dpi": result.dpi,
            "file_size": result.file_size,
            "dimensions": {"width": layout.width, "height": layout.height},
            "panel_positions": [cell.to_dict() for cell in layout.panel_positions],
        }

        if thumbnail:
            thumb_path = out_dir / THUMBNAIL_FILENAME
            thumb_path.write_bytes(self.compositor.generate_thumbnail(layout, *self.thumbnail_size))
            output["thumbnail_path"] = str(thumb_path)

        if svg:
            svg_path = out_dir / "overlay.svg"
            svg_path.write_text(self.render_overlay_svg(layout, config, bubbles), encoding="utf-8")
            output["svg_path"] = str(svg_path)

        elapsed = time.time() - t0
        logger.info(f"✅ Page complete in {elapsed:.1f}s — saved to {export_path}")
        return output

    # ── helpers ──────────────────────────────────────────────────────
    def render_overlay_svg(self, layout: ComposedLayout, config: PageConfig,
                           bubbles: Sequence[SpeechBubble]) -> str:
        """Borders and bubbles of ``layout`` as a single SVG document."""
        borders = border_renderer.render(layout.panel_positions, config)
        return self.bubble_overlay.render_svg(layout, bubbles, base=borders)
