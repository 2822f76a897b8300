"""
Compositor Context — Per-call drawing state
============================================
Everything a composition call needs besides its inputs: resolved colours,
the worker budget for panel decoding, the resampling filter and a font
cache.  A fresh context is built for every ``compose``/``apply`` call and
passed down explicitly, so concurrent calls never share image-library state.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from PIL import Image, ImageColor, ImageFont

from layout_models.errors import ValidationError
from layout_models.layout_types import ComposedLayout, PageConfig

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

DEFAULT_MAX_WORKERS = 8
DEFAULT_FONT_SIZE = 14


def resolve_color(value: str, name: str) -> RGB:
    """Parse a hex (``#rgb``/``#rrggbb``) or CSS colour name into RGB."""
    try:
        return ImageColor.getrgb(value)[:3]
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {name} {value!r}")


@dataclass
class CompositorContext:
    """Drawing state owned by exactly one in-flight composition call."""
    page_width: int
    page_height: int
    background: RGB = (255, 255, 255)
    border: RGB = (0, 0, 0)
    max_workers: int = DEFAULT_MAX_WORKERS
    resample: int = Image.Resampling.LANCZOS
    font_path: Optional[str] = None
    font_size: int = DEFAULT_FONT_SIZE
    _fonts: Dict[int, ImageFont.FreeTypeFont] = field(default_factory=dict, repr=False)

    # ── Factories ────────────────────────────────────────────────────
    @classmethod
    def for_page(cls, config: PageConfig, max_workers: Optional[int] = None) -> "CompositorContext":
        return cls(
            page_width=config.page_width,
            page_height=config.page_height,
            background=resolve_color(config.background_color, "background color"),
            border=resolve_color(config.border_color, "border color"),
            max_workers=max_workers or DEFAULT_MAX_WORKERS,
        )

    @classmethod
    def for_layout(
        cls,
        layout: ComposedLayout,
        font_path: Optional[str] = None,
        font_size: int = DEFAULT_FONT_SIZE,
    ) -> "CompositorContext":
        return cls(
            page_width=layout.width,
            page_height=layout.height,
            font_path=font_path,
            font_size=font_size,
        )

    # ── Helpers ──────────────────────────────────────────────────────
    def worker_count(self, jobs: int) -> int:
        return max(1, min(self.max_workers, jobs, (os.cpu_count() or 1) * 2))

    def load_font(self, size: Optional[int] = None) -> ImageFont.FreeTypeFont:
        """Load (and cache for this call) the bubble font at ``size`` px."""
        size = size or self.font_size
        if size not in self._fonts:
            if self.font_path:
                try:
                    self._fonts[size] = ImageFont.truetype(self.font_path, size)
                except OSError as exc:
                    raise ValidationError(f"Cannot load font {self.font_path!r}: {exc}") from exc
            else:
                self._fonts[size] = ImageFont.load_default(size=size)
            logger.debug(f"Loaded font {self.font_path or '(default)'} at {size}px")
        return self._fonts[size]
