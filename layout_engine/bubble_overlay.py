"""
Bubble Overlay — Speech bubbles on a composed page
===================================================
For every bubble:

1. Resolve the target cell by panel index (all bubbles are resolved before
   anything is drawn, so a bad index leaves the page untouched)
2. Place the bubble box inside the cell and wrap its text
3. Build the shape for its style plus one centred text line per wrapped
   segment as a vector overlay
4. Alpha-composite the overlay onto the page, in input order

Offsets and sizes are fixed pixel constants rather than being scaled with
the page, so very large or very small pages will look off.

Usage::

    overlay = BubbleOverlay()
    page = overlay.apply(layout, [SpeechBubble(0, "Hello!", "top", "rounded")])
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from layout_models.errors import LayoutError, NotFoundError
from layout_models.layout_types import (
    BubblePosition,
    BubbleStyle,
    ComposedLayout,
    GridCell,
    SpeechBubble,
)
from layout_engine.context import DEFAULT_FONT_SIZE, CompositorContext
from layout_engine.imaging import decode_layout, encode_png
from layout_engine.vector_overlay import (
    Ellipse,
    Point,
    Polygon,
    Polyline,
    Primitive,
    Rect,
    Text,
    VectorOverlay,
)

logger = logging.getLogger(__name__)

# ── Tunable constants ────────────────────────────────────────────────
TOP_OFFSET = 30           # bubble top below the cell top
BOTTOM_OFFSET = 60        # bubble top above the cell bottom
MIDDLE_OFFSET = 30        # bubble top above the cell centre
SIDE_MARGIN = 40          # total horizontal margin inside the cell
MAX_BUBBLE_WIDTH = 300
MIN_BUBBLE_HEIGHT = 50
LINE_HEIGHT = 20
BUBBLE_PADDING = 20
TEXT_BASELINE_OFFSET = 25
CHARS_PER_LINE = 15

FILL_COLOR = "#FFFFFF"
STROKE_COLOR = "#000000"
TEXT_COLOR = "#000000"
STROKE_WIDTH = 2

CORNER_RADIUS = 15
TAIL_BASE_OFFSET = 20     # tail base starts this far from the bubble's left edge
TAIL_BASE_WIDTH = 20
TAIL_LENGTH = 15
TAIL_LEAN = 10            # how far the tip leans left of the base
SPIKE_INSET = 15


def wrap_text(text: str, max_chars: int = CHARS_PER_LINE) -> List[str]:
    """
    Split bubble text into display lines.

    Text containing spaces is wrapped greedily by words: words are added to
    the current line until the next one would push it past ``max_chars``.
    A single word longer than ``max_chars`` stays whole on its own line.
    Text without spaces (e.g. Japanese) is cut into fixed ``max_chars``
    chunks.
    """
    if " " not in text:
        return [text[i:i + max_chars] for i in range(0, len(text), max_chars)]

    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and len(candidate) > max_chars:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


# ── Geometry ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BubbleGeometry:
    """Where a bubble lands on the page and what it will say."""
    x: int
    y: int
    width: int
    height: int
    style: BubbleStyle
    lines: Tuple[str, ...]
    tail: Optional[Tuple[Point, Point, Point]] = None   # base-left, tip, base-right

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def tail_anchor(self) -> Optional[Point]:
        return self.tail[1] if self.tail else None


def bubble_top(cell: GridCell, position: BubblePosition) -> int:
    position = BubblePosition(position)
    if position is BubblePosition.TOP:
        return cell.y + TOP_OFFSET
    if position is BubblePosition.BOTTOM:
        return cell.y + cell.height - BOTTOM_OFFSET
    return cell.y + cell.height // 2 - MIDDLE_OFFSET


def bubble_geometry(cell: GridCell, bubble: SpeechBubble) -> BubbleGeometry:
    """Compute the bubble box, wrapped lines and tail for ``bubble`` in ``cell``."""
    width = min(cell.width - SIDE_MARGIN, MAX_BUBBLE_WIDTH)
    if width <= 0:
        raise LayoutError(
            f"Panel {cell.panel_index} is {cell.width}px wide, too narrow for a speech bubble"
        )

    lines = tuple(wrap_text(bubble.text))
    height = max(MIN_BUBBLE_HEIGHT, len(lines) * LINE_HEIGHT + BUBBLE_PADDING)
    x = cell.x + (cell.width - width) // 2
    y = bubble_top(cell, bubble.position)
    style = BubbleStyle(bubble.style)

    tail = None
    if style is BubbleStyle.ROUNDED:
        base_left = x + TAIL_BASE_OFFSET
        bottom = y + height
        tail = (
            (base_left, bottom),
            (base_left - TAIL_LEAN, bottom + TAIL_LENGTH),
            (base_left + TAIL_BASE_WIDTH, bottom),
        )

    return BubbleGeometry(x=x, y=y, width=width, height=height, style=style, lines=lines, tail=tail)


# ── Shapes (one pure function per style) ─────────────────────────────
def _rounded_shape(geometry: BubbleGeometry) -> List[Primitive]:
    radius = min(CORNER_RADIUS, geometry.height / 2, geometry.width / 2)
    body = Rect(geometry.x, geometry.y, geometry.right, geometry.bottom,
                fill=FILL_COLOR, outline=STROKE_COLOR, width=STROKE_WIDTH, radius=radius)
    base_left, tip, base_right = geometry.tail
    # Fill reaches up over the body's bottom stroke so the tail opens into the bubble.
    inner_y = base_left[1] - STROKE_WIDTH
    tail_fill = Polygon(((base_left[0], inner_y), tip, (base_right[0], inner_y)), fill=FILL_COLOR)
    tail_edge = Polyline((base_left, tip, base_right), color=STROKE_COLOR, width=STROKE_WIDTH)
    return [body, tail_fill, tail_edge]


def _cloud_shape(geometry: BubbleGeometry) -> List[Primitive]:
    return [Ellipse(geometry.x, geometry.y, geometry.right, geometry.bottom,
                    fill=FILL_COLOR, outline=STROKE_COLOR, width=STROKE_WIDTH)]


def _spiked_shape(geometry: BubbleGeometry) -> List[Primitive]:
    x0, y0, x1, y1 = geometry.x, geometry.y, geometry.right, geometry.bottom
    c = min(SPIKE_INSET, geometry.width / 4, geometry.height / 4)
    points = (
        (x0 + c, y0), (x1 - c, y0),
        (x1, y0 + c), (x1, y1 - c),
        (x1 - c, y1), (x0 + c, y1),
        (x0, y1 - c), (x0, y0 + c),
    )
    return [Polygon(points, fill=FILL_COLOR, outline=STROKE_COLOR, width=STROKE_WIDTH)]


def _rectangular_shape(geometry: BubbleGeometry) -> List[Primitive]:
    return [Rect(geometry.x, geometry.y, geometry.right, geometry.bottom,
                 fill=FILL_COLOR, outline=STROKE_COLOR, width=STROKE_WIDTH)]


SHAPE_BUILDERS: Dict[BubbleStyle, Callable[[BubbleGeometry], List[Primitive]]] = {
    BubbleStyle.ROUNDED: _rounded_shape,
    BubbleStyle.CLOUD: _cloud_shape,
    BubbleStyle.SPIKED: _spiked_shape,
    BubbleStyle.RECTANGULAR: _rectangular_shape,
}


def text_lines(geometry: BubbleGeometry, font_size: int = DEFAULT_FONT_SIZE) -> List[Text]:
    center_x = geometry.x + geometry.width / 2
    return [
        Text(center_x, geometry.y + TEXT_BASELINE_OFFSET + i * LINE_HEIGHT, line,
             size=font_size, fill=TEXT_COLOR)
        for i, line in enumerate(geometry.lines)
    ]


def bubble_overlay(geometry: BubbleGeometry, page_width: int, page_height: int,
                   font_size: int = DEFAULT_FONT_SIZE) -> VectorOverlay:
    """Vector overlay (shape + text) for a single bubble."""
    elements = SHAPE_BUILDERS[geometry.style](geometry) + text_lines(geometry, font_size)
    return VectorOverlay(width=page_width, height=page_height, elements=elements)


def resolve_geometries(layout: ComposedLayout, bubbles: Sequence[SpeechBubble]) -> List[BubbleGeometry]:
    """Place every bubble, failing before any drawing if a panel is missing."""
    geometries = []
    for bubble in bubbles:
        cell = layout.find_cell(bubble.panel_index)
        if cell is None:
            raise NotFoundError(f"Panel {bubble.panel_index}")
        geometries.append(bubble_geometry(cell, bubble))
    return geometries


class BubbleOverlay:
    """
    Render speech bubbles onto composed pages.

    Parameters
    ----------
    font_path : str | None
        TrueType font for bubble text; ``None`` uses Pillow's bundled font.
    font_size : int
        Text size in pixels.
    """

    def __init__(self, font_path: Optional[str] = None, font_size: int = DEFAULT_FONT_SIZE):
        self.font_path = font_path
        self.font_size = font_size

    def apply(self, layout: ComposedLayout, bubbles: Sequence[SpeechBubble]) -> ComposedLayout:
        """
        Draw ``bubbles`` over ``layout`` and return the new layout.

        The input layout is returned as-is when ``bubbles`` is empty.  The
        result keeps the original ``panel_positions``; only ``buffer``
        changes.

        Raises
        ------
        NotFoundError
            A bubble references a panel index missing from the layout.
        LayoutError
            A target panel is too narrow to hold a bubble.
        """
        if not bubbles:
            return layout

        geometries = resolve_geometries(layout, bubbles)
        ctx = CompositorContext.for_layout(layout, self.font_path, self.font_size)

        page = decode_layout(layout).convert("RGBA")
        for geometry in geometries:
            overlay = bubble_overlay(geometry, layout.width, layout.height, ctx.font_size)
            page.alpha_composite(overlay.rasterize(ctx.load_font))

        logger.info(f"Added {len(geometries)} speech bubble(s) to {layout.width}×{layout.height} page")
        return replace(layout, buffer=encode_png(page.convert("RGB")))

    def render_svg(self, layout: ComposedLayout, bubbles: Sequence[SpeechBubble],
                   base: Optional[VectorOverlay] = None) -> str:
        """
        Serialize the bubbles for ``layout`` as one SVG overlay document.

        Elements of ``base`` (e.g. the page borders) are drawn first.
        """
        overlay = VectorOverlay(width=layout.width, height=layout.height)
        if base is not None:
            overlay.extend(base)
        for geometry in resolve_geometries(layout, bubbles):
            overlay.extend(bubble_overlay(geometry, layout.width, layout.height, self.font_size))
        return overlay.to_svg()


def add_speech_bubbles(layout: ComposedLayout, bubbles: Sequence[SpeechBubble],
                       font_path: Optional[str] = None) -> ComposedLayout:
    """Functional shortcut for :meth:`BubbleOverlay.apply`."""
    return BubbleOverlay(font_path=font_path).apply(layout, bubbles)
