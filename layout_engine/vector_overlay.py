"""
Vector Overlay — Shape primitives shared by borders and speech bubbles
=======================================================================
Borders and bubbles are described as a small list of vector primitives
first, then either rasterized onto a transparent RGBA layer (Pillow) or
serialized as SVG markup.  Both paths read the same geometry, so what the
SVG shows is what lands in the page buffer.

Only the handful of shapes the page needs are supported: rectangles,
rounded rectangles, ellipses, polygons, polylines and centred text.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple, Union
from xml.sax.saxutils import escape

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
FontLoader = Callable[[int], ImageFont.FreeTypeFont]

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(text: str) -> str:
    """Escape ``& < > " '`` for embedding in SVG text or attributes."""
    return escape(text, _XML_ENTITIES)


# ── Primitives ───────────────────────────────────────────────────────
@dataclass(frozen=True)
class Rect:
    """Axis-aligned box; the stroke is drawn inside ``(x0, y0, x1, y1)``."""
    x0: float
    y0: float
    x1: float
    y1: float
    fill: Optional[str] = None
    outline: Optional[str] = None
    width: int = 1
    radius: float = 0


@dataclass(frozen=True)
class Ellipse:
    x0: float
    y0: float
    x1: float
    y1: float
    fill: Optional[str] = None
    outline: Optional[str] = None
    width: int = 1


@dataclass(frozen=True)
class Polygon:
    points: Tuple[Point, ...]
    fill: Optional[str] = None
    outline: Optional[str] = None
    width: int = 1


@dataclass(frozen=True)
class Polyline:
    points: Tuple[Point, ...]
    color: str = "#000000"
    width: int = 1


@dataclass(frozen=True)
class Text:
    """One line of text, horizontally centred on ``x`` with its baseline at ``y``."""
    x: float
    y: float
    text: str
    size: int = 14
    fill: str = "#000000"


Primitive = Union[Rect, Ellipse, Polygon, Polyline, Text]


@dataclass
class VectorOverlay:
    """An ordered list of primitives on a ``width × height`` canvas."""
    width: int
    height: int
    elements: List[Primitive] = field(default_factory=list)

    def extend(self, other: "VectorOverlay") -> None:
        self.elements.extend(other.elements)

    # ── Rasterization ────────────────────────────────────────────────
    def rasterize(self, font_loader: Optional[FontLoader] = None) -> Image.Image:
        """
        Draw every primitive, in order, onto a transparent RGBA layer.

        ``font_loader`` maps a pixel size to a font; it is only needed when
        the overlay contains :class:`Text` elements.
        """
        layer = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer, "RGBA")

        for element in self.elements:
            if isinstance(element, Rect):
                _draw_rect(draw, element)
            elif isinstance(element, Ellipse):
                draw.ellipse(
                    (element.x0, element.y0, element.x1 - 1, element.y1 - 1),
                    fill=element.fill,
                    outline=element.outline,
                    width=element.width,
                )
            elif isinstance(element, Polygon):
                if element.fill:
                    draw.polygon(list(element.points), fill=element.fill)
                if element.outline and element.width > 0:
                    closed = list(element.points) + [element.points[0]]
                    draw.line(closed, fill=element.outline, width=element.width, joint="curve")
            elif isinstance(element, Polyline):
                draw.line(list(element.points), fill=element.color, width=element.width, joint="curve")
            elif isinstance(element, Text):
                if font_loader is None:
                    raise ValueError("Overlay contains text but no font loader was given")
                if element.text:
                    draw.text(
                        (element.x, element.y),
                        element.text,
                        font=font_loader(element.size),
                        fill=element.fill,
                        anchor="ms",
                    )
            else:
                raise TypeError(f"Unsupported overlay element: {element!r}")

        return layer

    # ── SVG serialization ────────────────────────────────────────────
    def to_svg(self) -> str:
        """Serialize the overlay as a standalone SVG document."""
        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" '
            f'height="{self.height}" viewBox="0 0 {self.width} {self.height}">'
        ]
        for element in self.elements:
            parts.append(_svg_element(element))
        parts.append("</svg>")
        return "\n".join(parts)


def _draw_rect(draw: ImageDraw.ImageDraw, rect: Rect) -> None:
    # Pillow's box is inclusive, so the last pixel column/row is x1-1/y1-1.
    box = (rect.x0, rect.y0, rect.x1 - 1, rect.y1 - 1)
    outline = rect.outline if rect.width > 0 else None
    if rect.radius > 0:
        draw.rounded_rectangle(box, radius=rect.radius, fill=rect.fill, outline=outline, width=rect.width)
    else:
        draw.rectangle(box, fill=rect.fill, outline=outline, width=rect.width)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _paint(fill: Optional[str], outline: Optional[str], width: int) -> str:
    attrs = f'fill="{escape_xml(fill) if fill else "none"}"'
    if outline and width > 0:
        attrs += f' stroke="{escape_xml(outline)}" stroke-width="{width}"'
    return attrs


def _points(points: Sequence[Point]) -> str:
    return " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in points)


def _svg_element(element: Primitive) -> str:
    if isinstance(element, Rect):
        # SVG strokes straddle the path; inset by half the stroke to match Pillow.
        inset = element.width / 2 if element.outline else 0
        x = element.x0 + inset
        y = element.y0 + inset
        w = element.x1 - element.x0 - 2 * inset
        h = element.y1 - element.y0 - 2 * inset
        radius = f' rx="{_fmt(element.radius)}"' if element.radius > 0 else ""
        return (
            f'<rect x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(w)}" height="{_fmt(h)}"{radius} '
            f"{_paint(element.fill, element.outline, element.width)}/>"
        )
    if isinstance(element, Ellipse):
        cx = (element.x0 + element.x1) / 2
        cy = (element.y0 + element.y1) / 2
        rx = (element.x1 - element.x0) / 2
        ry = (element.y1 - element.y0) / 2
        return (
            f'<ellipse cx="{_fmt(cx)}" cy="{_fmt(cy)}" rx="{_fmt(rx)}" ry="{_fmt(ry)}" '
            f"{_paint(element.fill, element.outline, element.width)}/>"
        )
    if isinstance(element, Polygon):
        return (
            f'<polygon points="{_points(element.points)}" '
            f"{_paint(element.fill, element.outline, element.width)}/>"
        )
    if isinstance(element, Polyline):
        return (
            f'<polyline points="{_points(element.points)}" fill="none" '
            f'stroke="{escape_xml(element.color)}" stroke-width="{element.width}"/>'
        )
    if isinstance(element, Text):
        return (
            f'<text x="{_fmt(element.x)}" y="{_fmt(element.y)}" font-size="{element.size}" '
            f'text-anchor="middle" fill="{escape_xml(element.fill)}">{escape_xml(element.text)}</text>'
        )
    raise TypeError(f"Unsupported overlay element: {element!r}")
