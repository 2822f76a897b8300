"""
Layout Types — Value objects shared by every engine stage
==========================================================
All objects here are immutable and request-scoped: they are built fresh for
each composition call and handed back to the caller.

Config dictionaries may use either snake_case keys or the camelCase keys of
the project records (``gutterSize``, ``readingOrder`` …).
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from layout_models.errors import ValidationError


# ── Enumerations ─────────────────────────────────────────────────────
class LayoutFormat(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    SQUARE = "square"


class ReadingOrder(str, Enum):
    RIGHT_TO_LEFT = "rightToLeft"
    LEFT_TO_RIGHT = "leftToRight"


class BubblePosition(str, Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class BubbleStyle(str, Enum):
    ROUNDED = "rounded"
    CLOUD = "cloud"
    SPIKED = "spiked"
    RECTANGULAR = "rectangular"


# Older project records store the reading order by culture name.
_READING_ORDER_ALIASES = {
    "japanese": ReadingOrder.RIGHT_TO_LEFT,
    "western": ReadingOrder.LEFT_TO_RIGHT,
    "right_to_left": ReadingOrder.RIGHT_TO_LEFT,
    "left_to_right": ReadingOrder.LEFT_TO_RIGHT,
    "rtl": ReadingOrder.RIGHT_TO_LEFT,
    "ltr": ReadingOrder.LEFT_TO_RIGHT,
}

_CAMEL_KEYS = {
    "totalPanels": "total_panels",
    "readingOrder": "reading_order",
    "gutterSize": "gutter_size",
    "borderWidth": "border_width",
    "borderColor": "border_color",
    "backgroundColor": "background_color",
    "pageWidth": "page_width",
    "pageHeight": "page_height",
    "panelIndex": "panel_index",
}


def _coerce_enum(enum_cls, value: Any, name: str, aliases: Optional[Dict[str, Any]] = None):
    """Turn a raw config value into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    if aliases and isinstance(value, str) and value.lower() in aliases:
        return aliases[value.lower()]
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {name} {value!r} (expected one of: {allowed})")


def _normalise_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_CAMEL_KEYS.get(key, key): value for key, value in data.items()}


def reading_order_from(value: Any) -> ReadingOrder:
    """Parse a reading order, accepting the ``japanese``/``western`` aliases."""
    return _coerce_enum(ReadingOrder, value, "reading order", _READING_ORDER_ALIASES)


# ── Page configuration ───────────────────────────────────────────────
@dataclass(frozen=True)
class PageConfig:
    """Declarative description of one comic page."""
    total_panels: int = 4
    format: LayoutFormat = LayoutFormat.VERTICAL
    reading_order: ReadingOrder = ReadingOrder.RIGHT_TO_LEFT
    gutter_size: int = 10          # px between cells and at page edges
    border_width: int = 2          # px, 0 disables borders
    border_color: str = "#000000"
    background_color: str = "#FFFFFF"
    page_width: int = 800
    page_height: int = 1200

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PageConfig":
        """
        Build a config from a parsed YAML/JSON mapping.

        Unknown keys are ignored so that a whole ``layout:`` section can be
        passed in.  Enum values are coerced; numbers are not clamped.
        """
        values = _normalise_keys(data or {})
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in values.items() if k in known}

        if "format" in kwargs:
            kwargs["format"] = _coerce_enum(LayoutFormat, kwargs["format"], "layout format")
        if "reading_order" in kwargs:
            kwargs["reading_order"] = reading_order_from(kwargs["reading_order"])
        return cls(**kwargs)

    def with_overrides(self, **changes: Any) -> "PageConfig":
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if "format" in changes:
            changes["format"] = _coerce_enum(LayoutFormat, changes["format"], "layout format")
        if "reading_order" in changes:
            changes["reading_order"] = reading_order_from(changes["reading_order"])
        return replace(self, **changes)

    def validate(self) -> None:
        """Raise :class:`ValidationError` if any field is out of range."""
        _coerce_enum(LayoutFormat, self.format, "layout format")
        reading_order_from(self.reading_order)

        for name in ("total_panels", "page_width", "page_height"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValidationError(f"{name} must be a positive integer, got {value!r}")

        for name in ("gutter_size", "border_width"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPanels": self.total_panels,
            "format": LayoutFormat(self.format).value,
            "readingOrder": reading_order_from(self.reading_order).value,
            "gutterSize": self.gutter_size,
            "borderWidth": self.border_width,
            "borderColor": self.border_color,
            "backgroundColor": self.background_color,
            "pageWidth": self.page_width,
            "pageHeight": self.page_height,
        }


DEFAULT_PAGE_CONFIG = PageConfig()


# ── Geometry ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class GridCell:
    """Absolute page-pixel rect assigned to one panel."""
    panel_index: int    # logical reading-order index (0 = read first)
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def to_dict(self) -> Dict[str, int]:
        return {
            "panelIndex": self.panel_index,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class ComposedLayout:
    """A rasterized page plus the rect every panel was placed into."""
    buffer: bytes
    width: int
    height: int
    format: str = "png"
    panel_positions: Tuple[GridCell, ...] = field(default_factory=tuple)

    def find_cell(self, panel_index: int) -> Optional[GridCell]:
        for cell in self.panel_positions:
            if cell.panel_index == panel_index:
                return cell
        return None


@dataclass(frozen=True)
class SpeechBubble:
    """A text bubble anchored inside one panel."""
    panel_index: int
    text: str
    position: BubblePosition = BubblePosition.TOP
    style: BubbleStyle = BubbleStyle.ROUNDED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeechBubble":
        values = _normalise_keys(data)
        if "panel_index" not in values:
            raise ValidationError("speech bubble is missing panelIndex")
        try:
            panel_index = int(values["panel_index"])
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid panelIndex {values['panel_index']!r}")

        return cls(
            panel_index=panel_index,
            text=str(values.get("text", "")),
            position=_coerce_enum(BubblePosition, values.get("position", "top"), "bubble position"),
            style=_coerce_enum(BubbleStyle, values.get("style", "rounded"), "bubble style"),
        )
