"""
Export Service — Re-encode a composed page for delivery
========================================================
Supported formats:

  - **png**: lossless, ``compression`` picks the zlib level
  - **jpg**: ``compression`` picks a quality tier
  - **pdf**: a single page holding the raster full-bleed (reportlab)

``resolution`` chooses the DPI written into the file: 72 for on-screen
(``web``) and 300 for ``print``.  For PDF the DPI also fixes the physical
page size.

Usage::

    service = ExportService()
    result = service.export(layout, ExportOptions(format="jpg", compression="high"))
    service.save_to_file(result, "output", "page_01")
"""

import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from layout_models.errors import ValidationError
from layout_models.layout_types import ComposedLayout
from layout_engine.imaging import decode_layout, encode_png

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    PDF = "pdf"


class Compression(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Resolution(str, Enum):
    WEB = "web"
    PRINT = "print"


DPI = {Resolution.WEB: 72, Resolution.PRINT: 300}
PNG_COMPRESS_LEVEL = {Compression.LOW: 1, Compression.MEDIUM: 6, Compression.HIGH: 9}
JPEG_QUALITY = {Compression.LOW: 60, Compression.MEDIUM: 80, Compression.HIGH: 95}

DEFAULT_AUTHOR = "koma-fill"


def _parse(enum_cls, value: Any, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise ValidationError(f"Unsupported {name}: {value}")


@dataclass(frozen=True)
class ExportOptions:
    format: ExportFormat = ExportFormat.PNG
    compression: Compression = Compression.MEDIUM
    resolution: Resolution = Resolution.WEB
    title: Optional[str] = None
    author: Optional[str] = None

    def __post_init__(self):
        # frozen, so normalise through object.__setattr__
        object.__setattr__(self, "format", _parse(ExportFormat, self.format, "format"))
        object.__setattr__(self, "compression", _parse(Compression, self.compression, "compression"))
        object.__setattr__(self, "resolution", _parse(Resolution, self.resolution, "resolution"))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExportOptions":
        data = data or {}
        return cls(
            format=data.get("format", "png"),
            compression=data.get("compression", "medium"),
            resolution=data.get("resolution", "web"),
            title=data.get("title"),
            author=data.get("author"),
        )

    @property
    def dpi(self) -> int:
        return DPI[self.resolution]


@dataclass(frozen=True)
class ExportResult:
    buffer: bytes
    format: ExportFormat
    file_size: int
    width: int
    height: int
    dpi: int
    file_path: str = ""


class ExportService:
    """Encode :class:`ComposedLayout` pages as PNG, JPEG or PDF."""

    def export(self, layout: ComposedLayout, options: ExportOptions) -> ExportResult:
        """Dispatch on ``options.format``."""
        fmt = _parse(ExportFormat, options.format, "format")
        if fmt is ExportFormat.PNG:
            return self.export_png(layout, options)
        if fmt is ExportFormat.JPG:
            return self.export_jpg(layout, options)
        return self.export_pdf(layout, options)

    # ── Encoders ─────────────────────────────────────────────────────
    def export_png(self, layout: ComposedLayout, options: ExportOptions) -> ExportResult:
        image = decode_layout(layout)
        level = PNG_COMPRESS_LEVEL[options.compression]
        buffer = encode_png(image, compress_level=level, dpi=(options.dpi, options.dpi))
        logger.info(f"PNG export: compress_level={level}, {options.dpi} dpi, {len(buffer)} bytes")
        return self._result(buffer, ExportFormat.PNG, layout, options)

    def export_jpg(self, layout: ComposedLayout, options: ExportOptions) -> ExportResult:
        image = decode_layout(layout).convert("RGB")
        quality = JPEG_QUALITY[options.compression]
        stream = io.BytesIO()
        image.save(stream, format="JPEG", quality=quality, dpi=(options.dpi, options.dpi))
        buffer = stream.getvalue()
        logger.info(f"JPG export: quality={quality}, {options.dpi} dpi, {len(buffer)} bytes")
        return self._result(buffer, ExportFormat.JPG, layout, options)

    def export_pdf(self, layout: ComposedLayout, options: ExportOptions) -> ExportResult:
        """
        Embed the page raster in a single-page PDF.

        The page measures ``pixels * 72 / dpi`` points on each side, so a web
        export maps one pixel to one point and a print export prints at
        300 dpi.
        """
        image = decode_layout(layout).convert("RGB")
        page_width = layout.width * 72 / options.dpi
        page_height = layout.height * 72 / options.dpi

        stream = io.BytesIO()
        pdf = canvas.Canvas(
            stream,
            pagesize=(page_width, page_height),
            pageCompression=0 if options.compression is Compression.LOW else 1,
        )
        pdf.setTitle(options.title or "koma-fill page")
        pdf.setAuthor(options.author or DEFAULT_AUTHOR)
        pdf.setCreator(DEFAULT_AUTHOR)
        pdf.drawImage(ImageReader(image), 0, 0, width=page_width, height=page_height)
        pdf.showPage()
        pdf.save()

        buffer = stream.getvalue()
        logger.info(
            f"PDF export: {page_width:.1f}×{page_height:.1f} pt page, "
            f"{options.dpi} dpi, {len(buffer)} bytes"
        )
        return self._result(buffer, ExportFormat.PDF, layout, options)

    # ── Files ────────────────────────────────────────────────────────
    def save_to_file(self, result: ExportResult, output_dir: str, filename: str) -> str:
        """
        Write ``result`` to ``output_dir/filename.<format>``.

        The directory is created if needed; the extension is only appended
        when ``filename`` does not already end with it.
        """
        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)

        extension = f".{ExportFormat(result.format).value}"
        if not filename.lower().endswith(extension):
            filename = f"{filename}{extension}"

        path = directory / filename
        path.write_bytes(result.buffer)
        logger.info(f"Saved {extension[1:]} export to {path}")
        return str(path)

    @staticmethod
    def _result(buffer: bytes, fmt: ExportFormat, layout: ComposedLayout,
                options: ExportOptions) -> ExportResult:
        return ExportResult(
            buffer=buffer,
            format=fmt,
            file_size=len(buffer),
            width=layout.width,
            height=layout.height,
            dpi=options.dpi,
        )
