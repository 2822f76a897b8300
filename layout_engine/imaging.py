"""Pillow helpers shared by the compositor, bubble overlay and exporter."""

import io
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from layout_models.errors import NotFoundError, ValidationError
from layout_models.layout_types import ComposedLayout

ImageSource = Union[str, Path, bytes, bytearray]


def open_image(source: ImageSource, label: str = "Image") -> Image.Image:
    """
    Decode ``source`` (a file path or raw bytes) into a fully loaded image.

    Raises
    ------
    NotFoundError
        The path does not exist or is not a regular file.
    ValidationError
        The data cannot be decoded as an image.
    """
    if isinstance(source, (bytes, bytearray)):
        stream = io.BytesIO(source)
        name = f"{label} <{len(source)} bytes>"
    else:
        path = Path(source)
        if not path.is_file():
            raise NotFoundError(f"{label} {path}")
        stream = path
        name = f"{label} {path}"

    try:
        with Image.open(stream) as image:
            image.load()
            return image.copy()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError(f"{name} could not be decoded: {exc}") from exc


def cover_fit(image: Image.Image, target_width: int, target_height: int,
              resample: int = Image.Resampling.LANCZOS) -> Image.Image:
    """Center crop ``image`` to the target aspect ratio, then resize it."""
    width, height = image.size
    aspect_ratio = width / height
    target_aspect_ratio = target_width / target_height

    if aspect_ratio > target_aspect_ratio:
        crop_width = max(1, round(height * target_aspect_ratio))
        crop_height = height
        left = (width - crop_width) // 2
        top = 0
    else:
        crop_height = max(1, round(width / target_aspect_ratio))
        crop_width = width
        left = 0
        top = (height - crop_height) // 2

    cropped = image.crop((left, top, left + crop_width, top + crop_height))
    if cropped.size == (target_width, target_height):
        return cropped
    return cropped.resize((target_width, target_height), resample)


def encode_png(image: Image.Image, **options) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG", **options)
    return buffer.getvalue()


def decode_layout(layout: ComposedLayout) -> Image.Image:
    """Decode a layout's page buffer and check it matches the stored size."""
    image = open_image(layout.buffer, label="Layout buffer")
    if image.size != (layout.width, layout.height):
        raise ValidationError(
            f"Layout buffer is {image.width}×{image.height}, "
            f"expected {layout.width}×{layout.height}"
        )
    return image
