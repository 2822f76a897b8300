"""Tests for layout_engine.export_service."""

import io
import re
from unittest import mock

import pytest
from PIL import Image

from conftest import make_config
from layout_engine.export_service import (
    Compression,
    ExportFormat,
    ExportOptions,
    ExportService,
    Resolution,
)
from layout_engine.page_compositor import compose
from layout_models.errors import ValidationError


@pytest.fixture
def layout(panel_images):
    return compose(panel_images(4), make_config())


@pytest.fixture
def service():
    return ExportService()


def _save_kwargs(spy, fmt):
    calls = [c for c in spy.call_args_list if c.kwargs.get("format") == fmt]
    assert calls, f"no {fmt} save recorded"
    return calls[-1].kwargs


class TestExportOptions:

    def test_defaults(self):
        options = ExportOptions()
        assert options.format is ExportFormat.PNG
        assert options.compression is Compression.MEDIUM
        assert options.resolution is Resolution.WEB
        assert options.dpi == 72

    def test_strings_are_normalised(self):
        options = ExportOptions(format="PDF", compression="high", resolution="print")
        assert options.format is ExportFormat.PDF
        assert options.dpi == 300

    def test_from_dict_fills_missing_keys(self):
        options = ExportOptions.from_dict({"format": "jpg", "title": "Chapter 1"})
        assert options.format is ExportFormat.JPG
        assert options.compression is Compression.MEDIUM
        assert options.title == "Chapter 1"

    @pytest.mark.parametrize("kwargs", [
        {"format": "gif"},
        {"compression": "extreme"},
        {"resolution": "retina"},
    ])
    def test_unsupported_values_raise(self, kwargs):
        with pytest.raises(ValidationError, match="Unsupported"):
            ExportOptions(**kwargs)


class TestPng:

    @pytest.mark.parametrize("compression, level", [("low", 1), ("medium", 6), ("high", 9)])
    def test_compression_maps_to_zlib_level(self, layout, service, compression, level):
        original = Image.Image.save
        with mock.patch.object(Image.Image, "save", autospec=True, side_effect=original) as spy:
            service.export(layout, ExportOptions(format="png", compression=compression))

        assert _save_kwargs(spy, "PNG")["compress_level"] == level

    def test_result_metadata(self, layout, service):
        result = service.export(layout, ExportOptions(format="png", resolution="print"))

        assert result.format is ExportFormat.PNG
        assert result.file_size == len(result.buffer)
        assert (result.width, result.height, result.dpi) == (400, 600, 300)

    def test_dpi_written_to_file(self, layout, service):
        result = service.export(layout, ExportOptions(format="png", resolution="print"))
        image = Image.open(io.BytesIO(result.buffer))

        assert image.format == "PNG"
        assert image.size == (400, 600)
        assert image.info["dpi"] == pytest.approx((300, 300), abs=0.5)


class TestJpg:

    @pytest.mark.parametrize("compression, quality", [("low", 60), ("medium", 80), ("high", 95)])
    def test_compression_maps_to_quality(self, layout, service, compression, quality):
        original = Image.Image.save
        with mock.patch.object(Image.Image, "save", autospec=True, side_effect=original) as spy:
            service.export(layout, ExportOptions(format="jpg", compression=compression))

        assert _save_kwargs(spy, "JPEG")["quality"] == quality

    def test_output_is_jpeg_with_dpi(self, layout, service):
        result = service.export(layout, ExportOptions(format="jpg", resolution="web"))
        image = Image.open(io.BytesIO(result.buffer))

        assert image.format == "JPEG"
        assert image.size == (400, 600)
        assert image.info["dpi"] == pytest.approx((72, 72), abs=0.5)

    def test_higher_quality_is_larger(self, layout, service):
        low = service.export(layout, ExportOptions(format="jpg", compression="low"))
        high = service.export(layout, ExportOptions(format="jpg", compression="high"))

        assert high.file_size >= low.file_size


class TestPdf:

    def test_output_is_a_pdf(self, layout, service):
        result = service.export(layout, ExportOptions(format="pdf"))

        assert result.buffer.startswith(b"%PDF")
        assert result.format is ExportFormat.PDF

    @pytest.mark.parametrize("resolution, size", [("web", (400, 600)), ("print", (96, 144))])
    def test_page_size_follows_dpi(self, layout, service, resolution, size):
        result = service.export(layout, ExportOptions(format="pdf", resolution=resolution))

        match = re.search(rb"/MediaBox\s*\[\s*0\s+0\s+([\d.]+)\s+([\d.]+)\s*\]", result.buffer)
        assert match is not None
        assert (float(match.group(1)), float(match.group(2))) == pytest.approx(size)

    def test_metadata_title_and_author(self, layout, service):
        options = ExportOptions(format="pdf", title="Chapter 1", author="Tester")
        result = service.export(layout, options)

        assert b"Chapter 1" in result.buffer
        assert b"Tester" in result.buffer


class TestSaveToFile:

    def test_creates_directory_and_appends_extension(self, layout, service, tmp_path):
        result = service.export(layout, ExportOptions(format="jpg"))
        target = tmp_path / "nested" / "dir"

        path = service.save_to_file(result, str(target), "page_01")

        assert path == str(target / "page_01.jpg")
        with open(path, "rb") as f:
            assert f.read() == result.buffer

    def test_keeps_existing_extension(self, layout, service, tmp_path):
        result = service.export(layout, ExportOptions(format="png"))

        path = service.save_to_file(result, str(tmp_path), "cover.png")

        assert path.endswith("cover.png")
        assert not path.endswith(".png.png")
