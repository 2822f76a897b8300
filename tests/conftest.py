import sys
from pathlib import Path
from typing import List, Tuple

import pytest
from PIL import Image

# ── Setup project path ───────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from layout_models.layout_types import PageConfig  # noqa: E402

PANEL_COLORS: List[Tuple[int, int, int]] = [
    (220, 20, 60),
    (30, 144, 255),
    (50, 205, 50),
    (255, 215, 0),
    (138, 43, 226),
    (255, 140, 0),
    (0, 206, 209),
    (199, 21, 133),
    (128, 128, 0),
    (70, 130, 180),
    (210, 105, 30),
    (46, 139, 87),
]


def make_config(**overrides) -> PageConfig:
    """Small page config for fast tests; override any field."""
    values = dict(
        total_panels=4,
        format="vertical",
        reading_order="rightToLeft",
        gutter_size=10,
        border_width=2,
        border_color="#000",
        background_color="#fff",
        page_width=400,
        page_height=600,
    )
    values.update(overrides)
    return PageConfig.from_dict(values)


def assert_color(pixel, expected, tolerance: int = 2):
    assert all(abs(a - b) <= tolerance for a, b in zip(pixel[:3], expected)), (
        f"pixel {pixel} != {expected}"
    )


@pytest.fixture
def panel_images(tmp_path: Path):
    """Factory writing ``count`` solid-colour PNG panels; returns their paths."""
    def _make(count: int, size: Tuple[int, int] = (64, 64)) -> List[str]:
        paths = []
        for i in range(count):
            path = tmp_path / f"panel_{i}.png"
            Image.new("RGB", size, PANEL_COLORS[i % len(PANEL_COLORS)]).save(path)
            paths.append(str(path))
        return paths
    return _make
