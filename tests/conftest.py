import numpy as np
import pytest

from asciishade.glyph_atlas import find_monospace_font

# Fake glyphs are 4x4, so densities are multiples of 1/16
FAKE_CELL = 4

FONT_PATH = find_monospace_font()


class FakeRasterizer:
    """Glyph source with hand-picked ink counts; counts every rasterization."""

    def __init__(self, ink: dict[str, int]):
        self.ink = ink
        self.calls: list[str] = []

    def rasterize(self, char: str) -> np.ndarray:
        self.calls.append(char)
        bitmap = np.zeros(FAKE_CELL * FAKE_CELL, dtype=bool)
        bitmap[: self.ink.get(char, 0)] = True
        return bitmap.reshape(FAKE_CELL, FAKE_CELL)


@pytest.fixture
def make_rasterizer():
    return FakeRasterizer


@pytest.fixture
def font_path():
    if FONT_PATH is None:
        pytest.skip("No monospace font found on system")
    return FONT_PATH
