import shutil
import subprocess
from typing import Protocol

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from asciishade.config import DEFAULT_FONT_SIZE, GLYPH_CELL_SIZE
from asciishade.errors import ResourceUnavailable

# Rendered pixels at or above this level count as ink
INK_THRESHOLD = 128


class Rasterizer(Protocol):
    def rasterize(self, char: str) -> np.ndarray:
        """Render one character into a fixed-size boolean bitmap (True = ink)."""
        ...


def find_monospace_font() -> str | None:
    """Ask fontconfig for the system's monospace font file."""
    if shutil.which("fc-match") is None:
        return None
    result = subprocess.run(
        ["fc-match", "-f", "%{file}", "monospace"],
        capture_output=True,
        text=True,
    )
    if result.returncode == 0 and result.stdout.strip():
        return result.stdout.strip()
    return None


def _load_font(font_path: str | None, font_size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if font_path is not None:
        try:
            return ImageFont.truetype(font_path, font_size)
        except OSError as exc:
            raise ResourceUnavailable(f"Unable to load font file: {font_path}") from exc

    system_font = find_monospace_font()
    if system_font is not None:
        try:
            return ImageFont.truetype(system_font, font_size)
        except OSError:
            # fontconfig can report formats FreeType cannot open; use Pillow's bundled font
            return ImageFont.load_default(font_size)
    return ImageFont.load_default(font_size)


class GlyphRasterizer:
    """Renders printable characters into square boolean bitmaps with Pillow.

    Every glyph is drawn centred in a ``cell_size`` x ``cell_size`` canvas, so
    densities of different characters are comparable.
    """

    def __init__(
        self,
        font_path: str | None = None,
        font_size: int = DEFAULT_FONT_SIZE,
        cell_size: int = GLYPH_CELL_SIZE,
    ):
        self.font = _load_font(font_path, font_size)
        self.cell_size = cell_size

    def rasterize(self, char: str) -> np.ndarray:
        img = Image.new("L", (self.cell_size, self.cell_size), 0)
        draw = ImageDraw.Draw(img)
        if isinstance(self.font, ImageFont.FreeTypeFont):
            centre = self.cell_size / 2
            draw.text((centre, centre), char, fill=255, font=self.font, anchor="mm")
        else:
            # Bitmap fonts do not support anchors
            draw.text((0, 0), char, fill=255, font=self.font)
        return np.asarray(img) >= INK_THRESHOLD


def glyph_density(bitmap: np.ndarray) -> float:
    """Fraction of a glyph bitmap that is ink."""
    bitmap = np.asarray(bitmap, dtype=bool)
    if bitmap.size == 0:
        raise ValueError("Glyph bitmap is empty")
    return float(np.count_nonzero(bitmap)) / bitmap.size
