import numbers
import threading
from dataclasses import dataclass

import numpy as np

from asciishade.errors import InvalidArgument, PreconditionViolated
from asciishade.pixels import WHITE, PixelGrid

# Rec. 709 luma weights for (R, G, B)
LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])
MAX_BRIGHTNESS = 255.0
PADDING_COLOUR = WHITE


@dataclass(frozen=True)
class BrightnessCache:
    fingerprint: bytes
    resolution: int
    brightness: np.ndarray  # read-only (rows, resolution)


def next_power_of_two(value: int) -> int:
    """Smallest power of two >= value; non-positive values map to 1."""
    if value <= 0:
        return 1
    return 1 << (value - 1).bit_length()


def tile_brightness(pixels: np.ndarray, tile_size: int, rows: int, cols: int) -> np.ndarray:
    """Average normalized luminance of each ``tile_size`` square tile.

    Returns array of shape (rows, cols) with values in [0, 1].
    """
    luminance = pixels.astype(np.float64) @ LUMINANCE_WEIGHTS
    trimmed = luminance[: rows * tile_size, : cols * tile_size]
    # (rows, tile, cols, tile) -> (rows, cols, tile, tile)
    tiles = trimmed.reshape(rows, tile_size, cols, tile_size).transpose(0, 2, 1, 3)
    # Weight rounding can push pure white just past 1.0
    return np.clip(tiles.mean(axis=(2, 3)) / MAX_BRIGHTNESS, 0.0, 1.0)


class Tiler:
    """Pads images, splits them into square tiles and samples their brightness.

    The most recent brightness matrix is kept together with the grid
    fingerprint and resolution it was computed for; asking again with an equal
    grid and the same resolution returns it without recomputation.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cache: BrightnessCache | None = None

    @property
    def cache(self) -> BrightnessCache | None:
        with self._lock:
            return self._cache

    def pad(self, grid: PixelGrid) -> PixelGrid:
        """Centre ``grid`` on a white canvas whose sides are powers of two.

        Odd padding puts the extra row or column on the bottom or right.
        """
        new_height = next_power_of_two(grid.height)
        new_width = next_power_of_two(grid.width)
        if (new_height, new_width) == (grid.height, grid.width):
            return grid

        top = (new_height - grid.height) // 2
        left = (new_width - grid.width) // 2
        canvas = np.empty((new_height, new_width, 3), dtype=np.uint8)
        canvas[:] = PADDING_COLOUR
        canvas[top : top + grid.height, left : left + grid.width] = grid.pixels
        return PixelGrid(canvas)

    def sample_brightness(self, grid: PixelGrid, resolution: int) -> np.ndarray:
        """Brightness of each tile when ``grid`` is split ``resolution`` tiles wide.

        Tiles are squares of ``width // resolution`` pixels; rows of pixels
        below the last whole tile row are ignored. The returned array is
        read-only because it is shared with the cache.
        """
        tile_size = self._tile_size(grid, resolution)
        with self._lock:
            cached = self._cache
            if cached is not None and cached.resolution == resolution and cached.fingerprint == grid.fingerprint:
                return cached.brightness

            rows = grid.height // tile_size
            brightness = tile_brightness(grid.pixels, tile_size, rows, resolution)
            brightness.setflags(write=False)
            self._cache = BrightnessCache(grid.fingerprint, resolution, brightness)
            return brightness

    def sample_padded(self, grid: PixelGrid, resolution: int) -> np.ndarray:
        return self.sample_brightness(self.pad(grid), resolution)

    @staticmethod
    def _tile_size(grid: PixelGrid, resolution: int) -> int:
        if isinstance(resolution, bool) or not isinstance(resolution, numbers.Integral) or resolution < 1:
            raise InvalidArgument(f"Resolution must be a positive integer, got {resolution!r}")
        resolution = int(resolution)
        if resolution > grid.width:
            raise PreconditionViolated(
                f"Resolution {resolution} exceeds the image width of {grid.width} pixels."
            )
        if grid.width % resolution:
            raise PreconditionViolated(
                f"Resolution {resolution} does not evenly divide the image width of {grid.width} pixels."
            )
        return grid.width // resolution


def char_bounds(grid: PixelGrid) -> tuple[int, int]:
    """Smallest and largest number of characters per row usable for ``grid``."""
    return max(1, grid.width // grid.height), grid.width
