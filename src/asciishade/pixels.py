import hashlib
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from asciishade.errors import InvalidArgument, ResourceUnavailable

WHITE = (255, 255, 255)


def _fingerprint(pixels: np.ndarray) -> bytes:
    digest = hashlib.blake2b(digest_size=16)
    digest.update(np.asarray(pixels.shape, dtype=np.int64).tobytes())
    digest.update(pixels.tobytes())
    return digest.digest()


class PixelGrid:
    """Immutable rectangular grid of RGB samples.

    Two grids with the same dimensions and samples compare equal and share a
    fingerprint, which is what brightness caches key on.
    """

    def __init__(self, pixels):
        arr = np.asarray(pixels)
        if arr.ndim != 3 or arr.shape[2] != 3:
            raise InvalidArgument(f"Pixel data must have shape (height, width, 3), got {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidArgument("Pixel grid must be at least 1x1")
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise InvalidArgument("Pixel samples must be in the range [0, 255]")
        arr = np.array(arr, dtype=np.uint8, order="C")
        arr.setflags(write=False)
        self._pixels = arr
        self._fingerprint = _fingerprint(arr)

    @classmethod
    def from_rows(cls, samples: Sequence, width: int, height: int) -> "PixelGrid":
        """Build a grid from row-major ``(r, g, b)`` samples.

        ``samples`` may be flat (``width * height`` triples) or nested by row;
        either way it has to fill the grid exactly.
        """
        arr = np.asarray(samples)
        if arr.size != width * height * 3:
            raise InvalidArgument(
                f"Expected {width * height} samples for a {width}x{height} grid, got {arr.size // 3}"
            )
        return cls(arr.reshape(height, width, 3))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelGrid":
        return cls(np.asarray(image.convert("RGB")))

    @classmethod
    def filled(cls, width: int, height: int, colour: tuple[int, int, int] = WHITE) -> "PixelGrid":
        if width <= 0 or height <= 0:
            raise InvalidArgument(f"Grid dimensions must be positive, got {width}x{height}")
        return cls(np.full((height, width, 3), colour, dtype=np.uint8))

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        """Read-only ``(height, width, 3)`` uint8 view of the samples."""
        return self._pixels

    @property
    def fingerprint(self) -> bytes:
        return self._fingerprint

    def sample_at(self, row: int, col: int) -> tuple[int, int, int]:
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"Sample ({row}, {col}) outside {self.width}x{self.height} grid")
        r, g, b = self._pixels[row, col]
        return int(r), int(g), int(b)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._pixels)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self._fingerprint == other._fingerprint and np.array_equal(self._pixels, other._pixels)

    def __hash__(self):
        return hash(self._fingerprint)

    def __repr__(self):
        return f"PixelGrid({self.width}x{self.height}, {self._fingerprint.hex()[:8]})"


def load_image(path: str | Path) -> PixelGrid:
    """Decode an image file into a PixelGrid."""
    path = Path(path)
    try:
        with Image.open(path) as image:
            return PixelGrid.from_image(image)
    except (OSError, UnidentifiedImageError) as exc:
        raise ResourceUnavailable(f"Unable to load image file: {path}") from exc
