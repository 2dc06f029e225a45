"""Brightness-to-character matching.

Characters are grouped into buckets by the ink density of their glyph. The
bucket keys are kept sorted so that the closest density to a requested
brightness is found by bisection.
"""

import bisect
import numbers
import threading
from collections.abc import Iterable
from enum import Enum

from asciishade.config import ASCII_MAX, ASCII_MIN
from asciishade.errors import InvalidArgument, PreconditionViolated
from asciishade.glyph_atlas import GlyphRasterizer, Rasterizer, glyph_density


class RoundingPolicy(str, Enum):
    ABS = "abs"
    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, value: "RoundingPolicy | str") -> "RoundingPolicy":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.lower() in {p.value for p in cls}:
            return cls(value.lower())
        raise InvalidArgument("Invalid rounding method. Valid options are: 'abs', 'up', 'down'.")


def _check_char(char: str) -> None:
    if not (isinstance(char, str) and len(char) == 1 and ASCII_MIN <= ord(char) <= ASCII_MAX):
        raise InvalidArgument(f"Character must be in the range [{ASCII_MIN}, {ASCII_MAX}].")


class BrightnessMatcher:
    """Sorted mapping from glyph density to the characters that produce it.

    ``min_density`` and ``max_density`` always equal the smallest and largest
    bucket key, or ``None`` when no characters are present. Densities are
    cached per character code, so a character removed and added again is not
    rasterized twice.

    All public methods hold the instance lock.
    """

    def __init__(self, charset: Iterable[str], rasterizer: Rasterizer | None = None):
        chars = list(dict.fromkeys(charset))
        if not chars:
            raise PreconditionViolated("Charset must contain at least one character.")
        for char in chars:
            _check_char(char)

        self._rasterizer = rasterizer if rasterizer is not None else GlyphRasterizer()
        self._lock = threading.Lock()
        self._keys: list[float] = []
        self._buckets: dict[float, dict[str, None]] = {}
        self._density_cache: dict[int, float] = {}
        self._min_density: float | None = None
        self._max_density: float | None = None
        self._policy = RoundingPolicy.ABS

        for char in chars:
            self._insert(char, self._density(char))

    @property
    def min_density(self) -> float | None:
        with self._lock:
            return self._min_density

    @property
    def max_density(self) -> float | None:
        with self._lock:
            return self._max_density

    @property
    def rounding_policy(self) -> RoundingPolicy:
        with self._lock:
            return self._policy

    def characters(self) -> list[str]:
        """All characters currently matchable, in code order."""
        with self._lock:
            return sorted(char for bucket in self._buckets.values() for char in bucket)

    def density_of(self, char: str) -> float:
        """Raw glyph density of a character, whether or not it is present."""
        _check_char(char)
        with self._lock:
            return self._density(char)

    def set_rounding_policy(self, policy: RoundingPolicy | str) -> None:
        policy = RoundingPolicy.parse(policy)
        with self._lock:
            self._policy = policy

    def lookup_nearest(self, target: float) -> str:
        """Return the character whose density is closest to ``target``.

        ``target`` is a normalized brightness in [0, 1]; it is stretched onto
        the current [min_density, max_density] range before matching. When it
        falls between two buckets the rounding policy decides, and within a
        bucket the character with the smallest code wins.
        """
        if not isinstance(target, numbers.Real) or not 0.0 <= target <= 1.0:
            raise InvalidArgument("Brightness must be in the range [0, 1].")

        with self._lock:
            if not self._keys:
                raise PreconditionViolated("No characters available for matching.")

            raw = target * (self._max_density - self._min_density) + self._min_density
            below = bisect.bisect_right(self._keys, raw)
            above = bisect.bisect_left(self._keys, raw)
            floor = self._keys[below - 1] if below > 0 else None
            ceil = self._keys[above] if above < len(self._keys) else None

            if floor is None:
                key = ceil
            elif ceil is None:
                key = floor
            elif self._policy is RoundingPolicy.UP:
                key = ceil
            elif self._policy is RoundingPolicy.DOWN:
                key = floor
            else:
                key = floor if raw - floor <= ceil - raw else ceil
            return min(self._buckets[key])

    def add_character(self, char: str) -> None:
        """Make a character matchable. Adding a present character changes nothing."""
        _check_char(char)
        with self._lock:
            self._insert(char, self._density(char))

    def remove_character(self, char: str) -> None:
        """Stop matching a character. Unknown characters are ignored."""
        _check_char(char)
        with self._lock:
            density = self._density_cache.get(ord(char))
            if density is None:
                return
            bucket = self._buckets.get(density)
            if bucket is None or char not in bucket:
                return

            del bucket[char]
            if not bucket:
                del self._buckets[density]
                del self._keys[bisect.bisect_left(self._keys, density)]

            if not self._keys:
                self._min_density = None
                self._max_density = None
                return
            if density == self._min_density:
                self._min_density = self._keys[0]
            if density == self._max_density:
                self._max_density = self._keys[-1]

    def _density(self, char: str) -> float:
        code = ord(char)
        density = self._density_cache.get(code)
        if density is None:
            density = glyph_density(self._rasterizer.rasterize(char))
            self._density_cache[code] = density
        return density

    def _insert(self, char: str, density: float) -> None:
        bucket = self._buckets.get(density)
        if bucket is None:
            bisect.insort(self._keys, density)
            bucket = self._buckets[density] = {}
        bucket[char] = None

        if self._min_density is None or density < self._min_density:
            self._min_density = density
        if self._max_density is None or density > self._max_density:
            self._max_density = density

    def __contains__(self, char) -> bool:
        if not isinstance(char, str) or len(char) != 1:
            return False
        with self._lock:
            density = self._density_cache.get(ord(char))
            return density is not None and char in self._buckets.get(density, ())

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._buckets.values())
