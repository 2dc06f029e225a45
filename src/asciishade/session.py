"""Mutable state behind the interactive shell.

A Session owns the active character flags and the BrightnessMatcher and keeps
them in step: a code flagged active is in exactly one matcher bucket, an
inactive code in none.
"""

import logging

from asciishade.config import (
    ASCII_MAX,
    ASCII_MIN,
    DEFAULT_CHARSET,
    MIN_CHARS_TO_RUN,
    OUTPUT_METHODS,
    RESOLUTION_FACTOR,
    Settings,
)
from asciishade.converter import ConversionPipeline
from asciishade.errors import InvalidArgument, PreconditionViolated
from asciishade.glyph_atlas import Rasterizer
from asciishade.matcher import BrightnessMatcher, RoundingPolicy
from asciishade.pixels import PixelGrid
from asciishade.tiler import char_bounds

logger = logging.getLogger(__name__)

ALL_KEYWORD = "all"
SPACE_KEYWORD = "space"
RANGE_SEPARATOR = "-"

ERR_ADD_FORMAT = "Did not add due to incorrect format."
ERR_REMOVE_FORMAT = "Did not remove due to incorrect format."
ERR_RESOLUTION_BOUNDARIES = "Did not change resolution due to exceeding boundaries."
ERR_RESOLUTION_DIVIDE = (
    "Did not change resolution: {} does not evenly divide the image width of {} pixels. "
    "Use 'pad on' to sample the power-of-two padded image."
)
ERR_OUTPUT_FORMAT = "Did not change output method due to incorrect format."
ERR_ROUND_FORMAT = "Did not change rounding method due to incorrect format."
ERR_CHARSET_TOO_SMALL = "Did not execute. Charset is too small."


def parse_char_spec(spec: str, error_message: str) -> list[str]:
    """Expand an add/remove argument into the characters it names.

    Accepts a single character, ``all``, ``space`` or an inclusive range such
    as ``a-z`` (reversed ranges are swapped).
    """
    if spec == ALL_KEYWORD:
        return [chr(code) for code in range(ASCII_MIN, ASCII_MAX + 1)]
    if spec == SPACE_KEYWORD:
        return [" "]
    if len(spec) == 1:
        chars = [spec]
    elif len(spec) == 3 and spec[1] == RANGE_SEPARATOR:
        start, end = sorted((ord(spec[0]), ord(spec[2])))
        chars = [chr(code) for code in range(start, end + 1)]
    else:
        raise InvalidArgument(error_message)
    if any(not ASCII_MIN <= ord(char) <= ASCII_MAX for char in chars):
        raise InvalidArgument(error_message)
    return chars


class Session:
    def __init__(
        self,
        charset: str = DEFAULT_CHARSET,
        rasterizer: Rasterizer | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings if settings is not None else Settings()
        self._active = [False] * (ASCII_MAX - ASCII_MIN + 1)
        self.matcher = BrightnessMatcher(charset, rasterizer=rasterizer)
        self.matcher.set_rounding_policy(self.settings.rounding)
        for char in charset:
            self._active[ord(char) - ASCII_MIN] = True
        self.pipeline = ConversionPipeline(sample_padded=self.settings.sample_padded)

    @property
    def resolution(self) -> int:
        return self.settings.resolution

    @property
    def output(self) -> str:
        return self.settings.output

    def active_characters(self) -> list[str]:
        return [chr(ASCII_MIN + i) for i, active in enumerate(self._active) if active]

    def is_active(self, char: str) -> bool:
        return ASCII_MIN <= ord(char) <= ASCII_MAX and self._active[ord(char) - ASCII_MIN]

    def add(self, spec: str) -> None:
        for char in parse_char_spec(spec, ERR_ADD_FORMAT):
            if not self.is_active(char):
                self.matcher.add_character(char)
                self._active[ord(char) - ASCII_MIN] = True
        logger.debug("Active charset after add %r: %d characters", spec, len(self.matcher))

    def remove(self, spec: str) -> None:
        for char in parse_char_spec(spec, ERR_REMOVE_FORMAT):
            if self.is_active(char):
                self.matcher.remove_character(char)
                self._active[ord(char) - ASCII_MIN] = False
        logger.debug("Active charset after remove %r: %d characters", spec, len(self.matcher))

    def resolution_up(self, grid: PixelGrid) -> int:
        return self._change_resolution(grid, self.resolution * RESOLUTION_FACTOR)

    def resolution_down(self, grid: PixelGrid) -> int:
        return self._change_resolution(grid, self.resolution // RESOLUTION_FACTOR)

    def _change_resolution(self, grid: PixelGrid, new_resolution: int) -> int:
        sampled = self.pipeline.sampling_grid(grid)
        min_chars, max_chars = char_bounds(sampled)
        if not min_chars <= new_resolution <= max_chars:
            raise PreconditionViolated(ERR_RESOLUTION_BOUNDARIES)
        # Tiles must cover the sampled width exactly
        if sampled.width % new_resolution:
            raise PreconditionViolated(ERR_RESOLUTION_DIVIDE.format(new_resolution, sampled.width))
        self.settings = self.settings.with_changes(resolution=new_resolution)
        return new_resolution

    def set_rounding(self, word: str) -> None:
        if word not in {p.value for p in RoundingPolicy}:
            raise InvalidArgument(ERR_ROUND_FORMAT)
        self.matcher.set_rounding_policy(word)
        self.settings = self.settings.with_changes(rounding=word)

    def set_output(self, method: str) -> None:
        if method not in OUTPUT_METHODS:
            raise InvalidArgument(ERR_OUTPUT_FORMAT)
        self.settings = self.settings.with_changes(output=method)

    def set_pad(self, sample_padded: bool) -> None:
        self.pipeline.sample_padded = sample_padded
        self.settings = self.settings.with_changes(sample_padded=sample_padded)

    def run(self, grid: PixelGrid) -> list[str]:
        if len(self.matcher) < MIN_CHARS_TO_RUN:
            raise PreconditionViolated(ERR_CHARSET_TOO_SMALL)
        logger.debug(
            "Converting %r with settings %s: resolution %d (%s rounding, padded=%s, output=%s)",
            grid,
            self.settings.hash(),
            self.resolution,
            self.settings.rounding,
            self.settings.sample_padded,
            self.settings.output,
        )
        return self.pipeline.convert(grid, self.resolution, self.matcher)
