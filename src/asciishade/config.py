import hashlib
from dataclasses import dataclass, replace

ASCII_MIN = 32
ASCII_MAX = 126

DEFAULT_CHARSET = "0123456789"
DEFAULT_RESOLUTION = 2
RESOLUTION_FACTOR = 2
MIN_CHARS_TO_RUN = 2

# Glyphs are rasterized into a square cell of this many pixels per side
GLYPH_CELL_SIZE = 16
DEFAULT_FONT_SIZE = 16

CONSOLE_OUTPUT = "console"
HTML_OUTPUT = "html"
OUTPUT_METHODS = (CONSOLE_OUTPUT, HTML_OUTPUT)

DEFAULT_HTML_PATH = "out.html"
DEFAULT_FONT_NAME = "Courier New"


@dataclass(frozen=True)
class Settings:
    """Session settings that affect how a conversion is produced and shown."""

    resolution: int = DEFAULT_RESOLUTION
    rounding: str = "abs"
    output: str = CONSOLE_OUTPUT
    html_path: str = DEFAULT_HTML_PATH
    font_name: str = DEFAULT_FONT_NAME
    sample_padded: bool = False

    def with_changes(self, **changes) -> "Settings":
        return replace(self, **changes)

    def hash(self) -> str:
        """Deterministic hash for cache keying."""
        data = (
            f"{self.resolution}:{self.rounding}:{self.output}:"
            f"{self.html_path}:{self.font_name}:{self.sample_padded}"
        )
        return hashlib.blake2b(data.encode(), digest_size=6).hexdigest()
