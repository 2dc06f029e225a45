import html
import logging
import sys
from pathlib import Path
from typing import Protocol, TextIO

from asciishade.config import DEFAULT_FONT_NAME, DEFAULT_HTML_PATH

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ background: #ffffff; color: #000000; }}
pre {{ font-family: '{font}', monospace; font-size: 4px; line-height: 1; letter-spacing: 0.2em; }}
</style>
</head>
<body>
<pre>
{body}
</pre>
</body>
</html>
"""


class AsciiOutput(Protocol):
    def out(self, lines: list[str]) -> None:
        """Emit one converted character grid."""
        ...


class ConsoleOutput:
    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def out(self, lines: list[str]) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        for line in lines:
            stream.write(" ".join(line) + "\n")
        stream.flush()


class HtmlOutput:
    """Writes the character grid into a standalone HTML page."""

    def __init__(self, path: str | Path = DEFAULT_HTML_PATH, font_name: str = DEFAULT_FONT_NAME):
        self.path = Path(path)
        self.font_name = font_name

    def render(self, lines: list[str]) -> str:
        body = "\n".join(html.escape(" ".join(line)) for line in lines)
        return HTML_TEMPLATE.format(
            title=html.escape(self.path.stem),
            font=html.escape(self.font_name, quote=True),
            body=body,
        )

    def out(self, lines: list[str]) -> None:
        self.path.write_text(self.render(lines), encoding="utf-8")
        logger.debug("Wrote %d rows to %s", len(lines), self.path)
