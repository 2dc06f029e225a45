import argparse
import logging
import sys

from asciishade.config import (
    DEFAULT_CHARSET,
    DEFAULT_FONT_NAME,
    DEFAULT_FONT_SIZE,
    DEFAULT_HTML_PATH,
    DEFAULT_RESOLUTION,
    OUTPUT_METHODS,
    Settings,
)
from asciishade.errors import AsciiShadeError, ResourceUnavailable
from asciishade.glyph_atlas import GlyphRasterizer
from asciishade.matcher import RoundingPolicy
from asciishade.pixels import load_image
from asciishade.session import Session
from asciishade.shell import Shell

logger = logging.getLogger("asciishade")


def setup_logging(debug: bool) -> None:
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asciishade", description="Render an image as ASCII art")
    parser.add_argument("image", help="Path to input image")
    parser.add_argument(
        "--charset", default=DEFAULT_CHARSET, help=f"Initial characters to match with (default: {DEFAULT_CHARSET})"
    )
    parser.add_argument(
        "-r",
        "--resolution",
        type=int,
        default=DEFAULT_RESOLUTION,
        help=f"Characters per row (default: {DEFAULT_RESOLUTION})",
    )
    parser.add_argument(
        "--round",
        default=RoundingPolicy.ABS.value,
        choices=[p.value for p in RoundingPolicy],
        help="Rounding policy between two brightness levels (default: abs)",
    )
    parser.add_argument("-o", "--output", default=OUTPUT_METHODS[0], choices=OUTPUT_METHODS)
    parser.add_argument(
        "--html-path", default=DEFAULT_HTML_PATH, help=f"HTML output file (default: {DEFAULT_HTML_PATH})"
    )
    parser.add_argument("--font-name", default=DEFAULT_FONT_NAME, help="Font family named in HTML output")
    parser.add_argument("--font", default=None, help="TrueType font used to measure glyph density")
    parser.add_argument("--font-size", type=int, default=DEFAULT_FONT_SIZE)
    parser.add_argument(
        "--pad", action="store_true", default=False, help="Sample the power-of-two padded image instead of the original"
    )
    parser.add_argument(
        "--run", action="store_true", default=False, help="Convert once and exit instead of starting the shell"
    )
    parser.add_argument("--debug", action="store_true", default=False, help="Log debug information to stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        grid = load_image(args.image)
    except ResourceUnavailable as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    settings = Settings(
        resolution=args.resolution,
        rounding=args.round,
        output=args.output,
        html_path=args.html_path,
        font_name=args.font_name,
        sample_padded=args.pad,
    )
    try:
        rasterizer = GlyphRasterizer(args.font, args.font_size)
        session = Session(args.charset, rasterizer=rasterizer, settings=settings)
    except AsciiShadeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    shell = Shell(session, grid, sys.stdout)
    if not args.run:
        shell.run()
        return 0

    try:
        shell.execute("asciiArt")
    except AsciiShadeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
