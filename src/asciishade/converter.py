from pathlib import Path

from PIL import Image

from asciishade.matcher import BrightnessMatcher
from asciishade.pixels import PixelGrid, load_image
from asciishade.tiler import Tiler, char_bounds


class ConversionPipeline:
    """Turns a PixelGrid into rows of characters.

    By default brightness is sampled from the grid as given; the padded copy
    only determines the power-of-two canvas. With ``sample_padded`` the
    padded grid is sampled instead, which makes every power-of-two
    resolution up to the padded width divide evenly.
    """

    def __init__(self, tiler: Tiler | None = None, sample_padded: bool = False):
        self.tiler = tiler if tiler is not None else Tiler()
        self.sample_padded = sample_padded

    def sampling_grid(self, grid: PixelGrid) -> PixelGrid:
        padded = self.tiler.pad(grid)
        return padded if self.sample_padded else grid

    def char_bounds(self, grid: PixelGrid) -> tuple[int, int]:
        return char_bounds(self.sampling_grid(grid))

    def convert(self, grid: PixelGrid, resolution: int, matcher: BrightnessMatcher) -> list[str]:
        brightness = self.tiler.sample_brightness(self.sampling_grid(grid), resolution)
        return ["".join(matcher.lookup_nearest(float(value)) for value in row) for row in brightness]


def image_to_ascii(
    image: PixelGrid | Image.Image | str | Path,
    matcher: BrightnessMatcher,
    resolution: int,
    pipeline: ConversionPipeline | None = None,
) -> str:
    if isinstance(image, Image.Image):
        grid = PixelGrid.from_image(image)
    elif isinstance(image, PixelGrid):
        grid = image
    else:
        grid = load_image(image)

    if pipeline is None:
        pipeline = ConversionPipeline()
    return "\n".join(pipeline.convert(grid, resolution, matcher))
