# src/infrastructure/highlight_painter.py

import io
from pathlib import Path
from typing import Sequence, Tuple

from PIL import Image, ImageDraw

from src.domain.models import HighlightRect, RasterImage


# rgba(255, 255, 0, 0.4)
HIGHLIGHT_FILL: Tuple[int, int, int, int] = (255, 255, 0, 102)


def paint_highlights(
    raster: RasterImage,
    rects: Sequence[HighlightRect],
    fill: Tuple[int, int, int, int] = HIGHLIGHT_FILL,
) -> RasterImage:
    """
    Composite translucent highlight rectangles over a rendered page.

    All rectangles are drawn onto one overlay before compositing, so
    repeated rectangles for the same fragment do not darken the fill.
    """
    if not rects:
        return raster

    with Image.open(io.BytesIO(raster.png)) as image:
        base = image.convert("RGBA")

    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    for rect in rects:
        left, right = sorted((rect.x, rect.x + rect.width))
        top, bottom = sorted((rect.y, rect.y + rect.height))
        draw.rectangle([left, top, right, bottom], fill=fill)

    composited = Image.alpha_composite(base, overlay).convert("RGB")
    buffer = io.BytesIO()
    composited.save(buffer, format="PNG")

    return RasterImage(
        page_number=raster.page_number,
        width=composited.width,
        height=composited.height,
        png=buffer.getvalue(),
    )


def write_png(raster: RasterImage, output_directory: str) -> Path:
    directory = Path(output_directory)
    directory.mkdir(parents=True, exist_ok=True)
    output_path = directory / f"page_{raster.page_number:03d}.png"
    output_path.write_bytes(raster.png)
    return output_path
