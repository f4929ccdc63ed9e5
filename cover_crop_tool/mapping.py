"""
Coordinate mapping between normalized overlay positions and pixels.

Three contexts use these transforms:

* the editor, which shows the whole image, so a percentage maps straight
  onto the displayed bounding box (``to_pixels`` / ``to_percent``);
* exports, which re-project the source-space point into a crop rectangle
  scaled to the output size (``reproject``);
* the feed preview, which approximates the cover crop with a constant zoom
  (``preview_percent``) because it never sees the real crop geometry.

All functions are pure and Qt-free.
"""

from cover_crop_tool.config import PREVIEW_ZOOM
from cover_crop_tool.models import CropGeometry, clamp_percent


def to_pixels(x: float, y: float, width: float, height: float) -> tuple[float, float]:
    """Percent position → pixel position inside a ``width`` × ``height`` box."""
    return x / 100 * width, y / 100 * height


def to_percent(px: float, py: float, width: float, height: float) -> tuple[float, float]:
    """Pixel position inside a box → clamped percent position."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Box must have positive size, got {width}x{height}")
    return clamp_percent(px / width * 100), clamp_percent(py / height * 100)


def reproject(
    x: float, y: float,
    source_w: int, source_h: int,
    geometry: CropGeometry,
) -> tuple[float, float]:
    """Map a percent position on the full source into crop output pixels.

    Points outside the crop rectangle come back off-canvas (negative or past
    the target size) rather than being clamped.
    """
    px, py = to_pixels(x, y, source_w, source_h)
    text_x = (px - geometry.sx) * (geometry.target_w / geometry.sw)
    text_y = (py - geometry.sy) * (geometry.target_h / geometry.sh)
    return text_x, text_y


def preview_percent(x: float, y: float) -> tuple[float, float]:
    """Approximate overlay position inside the 2.35:1 feed card, in percent.

    Not clamped: text near the top or bottom of the image falls outside the
    card, as it does in the exported cover.
    """
    return x, 50 + (y - 50) * PREVIEW_ZOOM
