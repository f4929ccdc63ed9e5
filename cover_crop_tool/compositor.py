"""
Export compositing (Qt-free).

Crops and resamples the source image for an export kind, draws the overlay
text re-projected into the crop with a soft drop shadow, and writes the
result as a PNG.  Everything up to the final file write happens in memory,
so a failed export never leaves a partial file behind.
"""

import logging
import os
import time
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFilter

from cover_crop_tool.config import (
    DEFAULT_TEXT_COLOR, EXPORT_FILE_PREFIX,
    SHADOW_RGBA, SHADOW_BLUR_DIVISOR, SHADOW_OFFSET_DIVISOR,
)
from cover_crop_tool.fonts import find_font, load_pil_font
from cover_crop_tool.image_io import encode_png, unique_path
from cover_crop_tool.mapping import reproject
from cover_crop_tool.models import CropGeometry, ExportKind, OverlayState, plan_crop

logger = logging.getLogger(__name__)


def font_size_for(kind: ExportKind, target_h: int) -> float:
    """Overlay font size in pixels for an export of height *target_h*."""
    return target_h * kind.font_ratio


def _parse_color(color: str) -> tuple[int, int, int, int]:
    try:
        rgb = ImageColor.getrgb(color)
    except ValueError:
        logger.warning("Invalid overlay color %r; using %s", color, DEFAULT_TEXT_COLOR)
        rgb = ImageColor.getrgb(DEFAULT_TEXT_COLOR)
    if len(rgb) == 3:
        return (*rgb, 255)
    return rgb


def draw_overlay_text(
    base: Image.Image,
    overlay: OverlayState,
    geometry: CropGeometry,
    source_size: tuple[int, int],
    kind: ExportKind,
    fonts: list[dict],
) -> Image.Image:
    """Draw the overlay text centred on its re-projected position."""
    font_size = font_size_for(kind, geometry.target_h)
    text_x, text_y = reproject(overlay.x, overlay.y, source_size[0], source_size[1], geometry)
    font = load_pil_font(find_font(fonts, overlay.font), font_size)

    result = base.convert("RGBA")

    # Shadow on its own layer so the blur doesn't touch the image
    shadow = Image.new("RGBA", result.size, (0, 0, 0, 0))
    ImageDraw.Draw(shadow).text(
        (text_x, text_y + font_size / SHADOW_OFFSET_DIVISOR),
        overlay.text, font=font, fill=SHADOW_RGBA, anchor="mm",
    )
    blur = font_size / SHADOW_BLUR_DIVISOR
    shadow = shadow.filter(ImageFilter.GaussianBlur(radius=blur / 2))
    result = Image.alpha_composite(result, shadow)

    ImageDraw.Draw(result).text(
        (text_x, text_y), overlay.text,
        font=font, fill=_parse_color(overlay.color), anchor="mm",
    )
    return result.convert("RGB")


def compose(
    source: Image.Image,
    overlay: OverlayState,
    kind: ExportKind,
    show_overlay: bool,
    fonts: list[dict],
) -> Image.Image:
    """Build the export image for *kind*. Deterministic for identical inputs."""
    geometry = plan_crop(kind, source.width, source.height)
    base = source.convert("RGB").resize(
        geometry.target_size, Image.Resampling.LANCZOS, box=geometry.box,
    )
    if show_overlay and overlay.has_text():
        base = draw_overlay_text(base, overlay, geometry, source.size, kind, fonts)
    return base


def export_filename(kind: ExportKind, timestamp_ms: int) -> str:
    return f"{EXPORT_FILE_PREFIX}-{kind.value}-{timestamp_ms}.png"


def export_image(
    source: Image.Image,
    overlay: OverlayState,
    kind: ExportKind,
    output_dir: Path,
    show_overlay: bool,
    fonts: list[dict],
    timestamp_ms: int | None = None,
) -> Path:
    """Compose and write one export, returning the written path."""
    data = encode_png(compose(source, overlay, kind, show_overlay, fonts))

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = unique_path(output_dir / export_filename(kind, timestamp_ms))

    tmp_path = out_path.with_name(out_path.name + ".part")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, out_path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.info("Exported %s (%d bytes) to %s", kind.value, len(data), out_path)
    return out_path
