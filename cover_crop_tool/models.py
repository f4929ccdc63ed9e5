"""
Data models and crop-geometry utilities.

OverlayState is the single text annotation shared by the editor, the feed
preview and every export.  Its position is stored as percentages of the full,
uncropped source image, so it survives any change of image or view size.
``plan_crop`` turns an ExportKind and the source dimensions into the
CropGeometry used by the compositor.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from cover_crop_tool.config import (
    COVER_TARGET_W, COVER_TARGET_H, ICON_TARGET_W, ICON_TARGET_H,
    FULL_FONT_RATIO, CROPPED_FONT_RATIO, DEFAULT_TEXT_COLOR, DEFAULT_FONTS,
)

logger = logging.getLogger(__name__)


def clamp_percent(value: float) -> float:
    """Clamp a percentage to [0, 100]. NaN becomes 0."""
    value = float(value)
    if value != value:
        return 0.0
    return max(0.0, min(100.0, value))


# =============================================================================
# Data classes
# =============================================================================
@dataclass
class OverlayState:
    """Draggable text annotation, positioned in percent of the source image."""
    text: str = ""
    color: str = DEFAULT_TEXT_COLOR
    font: str = DEFAULT_FONTS[0]["name"]
    x: float = 50.0
    y: float = 50.0
    is_dragging: bool = False

    def __post_init__(self):
        self.x = clamp_percent(self.x)
        self.y = clamp_percent(self.y)

    def set_text(self, text: str):
        self.text = text or ""

    def set_color(self, color: str):
        self.color = color

    def set_font(self, font: str):
        self.font = font

    def set_position(self, x: float, y: float):
        """Move the overlay; out-of-range values are clamped, never rejected."""
        self.x = clamp_percent(x)
        self.y = clamp_percent(y)

    def set_dragging(self, dragging: bool):
        self.is_dragging = bool(dragging)

    def has_text(self) -> bool:
        """True when there is something to draw."""
        return bool(self.text.strip())


class ExportKind(Enum):
    """The three fixed output specifications."""
    FULL = "full"
    COVER = "cover"
    ICON = "icon"

    @property
    def font_ratio(self) -> float:
        """Font size as a fraction of the export height."""
        return FULL_FONT_RATIO if self is ExportKind.FULL else CROPPED_FONT_RATIO

    @property
    def label(self) -> str:
        if self is ExportKind.COVER:
            return f"Article Cover ({COVER_TARGET_W} × {COVER_TARGET_H})"
        if self is ExportKind.ICON:
            return f"Share Icon ({ICON_TARGET_W} × {ICON_TARGET_H})"
        return "Original (16:9)"


@dataclass(frozen=True)
class CropGeometry:
    """Source rectangle (may be fractional) and destination canvas size."""
    sx: float
    sy: float
    sw: float
    sh: float
    target_w: int
    target_h: int

    @property
    def box(self) -> tuple[float, float, float, float]:
        """Source rectangle as a Pillow ``(left, top, right, bottom)`` box."""
        return (self.sx, self.sy, self.sx + self.sw, self.sy + self.sh)

    @property
    def target_size(self) -> tuple[int, int]:
        return (self.target_w, self.target_h)


# =============================================================================
# Crop planning
# =============================================================================
def plan_crop(kind: ExportKind, source_w: int, source_h: int) -> CropGeometry:
    """Compute the source rectangle and output size for an export kind."""
    if source_w <= 0 or source_h <= 0:
        raise ValueError(f"Source dimensions must be positive, got {source_w}x{source_h}")

    if kind is ExportKind.FULL:
        return CropGeometry(0, 0, source_w, source_h, source_w, source_h)

    if kind is ExportKind.COVER:
        return _plan_cover(source_w, source_h)

    # Icon: largest centred square
    side = min(source_w, source_h)
    return CropGeometry(
        (source_w - side) / 2, (source_h - side) / 2, side, side,
        ICON_TARGET_W, ICON_TARGET_H,
    )


def _plan_cover(source_w: int, source_h: int) -> CropGeometry:
    """Fit source width to the cover width and centre the crop vertically.

    Sources wider than the cover ratio cannot supply ``crop_h`` rows; those
    fall back to fitting height and centring horizontally instead.
    """
    scale = source_w / COVER_TARGET_W
    crop_h = COVER_TARGET_H * scale
    if crop_h <= source_h:
        return CropGeometry(
            0, (source_h - crop_h) / 2, source_w, crop_h,
            COVER_TARGET_W, COVER_TARGET_H,
        )

    crop_w = source_h * COVER_TARGET_W / COVER_TARGET_H
    logger.warning(
        "Source %dx%d is wider than the cover ratio; cropping %.1f px wide instead of full width",
        source_w, source_h, crop_w,
    )
    return CropGeometry(
        (source_w - crop_w) / 2, 0, crop_w, source_h,
        COVER_TARGET_W, COVER_TARGET_H,
    )
