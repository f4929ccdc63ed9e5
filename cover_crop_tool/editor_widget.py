"""
Interactive overlay editor widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``GenerateThread``, the application-wide
mouse-release filter, and the main ``OverlayEditorWidget``.
"""

from PIL import Image
from PyQt6.QtWidgets import QApplication, QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QEvent, QObject, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QFont, QFontMetricsF, QImage,
    QMouseEvent, QPaintEvent, QResizeEvent,
)

from cover_crop_tool.config import FULL_FONT_RATIO, COVER_TARGET_W, COVER_TARGET_H
from cover_crop_tool.drag import DragController
from cover_crop_tool.fonts import find_font
from cover_crop_tool.mapping import to_pixels
from cover_crop_tool.models import ExportKind, plan_crop


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


_STYLE_HINTS = {
    "serif": QFont.StyleHint.Serif,
    "sans-serif": QFont.StyleHint.SansSerif,
    "cursive": QFont.StyleHint.Cursive,
    "monospace": QFont.StyleHint.Monospace,
}


def overlay_qfont(fonts: list[dict], name: str, pixel_size: float) -> QFont:
    """Bold QFont for a registry font at the given pixel size."""
    entry = find_font(fonts, name)
    font = QFont(entry["family"])
    font.setStyleHint(_STYLE_HINTS.get(entry.get("generic", ""), QFont.StyleHint.AnyStyle))
    font.setBold(True)
    font.setPixelSize(max(1, int(round(pixel_size))))
    return font


def draw_centered_text(
    painter: QPainter, center: QPointF, text: str, font: QFont,
    color: QColor, shadow_offset: float,
) -> QRectF:
    """Draw shadowed text centred on *center*; returns the text rect."""
    fm = QFontMetricsF(font)
    w = fm.horizontalAdvance(text)
    h = fm.height()
    rect = QRectF(center.x() - w / 2, center.y() - h / 2, w, h)
    painter.setFont(font)
    painter.setPen(QColor(0, 0, 0, 140))
    painter.drawText(rect.translated(0, shadow_offset), Qt.AlignmentFlag.AlignCenter, text)
    painter.setPen(color)
    painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, text)
    return rect


# =============================================================================
# Background generation
# =============================================================================

class GenerateThread(QThread):
    """Background thread for the image generation call."""
    succeeded = pyqtSignal(bytes)
    failed = pyqtSignal(str)

    def __init__(self, generator, prompt: str, reference, parent=None):
        super().__init__(parent)
        self._generator = generator
        self._prompt = prompt
        self._reference = reference

    def run(self):
        try:
            data = self._generator.generate(self._prompt, self._reference)
            self.succeeded.emit(data)
        except Exception as e:
            self.failed.emit(str(e) or "Failed to generate image.")


# =============================================================================
# Application-wide mouse release
# =============================================================================

class GlobalReleaseFilter(QObject):
    """Event filter that reports every left-button release in the application."""

    def __init__(self, callback, parent=None):
        super().__init__(parent)
        self._callback = callback

    def eventFilter(self, obj, event):
        if (event.type() == QEvent.Type.MouseButtonRelease
                and event.button() == Qt.MouseButton.LeftButton):
            self._callback()
        return False


# =============================================================================
# Overlay Editor Widget: full image with draggable text
# =============================================================================

class OverlayEditorWidget(QWidget):
    """Displays the whole image with the draggable text and the cover-area guide."""

    overlay_moved = pyqtSignal()

    def __init__(self, session, parent=None):
        super().__init__(parent)
        self.setMinimumSize(480, 270)
        self.setMouseTracking(False)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._session = session
        self._drag = DragController(session.overlay, lambda: self._session.show_overlay)

        self._pixmap: QPixmap | None = None
        self._img_w = 0
        self._img_h = 0
        self._loading = False

        # Display mapping
        self._scale = 1.0
        self._offset_x = 0.0
        self._offset_y = 0.0

        self._release_filter: GlobalReleaseFilter | None = GlobalReleaseFilter(self._on_global_release, self)
        app = QApplication.instance()
        if app is not None:
            app.installEventFilter(self._release_filter)

    def teardown(self):
        """Remove the application-wide release filter."""
        if self._release_filter is None:
            return
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self._release_filter)
        self._release_filter = None

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_image(self, pixmap: QPixmap, img_w: int, img_h: int):
        """Set the image to display."""
        self._loading = False
        self._pixmap = pixmap
        self._img_w = img_w
        self._img_h = img_h
        self._update_display_mapping()
        self.update()

    def has_image(self) -> bool:
        return self._pixmap is not None

    def clear(self):
        self._pixmap = None
        self._img_w = 0
        self._img_h = 0
        self.update()

    # --- Coordinate mapping ---

    def _update_display_mapping(self):
        """Calculate scale and offset to fit image in widget with letterboxing."""
        if not self._pixmap or self._img_w == 0 or self._img_h == 0:
            return
        ww, wh = self.width(), self.height()
        self._scale = min(ww / self._img_w, wh / self._img_h)
        disp_w = self._img_w * self._scale
        disp_h = self._img_h * self._scale
        self._offset_x = (ww - disp_w) / 2
        self._offset_y = (wh - disp_h) / 2

    def _image_rect(self) -> QRectF:
        return QRectF(self._offset_x, self._offset_y, self._img_w * self._scale, self._img_h * self._scale)

    def _image_box(self) -> tuple[float, float, float, float]:
        r = self._image_rect()
        return r.left(), r.top(), r.width(), r.height()

    def _cover_guide_rect(self) -> QRectF:
        """Display rectangle of the area the cover export will keep."""
        g = plan_crop(ExportKind.COVER, self._img_w, self._img_h)
        return QRectF(
            self._offset_x + g.sx * self._scale, self._offset_y + g.sy * self._scale,
            g.sw * self._scale, g.sh * self._scale,
        )

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self._pixmap:
            painter.setPen(QColor(128, 128, 128))
            msg = "Generating image…" if self._loading else "Image will appear here"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        dest = self._image_rect()
        painter.drawPixmap(dest.toRect(), self._pixmap)

        self._paint_cover_guide(painter, dest)
        self._paint_overlay_text(painter, dest)

        painter.end()

    def _paint_cover_guide(self, painter: QPainter, dest: QRectF):
        """Dim everything outside the cover crop and outline it."""
        guide = self._cover_guide_rect()
        dim = QColor(0, 0, 0, 76)
        painter.fillRect(QRectF(dest.left(), dest.top(), dest.width(), guide.top() - dest.top()), dim)
        painter.fillRect(QRectF(dest.left(), guide.bottom(), dest.width(), dest.bottom() - guide.bottom()), dim)
        painter.fillRect(QRectF(dest.left(), guide.top(), guide.left() - dest.left(), guide.height()), dim)
        painter.fillRect(QRectF(guide.right(), guide.top(), dest.right() - guide.right(), guide.height()), dim)

        painter.setPen(QPen(QColor(7, 193, 96, 180), 2, Qt.PenStyle.DashLine))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(guide)

        label = f"Cover Area ({COVER_TARGET_W}×{COVER_TARGET_H})"
        fm = QFontMetricsF(painter.font())
        tag = QRectF(guide.left() + 8, guide.top() + 8, fm.horizontalAdvance(label) + 12, fm.height() + 4)
        painter.fillRect(tag, QColor(7, 193, 96))
        painter.setPen(QColor(255, 255, 255))
        painter.drawText(tag, Qt.AlignmentFlag.AlignCenter, label)

    def _paint_overlay_text(self, painter: QPainter, dest: QRectF):
        overlay = self._session.overlay
        if not self._session.show_overlay or not overlay.has_text():
            return

        px, py = to_pixels(overlay.x, overlay.y, dest.width(), dest.height())
        center = QPointF(dest.left() + px, dest.top() + py)
        font_px = dest.height() * FULL_FONT_RATIO
        font = overlay_qfont(self._session.fonts, overlay.font, font_px)

        if overlay.is_dragging:
            fm = QFontMetricsF(font)
            w = fm.horizontalAdvance(overlay.text) + 16
            h = fm.height() + 8
            box = QRectF(center.x() - w / 2, center.y() - h / 2, w, h)
            painter.fillRect(box, QColor(0, 0, 0, 26))
            painter.setPen(QPen(QColor(255, 255, 255, 128), 1, Qt.PenStyle.DashLine))
            painter.drawRect(box)

        draw_centered_text(
            painter, center, overlay.text, font,
            QColor(overlay.color), max(1.0, font_px / 20),
        )

    def resizeEvent(self, event: QResizeEvent):
        self._update_display_mapping()
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self._pixmap:
            return
        pos = event.position()
        if self._drag.press(pos.x(), pos.y(), self._image_box()):
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
            self.update()

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._pixmap:
            return
        pos = event.position()
        box = self._image_box()
        if self._drag.leave_if_outside(pos.x(), pos.y(), box):
            self.unsetCursor()
            self.update()
            return
        if self._drag.move(pos.x(), pos.y(), box):
            self.overlay_moved.emit()
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self._end_drag(self._drag.release)

    def leaveEvent(self, event):
        self._end_drag(self._drag.leave)
        super().leaveEvent(event)

    def _on_global_release(self):
        if self._drag.is_dragging():
            self._end_drag(self._drag.global_release)

    def _end_drag(self, transition):
        transition()
        self.unsetCursor()
        self.update()
