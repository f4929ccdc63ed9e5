"""
Feed and chat-share preview.

Mock-ups of how the cover appears in a subscription feed (2.35:1 card) and
as a square share thumbnail.  The text position in the feed card uses the
approximate ``mapping.preview_percent`` projection, not the exact export
geometry.
"""

from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF
from PyQt6.QtGui import QPainter, QPixmap, QColor, QPaintEvent

from cover_crop_tool.config import PREVIEW_CARD_ASPECT, CROPPED_FONT_RATIO
from cover_crop_tool.editor_widget import overlay_qfont, draw_centered_text
from cover_crop_tool.mapping import preview_percent, to_pixels

_CARD_MAX_W = 440
_MARGIN = 16
_LABEL_H = 18
_THUMB = 48


def cover_fit_source(pw: float, ph: float, tw: float, th: float) -> QRectF:
    """Centred source rectangle that fills a ``tw`` × ``th`` box (CSS object-fit: cover)."""
    scale = max(tw / pw, th / ph)
    sw, sh = tw / scale, th / scale
    return QRectF((pw - sw) / 2, (ph - sh) / 2, sw, sh)


class FeedPreviewWidget(QWidget):
    """Paints the feed card and the chat-share bubble for the current image."""

    def __init__(self, session, parent=None):
        super().__init__(parent)
        self.setMinimumSize(360, 320)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self._session = session
        self._pixmap: QPixmap | None = None

    def set_image(self, pixmap: QPixmap | None):
        self._pixmap = pixmap
        self.update()

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self._pixmap or self._pixmap.isNull():
            painter.setPen(QColor(128, 128, 128))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "Image will appear here")
            painter.end()
            return

        card_w = min(_CARD_MAX_W, self.width() - 2 * _MARGIN)
        left = (self.width() - card_w) / 2
        bottom = self._paint_feed_card(painter, left, _MARGIN, card_w)
        self._paint_share_bubble(painter, left, bottom + _MARGIN, card_w)
        painter.end()

    def _paint_section(self, painter: QPainter, rect: QRectF, background: QColor, title: str):
        painter.fillRect(rect, background)
        painter.setPen(QColor(148, 163, 184))
        painter.drawText(
            QRectF(rect.left() + 12, rect.top() + 6, rect.width() - 24, _LABEL_H),
            Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, title,
        )

    def _paint_feed_card(self, painter: QPainter, left: float, top: float, width: float) -> float:
        inner_w = width - 24
        image_h = inner_w / PREVIEW_CARD_ASPECT
        card = QRectF(left, top, width, _LABEL_H + image_h + 40)
        self._paint_section(painter, card, QColor(255, 255, 255), "SUBSCRIPTION FEED")

        image_rect = QRectF(left + 12, top + _LABEL_H + 10, inner_w, image_h)
        src = cover_fit_source(self._pixmap.width(), self._pixmap.height(), inner_w, image_h)
        painter.drawPixmap(image_rect, self._pixmap, src)

        overlay = self._session.overlay
        if self._session.show_overlay and overlay.has_text():
            painter.save()
            painter.setClipRect(image_rect)
            x_pct, y_pct = preview_percent(overlay.x, overlay.y)
            px, py = to_pixels(x_pct, y_pct, image_rect.width(), image_rect.height())
            font_px = image_h * CROPPED_FONT_RATIO
            draw_centered_text(
                painter, QPointF(image_rect.left() + px, image_rect.top() + py),
                overlay.text, overlay_qfont(self._session.fonts, overlay.font, font_px),
                QColor(overlay.color), max(1.0, font_px / 10),
            )
            painter.restore()

        # Title placeholder bar
        painter.fillRect(QRectF(left + 12, image_rect.bottom() + 12, inner_w * 0.75, 12), QColor(30, 41, 59))
        return card.bottom()

    def _paint_share_bubble(self, painter: QPainter, left: float, top: float, width: float):
        section = QRectF(left, top, width, _LABEL_H + _THUMB + 44)
        self._paint_section(painter, section, QColor(237, 237, 237), "CHAT SHARE")

        bubble_w = width * 0.85
        bubble = QRectF(section.right() - 12 - bubble_w, top + _LABEL_H + 12, bubble_w, _THUMB + 20)
        painter.fillRect(bubble, QColor(255, 255, 255))

        thumb = QRectF(bubble.right() - 10 - _THUMB, bubble.top() + 10, _THUMB, _THUMB)
        src = cover_fit_source(self._pixmap.width(), self._pixmap.height(), _THUMB, _THUMB)
        painter.drawPixmap(thumb, self._pixmap, src)

        text_w = thumb.left() - bubble.left() - 24
        painter.fillRect(QRectF(bubble.left() + 12, bubble.top() + 14, text_w, 10), QColor(30, 41, 59))
        painter.fillRect(QRectF(bubble.left() + 12, bubble.top() + 32, text_w * 2 / 3, 8), QColor(203, 213, 225))
