"""
Pointer-drag state machine for the text overlay (Qt-free).

The editor widget forwards its mouse events here together with the
on-screen bounding box of the image; the controller turns them into
clamped percentage positions on the shared OverlayState.
"""

from typing import Callable

from cover_crop_tool.mapping import to_percent
from cover_crop_tool.models import OverlayState

# (left, top, width, height) of the draggable region in pointer coordinates
Box = tuple[float, float, float, float]


class DragController:
    """Two-state (idle / dragging) controller bound to one OverlayState."""

    IDLE = 0
    DRAGGING = 1

    def __init__(self, overlay: OverlayState, is_enabled: Callable[[], bool]):
        self._overlay = overlay
        self._is_enabled = is_enabled
        self._state = self.IDLE

    @property
    def state(self) -> int:
        return self._state

    def is_dragging(self) -> bool:
        return self._state == self.DRAGGING

    # --- Transitions ---

    def press(self, client_x: float, client_y: float, box: Box) -> bool:
        """Start dragging if the press is inside the box and the overlay is on."""
        if not self._is_enabled() or not _contains(box, client_x, client_y):
            return False
        self._state = self.DRAGGING
        self._overlay.set_dragging(True)
        return True

    def move(self, client_x: float, client_y: float, box: Box) -> bool:
        """Update the overlay position; returns True if it was moved."""
        if self._state != self.DRAGGING:
            return False
        left, top, width, height = box
        try:
            x, y = to_percent(client_x - left, client_y - top, width, height)
        except ValueError:
            return False
        self._overlay.set_position(x, y)
        return True

    def leave_if_outside(self, client_x: float, client_y: float, box: Box) -> bool:
        """End the drag when the pointer has left the region; True if it ended.

        Qt keeps delivering moves to the pressed widget while the button is
        held, so leaving the image is detected from the move position.
        """
        if self._state != self.DRAGGING or _contains(box, client_x, client_y):
            return False
        self.leave()
        return True

    def release(self):
        self._stop()

    def leave(self):
        self._stop()

    def global_release(self):
        """Application-wide button release; ends drags that left the widget."""
        self._stop()

    def _stop(self):
        self._state = self.IDLE
        self._overlay.set_dragging(False)


def _contains(box: Box, px: float, py: float) -> bool:
    left, top, width, height = box
    return left <= px <= left + width and top <= py <= top + height
