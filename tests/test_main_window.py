import os
import threading

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

from cover_crop_tool.main_window import MainWindow  # noqa: E402


class BlockingGenerator:
    """Holds the generation call open until ``release`` is set."""

    def __init__(self, result: bytes):
        self.result = result
        self.started = threading.Event()
        self.release = threading.Event()

    def generate(self, prompt, reference=None):
        self.started.set()
        self.release.wait(10)
        return self.result


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def window(qapp, config_home):
    return MainWindow(generator=BlockingGenerator(b""))


def _drain(qapp, rounds: int = 20):
    for _ in range(rounds):
        qapp.processEvents()


def test_close_during_generation_waits_for_thread(qapp, config_home, png_bytes):
    generator = BlockingGenerator(png_bytes())
    win = MainWindow(generator=generator)
    win.show()
    win._prompt_edit.setPlainText("harbour at dawn")
    win._generate()
    assert generator.started.wait(5)

    win.close()
    assert not win.isVisible()
    assert win._thread.isRunning()

    generator.release.set()
    assert win._thread.wait(5000)
    _drain(qapp)

    assert win._thread.isFinished()
    assert win._editor._release_filter is None
    # Results arriving after close are not applied to the window
    assert not win._session.has_image()


def test_close_when_idle_tears_down_immediately(qapp, window):
    window.show()
    window.close()
    assert not window.isVisible()
    assert window._editor._release_filter is None
