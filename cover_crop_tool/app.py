"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m cover_crop_tool.app
    cover-crop-tool          (after pip install)
"""

import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from cover_crop_tool.config import LOG_LEVEL_ENV_VAR
from cover_crop_tool.main_window import MainWindow

DARK_STYLESHEET = """
    QMainWindow, QWidget { background: #1f2124; color: #e5e7eb; font-size: 10pt; }
    QGroupBox { border: 1px solid #3b3f45; border-radius: 6px; margin-top: 10px; padding-top: 14px; font-weight: 600; }
    QGroupBox::title { subcontrol-origin: margin; left: 10px; padding: 0 4px; color: #9ca3af; }
    QPlainTextEdit, QLineEdit, QComboBox { background: #15171a; border: 1px solid #3b3f45; border-radius: 4px; padding: 4px; }
    QPlainTextEdit:focus, QLineEdit:focus, QComboBox:focus { border-color: #07c160; }
    QPushButton { background: #2d3136; border: 1px solid #3b3f45; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #373c42; }
    QPushButton:pressed { background: #25282c; }
    QPushButton:disabled { color: #6b7280; }
    QPushButton#generate { background: #07c160; border-color: #06ad56; color: white; font-weight: bold; padding: 10px; }
    QPushButton#generate:hover { background: #06ad56; }
    QPushButton#generate:disabled { background: #3b3f45; color: #9ca3af; }
    QTabWidget::pane { border: 1px solid #3b3f45; }
    QTabBar::tab { background: #2a2d31; padding: 6px 16px; border: 1px solid #3b3f45; }
    QTabBar::tab:selected { background: #1f2124; border-bottom: 2px solid #07c160; }
    QToolBar, QStatusBar { background: #2a2d31; border: none; spacing: 4px; padding: 3px; }
"""


def configure_logging():
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main():
    configure_logging()
    app = QApplication(sys.argv)
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
