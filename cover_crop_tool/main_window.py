"""
Main application window.

Owns the CoverSession and wires the prompt, reference upload, text overlay
controls, generation thread, editor/preview tabs, and the three exports.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QFileDialog, QGroupBox, QMessageBox, QStatusBar, QToolBar, QCheckBox,
    QComboBox, QLineEdit, QPlainTextEdit, QColorDialog, QTabWidget,
    QScrollArea, QSplitter, QApplication,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QColor, QKeySequence, QPixmap, QShortcut

from cover_crop_tool.config import UPLOAD_EXTENSIONS, MAX_UPLOAD_BYTES, default_output_dir
from cover_crop_tool.editor_widget import OverlayEditorWidget, GenerateThread, pil_to_qpixmap
from cover_crop_tool.errors import CoverToolError, GenerationError
from cover_crop_tool.fonts import load_fonts
from cover_crop_tool.generator import CoverGenerator
from cover_crop_tool.models import ExportKind
from cover_crop_tool.preview_widget import FeedPreviewWidget
from cover_crop_tool.session import CoverSession, TAB_EDITOR, TAB_PREVIEW

logger = logging.getLogger(__name__)

_TABS = [TAB_EDITOR, TAB_PREVIEW]


class MainWindow(QMainWindow):
    def __init__(self, generator: CoverGenerator | None = None):
        super().__init__()
        self.setWindowTitle("Cover Crop Tool")
        self.setMinimumSize(960, 600)

        # Screen-aware startup size, clamped to 80% of screen
        preferred_w, preferred_h = 1440, 900
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)

        self._session = CoverSession(load_fonts())
        self._generator = generator or CoverGenerator()
        self._thread: GenerateThread | None = None
        self._closing = False
        self._output_root: Path = default_output_dir()

        self._build_ui()
        self._sync_overlay_controls()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        main_layout.addWidget(splitter)
        splitter.addWidget(self._build_left_panel())
        splitter.addWidget(self._build_center_panel())
        splitter.setSizes([320, 1000])

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage(f"Output folder: {self._output_root}")

        # --- Keyboard Shortcuts ---
        QShortcut(QKeySequence("Ctrl+Return"), self, self._generate)
        QShortcut(QKeySequence("Ctrl+R"), self, self._refine)
        QShortcut(QKeySequence("Ctrl+1"), self, lambda: self._export(ExportKind.COVER))
        QShortcut(QKeySequence("Ctrl+2"), self, lambda: self._export(ExportKind.ICON))
        QShortcut(QKeySequence("Ctrl+3"), self, lambda: self._export(ExportKind.FULL))

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_output = QAction("💾 Set Output Folder", self)
        act_output.triggered.connect(self._select_output_folder)
        toolbar.addAction(act_output)

        toolbar.addSeparator()

        act_refine = QAction("🔄 Refine / Modify", self)
        act_refine.setToolTip("Use current image as reference to generate variations")
        act_refine.triggered.connect(self._refine)
        toolbar.addAction(act_refine)
        self._act_refine = act_refine

    def _build_left_panel(self) -> QWidget:
        inner = QWidget()
        layout = QVBoxLayout(inner)
        layout.setContentsMargins(0, 0, 0, 0)

        layout.addWidget(self._build_prompt_group())
        layout.addWidget(self._build_reference_group())
        layout.addWidget(self._build_overlay_group())

        self._btn_generate = QPushButton("✨ Generate Cover")
        self._btn_generate.setObjectName("generate")
        self._btn_generate.clicked.connect(self._generate)
        layout.addWidget(self._btn_generate)

        layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(inner)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        scroll.setFrameShape(scroll.Shape.NoFrame)
        return scroll

    def _build_prompt_group(self) -> QGroupBox:
        group = QGroupBox("Prompt")
        layout = QVBoxLayout(group)
        self._prompt_edit = QPlainTextEdit()
        self._prompt_edit.setPlaceholderText(
            "Describe the image… (e.g. 'Minimalist office desk with coffee, top down view')"
        )
        self._prompt_edit.setFixedHeight(110)
        self._prompt_edit.textChanged.connect(
            lambda: self._session.set_prompt(self._prompt_edit.toPlainText())
        )
        layout.addWidget(self._prompt_edit)
        return group

    def _build_reference_group(self) -> QGroupBox:
        group = QGroupBox("Reference Image (Optional)")
        layout = QVBoxLayout(group)

        self._ref_preview = QLabel("No reference")
        self._ref_preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._ref_preview.setFixedHeight(90)
        self._ref_preview.setStyleSheet("color: #888; border: 1px dashed #555; border-radius: 4px;")
        layout.addWidget(self._ref_preview)

        row = QHBoxLayout()
        btn_upload = QPushButton("Upload…")
        btn_upload.clicked.connect(self._select_reference)
        row.addWidget(btn_upload)
        self._btn_clear_ref = QPushButton("Clear")
        self._btn_clear_ref.clicked.connect(self._clear_reference)
        row.addWidget(self._btn_clear_ref)
        layout.addLayout(row)
        return group

    def _build_overlay_group(self) -> QGroupBox:
        group = QGroupBox("Text Overlay")
        layout = QVBoxLayout(group)

        self._overlay_enabled = QCheckBox("Draggable Text")
        self._overlay_enabled.toggled.connect(self._on_overlay_toggled)
        layout.addWidget(self._overlay_enabled)

        self._overlay_text = QLineEdit()
        self._overlay_text.setPlaceholderText("Enter text (drag to move)")
        self._overlay_text.textChanged.connect(self._on_overlay_text_changed)
        layout.addWidget(self._overlay_text)

        row = QHBoxLayout()
        self._font_combo = QComboBox()
        self._font_combo.addItems([f["name"] for f in self._session.fonts])
        self._font_combo.currentTextChanged.connect(self._on_font_changed)
        row.addWidget(self._font_combo, stretch=1)

        self._btn_color = QPushButton("Color")
        self._btn_color.clicked.connect(self._select_color)
        row.addWidget(self._btn_color)
        layout.addLayout(row)

        self._overlay_pos_label = QLabel("")
        self._overlay_pos_label.setStyleSheet("color: #888; font-size: 8pt;")
        layout.addWidget(self._overlay_pos_label)
        return group

    def _build_center_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        self._editor = OverlayEditorWidget(self._session)
        self._editor.overlay_moved.connect(self._on_overlay_moved)
        self._preview = FeedPreviewWidget(self._session)

        self._tabs = QTabWidget()
        self._tabs.addTab(self._editor, "Editor")
        self._tabs.addTab(self._preview, "Preview")
        self._tabs.currentChanged.connect(self._on_tab_changed)
        layout.addWidget(self._tabs, stretch=1)

        layout.addWidget(self._build_export_group())
        return panel

    def _build_export_group(self) -> QGroupBox:
        group = QGroupBox("Download")
        layout = QHBoxLayout(group)
        self._export_buttons: list[QPushButton] = []
        for kind in (ExportKind.COVER, ExportKind.ICON, ExportKind.FULL):
            btn = QPushButton(kind.label)
            btn.clicked.connect(lambda checked, k=kind: self._export(k))
            layout.addWidget(btn)
            self._export_buttons.append(btn)
        return group

    # =========================================================================
    # Error reporting
    # =========================================================================

    def _show_error(self, title: str, message: str):
        self._status.showMessage(message)
        QMessageBox.warning(self, title, message)
        self._session.dismiss_error()

    # =========================================================================
    # Reference image
    # =========================================================================

    def _select_reference(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(UPLOAD_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(
            self, "Select Reference Image", str(Path.home()),
            f"Images (max {MAX_UPLOAD_BYTES // (1024 * 1024)}MB) ({patterns})",
        )
        if not path:
            return
        try:
            self._session.attach_reference_file(Path(path))
        except CoverToolError as exc:
            self._show_error("Reference Image", str(exc))
            return
        self._update_reference_preview()
        self._status.showMessage(f"Reference: {Path(path).name}")

    def _clear_reference(self):
        self._session.clear_reference()
        self._update_reference_preview()

    def _refine(self):
        if not self._session.refine():
            return
        self._update_reference_preview()
        self._status.showMessage("Using current image as reference; edit the prompt and generate again")

    def _update_reference_preview(self):
        reference = self._session.reference
        if reference is None:
            self._ref_preview.setPixmap(QPixmap())
            self._ref_preview.setText("No reference")
        else:
            pixmap = QPixmap()
            pixmap.loadFromData(reference.data)
            self._ref_preview.setPixmap(pixmap.scaled(
                240, 86, Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            ))
        self._update_button_states()

    # =========================================================================
    # Text overlay
    # =========================================================================

    def _on_overlay_toggled(self, checked: bool):
        self._session.set_show_overlay(checked)
        self._sync_overlay_controls()
        self._refresh_views()

    def _on_overlay_text_changed(self, text: str):
        self._session.overlay.set_text(text)
        self._refresh_views()

    def _on_font_changed(self, name: str):
        if name:
            self._session.overlay.set_font(name)
            self._refresh_views()

    def _select_color(self):
        color = QColorDialog.getColor(QColor(self._session.overlay.color), self, "Text Color")
        if not color.isValid():
            return
        self._session.overlay.set_color(color.name())
        self._sync_overlay_controls()
        self._refresh_views()

    def _on_overlay_moved(self):
        self._update_overlay_position_label()
        self._preview.update()

    def _sync_overlay_controls(self):
        """Push session overlay state into the controls."""
        enabled = self._session.show_overlay
        if self._overlay_enabled.isChecked() != enabled:
            self._overlay_enabled.setChecked(enabled)
        for w in (self._overlay_text, self._font_combo, self._btn_color, self._overlay_pos_label):
            w.setVisible(enabled)
        color = self._session.overlay.color
        self._btn_color.setStyleSheet(f"QPushButton {{ border-left: 14px solid {color}; }}")
        self._update_overlay_position_label()

    def _update_overlay_position_label(self):
        o = self._session.overlay
        self._overlay_pos_label.setText(f"Position: {o.x:.1f}% × {o.y:.1f}%")

    def _refresh_views(self):
        self._editor.update()
        self._preview.update()

    # =========================================================================
    # Generation
    # =========================================================================

    def _generate(self):
        if self._thread is not None and self._thread.isRunning():
            return
        try:
            prompt, reference = self._session.start_generation()
        except CoverToolError as exc:
            self._show_error("Generate", str(exc))
            return

        if not self._editor.has_image():
            self._editor.set_loading(True)
        self._btn_generate.setText("Generating…")
        self._update_button_states()
        self._status.showMessage("Generating…")

        self._thread = GenerateThread(self._generator, prompt, reference, self)
        self._thread.succeeded.connect(self._on_generated)
        self._thread.failed.connect(self._on_generation_failed)
        self._thread.start()

    def _on_generated(self, data: bytes):
        try:
            self._session.finish_generation(data)
        except GenerationError as exc:
            self._on_generation_failed(str(exc))
            return

        source = self._session.source_image
        pixmap = pil_to_qpixmap(source)
        self._editor.set_image(pixmap, source.width, source.height)
        self._preview.set_image(pixmap)
        self._tabs.setCurrentIndex(_TABS.index(self._session.active_tab))
        self._sync_overlay_controls()
        self._generation_done()
        self._status.showMessage(f"Generated {source.width}×{source.height} image")

    def _on_generation_failed(self, message: str):
        self._session.fail_generation(message)
        self._editor.set_loading(False)
        self._generation_done()
        self._show_error("Generation Failed", self._session.error)

    def _generation_done(self):
        self._btn_generate.setText("✨ Generate Cover")
        self._update_button_states()

    # =========================================================================
    # Tabs
    # =========================================================================

    def _on_tab_changed(self, index: int):
        self._session.active_tab = _TABS[index]

    # =========================================================================
    # Export
    # =========================================================================

    def _select_output_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Output Folder", str(self._output_root))
        if not folder:
            return
        self._output_root = Path(folder)
        self._status.showMessage(f"Output folder: {self._output_root}")

    def _export(self, kind: ExportKind):
        if not self._session.has_image():
            return
        try:
            out_path = self._session.export(kind, self._output_root)
        except (CoverToolError, OSError) as exc:
            logger.error("Export %s failed: %s", kind.value, exc)
            QMessageBox.critical(self, "Export Failed", f"Could not export {kind.value}:\n{exc}")
            return
        self._status.showMessage(f"Exported: {out_path}")

    def _update_button_states(self):
        has_image = self._session.has_image()
        busy = self._session.is_generating
        self._btn_generate.setEnabled(not busy)
        self._act_refine.setEnabled(has_image and not busy)
        self._btn_clear_ref.setEnabled(self._session.reference is not None)
        for btn in self._export_buttons:
            btn.setEnabled(has_image)

    def closeEvent(self, event):
        """Close once any running generation has finished.

        The thread is a child of this window and must not be destroyed while
        running, so the window hides and closes itself once it has finished.
        """
        thread = self._thread
        if thread is not None and thread.isRunning():
            if not self._closing:
                self._closing = True
                thread.succeeded.disconnect()
                thread.failed.disconnect()
                thread.finished.connect(self._close_after_generation)
                logger.info("Waiting for the running generation before closing")
            self.hide()
            event.ignore()
            return
        self._editor.teardown()
        super().closeEvent(event)

    def _close_after_generation(self):
        self._thread.wait()
        self.close()
        QApplication.quit()
