"""
Application state for one editing session (Qt-free).

CoverSession is owned by the main window and passed to the views; nothing
here is global.  It enforces the error policy: rejected input never changes
state, and a failed generation leaves the previous image and overlay intact.
"""

import logging
from pathlib import Path

from PIL import Image

from cover_crop_tool.compositor import export_image
from cover_crop_tool.errors import GenerationError, InputValidationError
from cover_crop_tool.image_io import ReferenceImage, decode_image, read_upload
from cover_crop_tool.models import ExportKind, OverlayState

logger = logging.getLogger(__name__)

TAB_EDITOR = "editor"
TAB_PREVIEW = "preview"


class CoverSession:
    """Prompt, reference, generated image, and the shared text overlay."""

    def __init__(self, fonts: list[dict]):
        self.fonts = fonts
        self.prompt = ""
        self.reference: ReferenceImage | None = None
        self.generated_bytes: bytes | None = None
        self.generated_mime = "image/png"
        self.source_image: Image.Image | None = None
        self.show_overlay = False
        self.overlay = OverlayState(font=fonts[0]["name"])
        self.error: str | None = None
        self.is_generating = False
        self.active_tab = TAB_EDITOR

    # --- Inputs ---

    def set_prompt(self, prompt: str):
        self.prompt = prompt

    def set_show_overlay(self, show: bool):
        self.show_overlay = bool(show)
        if not self.show_overlay:
            self.overlay.set_dragging(False)

    def attach_reference_file(self, path: Path):
        """Load a reference image from disk; raises InputValidationError."""
        try:
            reference = read_upload(path)
        except InputValidationError as exc:
            self.error = str(exc)
            raise
        self.reference = reference
        self.error = None
        logger.info("Attached reference %s (%d bytes)", path.name, len(reference.data))

    def attach_reference_uri(self, uri: str):
        """Attach a reference supplied as a data URI; raises InputValidationError."""
        try:
            reference = ReferenceImage.from_data_uri(uri)
        except InputValidationError as exc:
            self.error = str(exc)
            raise
        self.reference = reference
        self.error = None

    def clear_reference(self):
        self.reference = None

    def dismiss_error(self):
        self.error = None

    def has_image(self) -> bool:
        return self.source_image is not None

    # --- Refine loop ---

    def refine(self) -> bool:
        """Use the last generated image as the reference for the next one."""
        if self.generated_bytes is None:
            return False
        self.reference = ReferenceImage(self.generated_bytes, self.generated_mime)
        self.error = None
        return True

    # --- Generation ---

    def start_generation(self) -> tuple[str, ReferenceImage | None]:
        """Validate the request and mark generation as running."""
        if self.is_generating:
            raise InputValidationError("A generation is already running.")
        if not self.prompt.strip() and self.reference is None:
            self.error = "Please enter a prompt or upload a reference image."
            raise InputValidationError(self.error)
        self.is_generating = True
        self.error = None
        return self.prompt, self.reference

    def finish_generation(self, data: bytes):
        """Install a generated image once it has decoded successfully."""
        self.is_generating = False
        try:
            img = decode_image(data)
        except ValueError as exc:
            self.error = f"The generated image could not be decoded: {exc}"
            raise GenerationError(self.error) from exc

        self.generated_bytes = data
        self.generated_mime = Image.MIME.get(img.format or "", "image/png")
        self.source_image = img
        self.active_tab = TAB_EDITOR
        if not self.show_overlay and self.overlay.text:
            self.show_overlay = True
        logger.info("New source image %dx%d", img.width, img.height)

    def fail_generation(self, message: str):
        self.is_generating = False
        self.error = message or "Failed to generate image."

    def generate(self, generator) -> bool:
        """Run a generation synchronously. Returns False if it failed."""
        prompt, reference = self.start_generation()
        try:
            self.finish_generation(generator.generate(prompt, reference))
        except GenerationError as exc:
            self.fail_generation(str(exc))
            return False
        return True

    # --- Export ---

    def export(self, kind: ExportKind, output_dir: Path) -> Path:
        if self.source_image is None:
            raise InputValidationError("Generate an image before exporting.")
        return export_image(
            self.source_image, self.overlay, kind, output_dir,
            self.show_overlay, self.fonts,
        )
