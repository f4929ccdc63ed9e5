"""
Exception hierarchy.

Input problems are raised as ``InputValidationError`` before any state is
touched; anything that goes wrong in the generation call surfaces as a
single ``GenerationError``.
"""


class CoverToolError(Exception):
    """Base class for all errors reported to the user."""


class InputValidationError(CoverToolError):
    """User input was rejected (empty request, bad upload)."""


class UploadTooLargeError(InputValidationError):
    """Reference image exceeds the upload size limit."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Image size too large ({size / (1024 * 1024):.1f} MB). "
            f"Please choose an image under {limit // (1024 * 1024)}MB."
        )


class GenerationError(CoverToolError):
    """The image generation call failed or returned no usable image."""
