"""
Application constants and configuration.

DEFAULT_FONTS provides the built-in fallback font list. Runtime fonts are
loaded from fonts.json via the fonts module. All other constants control
export geometry, text rendering, uploads, and the generation call.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "cover-crop-tool"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def default_output_dir() -> Path:
    """Return ~/Downloads when it exists, otherwise the home directory."""
    downloads = Path.home() / "Downloads"
    return downloads if downloads.is_dir() else Path.home()


# =============================================================================
# DEFAULT FONTS: Built-in fallback when fonts.json is missing or corrupt
# =============================================================================
# "family" is what Qt renders in the editor. Exports use "path" when set,
# otherwise the bold face matplotlib finds for "family", then for the
# "generic" family ("serif", "sans-serif", "cursive", "monospace").
DEFAULT_FONTS = [
    {"name": "Modern Sans", "family": "Noto Sans SC", "generic": "sans-serif", "path": ""},
    {"name": "Elegant Serif", "family": "Noto Serif SC", "generic": "serif", "path": ""},
    {"name": "Playful", "family": "ZCOOL KuaiLe", "generic": "cursive", "path": ""},
    {"name": "System Default", "family": "Sans Serif", "generic": "sans-serif", "path": ""},
]

# Bold fonts tried in order when a registry entry has no usable file
SYSTEM_FONT_CANDIDATES = [
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Bold.ttc",          # Linux (CJK)
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",         # Linux
    "/System/Library/Fonts/PingFang.ttc",                           # macOS (CJK)
    "/System/Library/Fonts/Helvetica.ttc",                          # macOS
    "C:\\Windows\\Fonts\\msyhbd.ttc",                               # Windows (CJK)
    "C:\\Windows\\Fonts\\arialbd.ttf",                              # Windows
]

DEFAULT_TEXT_COLOR = "#ffffff"

# =============================================================================
# EXPORT GEOMETRY
# =============================================================================
# Wide article cover (≈2.35:1) and square share icon
COVER_TARGET_W = 900
COVER_TARGET_H = 383
ICON_TARGET_W = 500
ICON_TARGET_H = 500

# Font size as a fraction of the export height. Cover and icon are viewed
# small, so they get relatively larger text.
FULL_FONT_RATIO = 0.08
CROPPED_FONT_RATIO = 0.15

# Drop shadow: black at 80% opacity, blur and offset proportional to font size
SHADOW_RGBA = (0, 0, 0, 204)
SHADOW_BLUR_DIVISOR = 3      # blur = font_size / 3
SHADOW_OFFSET_DIVISOR = 10   # offset_y = font_size / 10

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

EXPORT_FILE_PREFIX = "wechat"

# =============================================================================
# PREVIEW
# =============================================================================
# Generated images are requested at 16:9; the feed card shows them at the
# cover ratio with cover-fit, so vertical offsets from centre are stretched
# by this constant. Approximate by construction: the exported file is exact.
SOURCE_ASSUMED_ASPECT = 16 / 9
PREVIEW_CARD_ASPECT = 2.35
PREVIEW_ZOOM = PREVIEW_CARD_ASPECT / SOURCE_ASSUMED_ASPECT

# =============================================================================
# UPLOADS
# =============================================================================
MAX_UPLOAD_BYTES = 4 * 1024 * 1024

UPLOAD_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".psd": "image/vnd.adobe.photoshop",
}
UPLOAD_EXTENSIONS = set(UPLOAD_MIME_TYPES)

# =============================================================================
# GENERATION
# =============================================================================
GENERATION_MODEL_DEFAULT = "gemini-2.5-flash-image"
GENERATION_ASPECT_RATIO = "16:9"
GENERATION_TIMEOUT_MS = 120_000

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")
MODEL_ENV_VAR = "COVER_TOOL_MODEL"
LOG_LEVEL_ENV_VAR = "COVER_TOOL_LOG_LEVEL"
