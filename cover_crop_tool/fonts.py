"""
Font registry persistence: load, validate and resolve overlay fonts.

Runtime fonts are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first launch (or if the file
is missing/corrupt), the file is created from DEFAULT_FONTS.  This
module is Qt-free.

The on-disk format uses a versioned envelope::

    {"version": 1, "fonts": [ ... ]}

Each entry has a display ``name`` (what OverlayState.font stores), the Qt
``family`` used by the editor, an optional ``generic`` family (``serif``,
``sans-serif``, ...) tried when the family is not installed, and an optional
font-file ``path`` that takes precedence for exports.
"""

import json
import logging
from copy import deepcopy
from pathlib import Path

import matplotlib.font_manager as fm
from PIL import ImageFont

from cover_crop_tool.config import DEFAULT_FONTS, SYSTEM_FONT_CANDIDATES, config_dir

logger = logging.getLogger(__name__)

_FONTS_FILENAME = "fonts.json"
_FORMAT_VERSION = 1

_REQUIRED_KEYS = {"name", "family", "path"}


# =============================================================================
# Config directory helpers
# =============================================================================
def _fonts_path() -> Path:
    """Return the full path to fonts.json."""
    return config_dir() / _FONTS_FILENAME


# =============================================================================
# Validation
# =============================================================================
def validate_fonts(data: object) -> list[str]:
    """
    Validate a font registry structure.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list):
        errors.append("Fonts data must be a list")
        return errors
    if not data:
        errors.append("Fonts list must not be empty")
        return errors

    names_seen: set[str] = set()

    for i, entry in enumerate(data):
        prefix = f"Font #{i + 1}"

        if not isinstance(entry, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _REQUIRED_KEYS - entry.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"{prefix}: name must be a non-empty string")
        elif name.strip() in names_seen:
            errors.append(f"{prefix}: duplicate name '{name.strip()}'")
        else:
            names_seen.add(name.strip())

        family = entry.get("family")
        if not isinstance(family, str) or not family.strip():
            errors.append(f"{prefix}: family must be a non-empty string")

        if not isinstance(entry.get("path"), str):
            errors.append(f"{prefix}: path must be a string (may be empty)")

        if not isinstance(entry.get("generic", ""), str):
            errors.append(f"{prefix}: generic must be a string")

    return errors


# =============================================================================
# Load
# =============================================================================
def load_fonts() -> list[dict]:
    """
    Load the font registry from fonts.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _fonts_path()

    if not path.exists():
        logger.info("fonts.json not found; creating with defaults at %s", path)
        _write_defaults(path)
        return deepcopy(DEFAULT_FONTS)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read fonts.json (%s); restoring defaults", exc)
        _write_defaults(path)
        return deepcopy(DEFAULT_FONTS)

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "fonts" not in raw:
        logger.warning("fonts.json missing version envelope; restoring defaults")
        _write_defaults(path)
        return deepcopy(DEFAULT_FONTS)

    data = raw["fonts"]
    errors = validate_fonts(data)
    if errors:
        logger.warning(
            "fonts.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return deepcopy(DEFAULT_FONTS)

    return data


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_FONTS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "fonts": deepcopy(DEFAULT_FONTS)}
        path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        logger.error("Could not write default fonts to %s: %s", path, exc)


# =============================================================================
# Resolution
# =============================================================================
def find_font(fonts: list[dict], name: str) -> dict:
    """Return the registry entry called *name*, or the first entry."""
    for entry in fonts:
        if entry["name"] == name:
            return entry
    return fonts[0] if fonts else deepcopy(DEFAULT_FONTS[0])


def resolve_font_file(entry: dict) -> str | None:
    """Bold font file for the entry's family (or its generic family), if any."""
    families = [f for f in (entry.get("family"), entry.get("generic")) if f]
    if not families:
        return None
    try:
        return fm.findfont(
            fm.FontProperties(family=families, weight="bold"),
            fallback_to_default=False,
        )
    except ValueError:
        return None


def load_pil_font(entry: dict, size: float) -> ImageFont.FreeTypeFont:
    """Load a bold Pillow font for *entry* at *size* pixels.

    Tries the entry's own file, then its family through matplotlib's font
    manager, then the system candidates, then Pillow's bundled default font.
    """
    size = max(1.0, float(size))
    candidates = [entry["path"]] if entry.get("path") else []
    family_file = resolve_font_file(entry)
    if family_file:
        candidates.append(family_file)
    for font_path in candidates + SYSTEM_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            continue
    logger.debug("No font file found for %r; using Pillow default", entry.get("name"))
    return ImageFont.load_default(size=size)
