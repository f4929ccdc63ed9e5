import json

import pytest

from cover_crop_tool.config import DEFAULT_FONTS
from cover_crop_tool.fonts import find_font, load_fonts, load_pil_font, resolve_font_file, validate_fonts


def test_first_launch_writes_defaults(config_home):
    fonts = load_fonts()
    assert fonts == DEFAULT_FONTS
    raw = json.loads((config_home / "fonts.json").read_text(encoding="utf-8"))
    assert raw["version"] == 1
    assert raw["fonts"] == DEFAULT_FONTS


def test_returned_defaults_are_a_copy(config_home):
    fonts = load_fonts()
    fonts[0]["name"] = "Changed"
    assert DEFAULT_FONTS[0]["name"] != "Changed"


def test_corrupt_file_restores_defaults(config_home):
    (config_home / "fonts.json").write_text("{not json", encoding="utf-8")
    assert load_fonts() == DEFAULT_FONTS
    assert json.loads((config_home / "fonts.json").read_text(encoding="utf-8"))["version"] == 1


def test_bare_list_without_envelope_restores_defaults(config_home):
    (config_home / "fonts.json").write_text(json.dumps(DEFAULT_FONTS[:1]), encoding="utf-8")
    assert load_fonts() == DEFAULT_FONTS


def test_valid_custom_registry_is_kept(config_home):
    custom = [{"name": "Mono", "family": "DejaVu Sans Mono", "generic": "monospace", "path": ""}]
    (config_home / "fonts.json").write_text(
        json.dumps({"version": 1, "fonts": custom}), encoding="utf-8",
    )
    assert load_fonts() == custom


def test_empty_registry_restores_defaults(config_home):
    (config_home / "fonts.json").write_text(json.dumps({"version": 1, "fonts": []}), encoding="utf-8")
    assert load_fonts() == DEFAULT_FONTS


def test_validate_reports_each_problem():
    errors = validate_fonts([
        {"name": "A", "family": "Sans", "path": ""},
        {"name": "A", "family": "", "path": None},
        {"name": "B"},
        "oops",
    ])
    assert any("duplicate name 'A'" in e for e in errors)
    assert any("family must be" in e for e in errors)
    assert any("path must be" in e for e in errors)
    assert any("missing keys" in e for e in errors)
    assert any("must be a dict" in e for e in errors)


def test_validate_accepts_defaults():
    assert validate_fonts(DEFAULT_FONTS) == []


def test_find_font_falls_back_to_first(fonts):
    assert find_font(fonts, fonts[1]["name"]) is fonts[1]
    assert find_font(fonts, "No Such Font") is fonts[0]


def test_load_pil_font_always_returns_a_font():
    entry = {"name": "Missing", "family": "Missing", "path": "/nonexistent/font.ttf"}
    font = load_pil_font(entry, 40)
    left, top, right, bottom = font.getbbox("Hi")
    assert right > left
    assert bottom > top


def test_validate_rejects_non_string_generic():
    errors = validate_fonts([{"name": "A", "family": "Sans", "generic": 3, "path": ""}])
    assert errors == ["Font #1: generic must be a string"]


def test_serif_and_sans_entries_resolve_to_different_files(fonts):
    sans = resolve_font_file(find_font(fonts, "Modern Sans"))
    serif = resolve_font_file(find_font(fonts, "Elegant Serif"))
    assert sans and serif
    assert sans != serif


def test_generic_family_used_when_family_missing():
    entry = {"name": "X", "family": "No Such Family 123", "generic": "serif", "path": ""}
    assert resolve_font_file(entry) is not None


def test_unresolvable_entry_has_no_file():
    assert resolve_font_file({"name": "X", "family": "No Such Family 123", "path": ""}) is None


def test_fractional_size_is_kept(fonts):
    font = load_pil_font(fonts[0], 383 * 0.15)
    assert font.size == pytest.approx(57.45)
