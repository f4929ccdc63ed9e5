import math

import pytest

from cover_crop_tool.models import CropGeometry, ExportKind, OverlayState, clamp_percent, plan_crop


def test_overlay_defaults_centered():
    o = OverlayState()
    assert (o.x, o.y) == (50.0, 50.0)
    assert o.text == ""
    assert not o.is_dragging
    assert not o.has_text()


def test_set_position_clamps_instead_of_rejecting():
    o = OverlayState()
    o.set_position(-20, 140)
    assert (o.x, o.y) == (0.0, 100.0)
    o.set_position(float("nan"), float("inf"))
    assert (o.x, o.y) == (0.0, 100.0)


def test_constructor_clamps_position():
    o = OverlayState(x=250, y=-1)
    assert (o.x, o.y) == (100.0, 0.0)


def test_whitespace_text_is_not_drawn():
    o = OverlayState()
    o.set_text("   ")
    assert not o.has_text()
    o.set_text("Hello")
    assert o.has_text()


def test_clamp_percent_passes_in_range_values():
    assert clamp_percent(37.5) == 37.5


@pytest.mark.parametrize("w,h", [(1, 1), (1600, 900), (1024, 1536), (7, 3000)])
def test_full_crop_is_identity(w, h):
    assert plan_crop(ExportKind.FULL, w, h) == CropGeometry(0, 0, w, h, w, h)


def test_cover_scenario_a():
    g = plan_crop(ExportKind.COVER, 1600, 900)
    assert g.target_size == (900, 383)
    scale = 1600 / 900
    assert g.sx == 0
    assert g.sw == 1600
    assert math.isclose(g.sh, 383 * scale)
    assert math.isclose(g.sh, 680.89, abs_tol=0.01)
    assert math.isclose(g.sy, (900 - 383 * scale) / 2)
    assert math.isclose(g.sy, 109.56, abs_tol=0.01)


def test_cover_on_too_wide_source_fits_height_instead():
    g = plan_crop(ExportKind.COVER, 3000, 900)
    assert g.sy == 0
    assert g.sh == 900
    assert math.isclose(g.sw, 900 * 900 / 383)
    assert g.sx > 0
    assert math.isclose(g.sx + g.sw / 2, 1500)
    assert g.target_size == (900, 383)


def test_cover_on_square_source_keeps_full_width():
    g = plan_crop(ExportKind.COVER, 1000, 1000)
    assert g.sx == 0 and g.sw == 1000
    assert g.sy >= 0
    assert g.sy + g.sh <= 1000


@pytest.mark.parametrize("w,h", [(1200, 800), (800, 1200), (500, 500), (1601, 899)])
def test_icon_crop_preserves_center(w, h):
    g = plan_crop(ExportKind.ICON, w, h)
    assert g.sw == g.sh == min(w, h)
    assert math.isclose(g.sx + g.sw / 2, w / 2)
    assert math.isclose(g.sy + g.sh / 2, h / 2)
    assert g.target_size == (500, 500)


def test_non_positive_dimensions_rejected():
    with pytest.raises(ValueError):
        plan_crop(ExportKind.ICON, 0, 100)


def test_font_ratio_per_kind():
    assert ExportKind.FULL.font_ratio == 0.08
    assert ExportKind.COVER.font_ratio == 0.15
    assert ExportKind.ICON.font_ratio == 0.15
