import pytest
from PIL import Image

from cover_crop_tool.compositor import compose, export_filename, export_image, font_size_for
from cover_crop_tool.image_io import encode_png
from cover_crop_tool.models import ExportKind, OverlayState


@pytest.fixture
def overlay():
    o = OverlayState(text="HI")
    o.set_color("#ffffff")
    return o


@pytest.mark.parametrize("kind,size", [
    (ExportKind.FULL, (1600, 900)),
    (ExportKind.COVER, (900, 383)),
    (ExportKind.ICON, (500, 500)),
])
def test_output_dimensions(make_image, fonts, overlay, kind, size):
    out = compose(make_image(1600, 900), overlay, kind, True, fonts)
    assert out.size == size
    assert out.mode == "RGB"


def test_compose_is_deterministic(make_image, fonts, overlay):
    src = make_image(1200, 800)
    first = encode_png(compose(src, overlay, ExportKind.COVER, True, fonts))
    second = encode_png(compose(src, overlay, ExportKind.COVER, True, fonts))
    assert first == second


def test_hidden_overlay_exports_plain_crop(make_image, fonts, overlay):
    src = make_image(1600, 900)
    hidden = compose(src, overlay, ExportKind.COVER, False, fonts)
    plain = compose(src, OverlayState(), ExportKind.COVER, True, fonts)
    assert hidden.tobytes() == plain.tobytes()


def test_visible_overlay_changes_pixels(make_image, fonts, overlay):
    src = make_image(1600, 900)
    with_text = compose(src, overlay, ExportKind.COVER, True, fonts)
    without = compose(src, overlay, ExportKind.COVER, False, fonts)
    assert with_text.tobytes() != without.tobytes()


def test_whitespace_text_draws_nothing(make_image, fonts):
    src = make_image(800, 600)
    blank = OverlayState(text="   ")
    assert (compose(src, blank, ExportKind.ICON, True, fonts).tobytes()
            == compose(src, blank, ExportKind.ICON, False, fonts).tobytes())


def test_icon_text_centered_on_canvas(fonts, overlay):
    src = Image.new("RGB", (1200, 800), (0, 0, 0))
    out = compose(src, overlay, ExportKind.ICON, True, fonts)
    bbox = out.convert("L").point(lambda v: 255 if v > 128 else 0).getbbox()
    assert bbox is not None
    center_x = (bbox[0] + bbox[2]) / 2
    center_y = (bbox[1] + bbox[3]) / 2
    assert center_x == pytest.approx(250, abs=5)
    assert center_y == pytest.approx(250, abs=20)


def test_text_outside_crop_is_dropped(fonts):
    src = Image.new("RGB", (1200, 800), (0, 0, 0))
    o = OverlayState(text="HI", color="#ffffff", x=2, y=50)
    out = compose(src, o, ExportKind.ICON, True, fonts)
    assert out.convert("L").point(lambda v: 255 if v > 128 else 0).getbbox() is None


def test_invalid_color_falls_back(make_image, fonts):
    o = OverlayState(text="HI", color="not-a-color")
    out = compose(make_image(640, 360), o, ExportKind.FULL, True, fonts)
    assert out.size == (640, 360)


def test_font_size_scales_with_export_height():
    assert font_size_for(ExportKind.FULL, 900) == pytest.approx(72)
    assert font_size_for(ExportKind.COVER, 383) == pytest.approx(57.45)
    assert font_size_for(ExportKind.ICON, 500) == pytest.approx(75)


def test_export_filename():
    assert export_filename(ExportKind.ICON, 1700000000123) == "wechat-icon-1700000000123.png"


def test_export_writes_png(tmp_path, make_image, fonts, overlay):
    path = export_image(make_image(1600, 900), overlay, ExportKind.COVER, tmp_path, True, fonts,
                        timestamp_ms=42)
    assert path.name == "wechat-cover-42.png"
    with Image.open(path) as img:
        assert img.format == "PNG"
        assert img.size == (900, 383)
    assert not list(tmp_path.glob("*.part"))


def test_repeat_export_gets_unique_name(tmp_path, make_image, fonts, overlay):
    src = make_image(400, 300)
    first = export_image(src, overlay, ExportKind.ICON, tmp_path, True, fonts, timestamp_ms=7)
    second = export_image(src, overlay, ExportKind.ICON, tmp_path, True, fonts, timestamp_ms=7)
    assert first.name == "wechat-icon-7.png"
    assert second.name == "wechat-icon-7-01.png"
    assert first.read_bytes() == second.read_bytes()


def test_export_creates_output_dir(tmp_path, make_image, fonts, overlay):
    out_dir = tmp_path / "nested" / "covers"
    path = export_image(make_image(300, 200), overlay, ExportKind.FULL, out_dir, False, fonts,
                        timestamp_ms=1)
    assert path.parent == out_dir
    assert path.exists()


def test_registry_font_changes_exported_pixels(make_image, fonts):
    src = make_image(1600, 900)
    sans = OverlayState(text="Weekly Notes", font="Modern Sans")
    serif = OverlayState(text="Weekly Notes", font="Elegant Serif")
    assert (compose(src, sans, ExportKind.COVER, True, fonts).tobytes()
            != compose(src, serif, ExportKind.COVER, True, fonts).tobytes())
