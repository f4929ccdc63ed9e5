from copy import deepcopy

import pytest
from PIL import Image

from cover_crop_tool.config import DEFAULT_FONTS
from cover_crop_tool.image_io import encode_png


@pytest.fixture
def fonts():
    return deepcopy(DEFAULT_FONTS)


@pytest.fixture
def make_image():
    """Deterministic horizontal-gradient RGB image of the given size."""
    def _make(width: int, height: int) -> Image.Image:
        return Image.linear_gradient("L").rotate(90).resize((width, height)).convert("RGB")
    return _make


@pytest.fixture
def png_bytes(make_image):
    def _png(width: int = 160, height: int = 90) -> bytes:
        return encode_png(make_image(width, height))
    return _png


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Redirect the font registry to a temporary config directory."""
    import cover_crop_tool.fonts as fonts_module
    monkeypatch.setattr(fonts_module, "config_dir", lambda: tmp_path)
    return tmp_path
