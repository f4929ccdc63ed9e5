import pytest

from cover_crop_tool.config import MAX_UPLOAD_BYTES
from cover_crop_tool.errors import InputValidationError, UploadTooLargeError
from cover_crop_tool.image_io import ReferenceImage, decode_image, read_upload, unique_path


def test_oversized_upload_rejected_before_read(tmp_path):
    big = tmp_path / "huge.png"
    big.write_bytes(b"\0" * (5 * 1024 * 1024))
    with pytest.raises(UploadTooLargeError) as exc_info:
        read_upload(big)
    assert exc_info.value.size == 5 * 1024 * 1024
    assert exc_info.value.limit == MAX_UPLOAD_BYTES
    assert str(exc_info.value) == (
        "Image size too large (5.0 MB). Please choose an image under 4MB."
    )


def test_upload_at_limit_is_checked_for_content(tmp_path):
    exact = tmp_path / "exact.png"
    exact.write_bytes(b"\0" * MAX_UPLOAD_BYTES)
    with pytest.raises(InputValidationError) as exc_info:
        read_upload(exact)
    assert not isinstance(exc_info.value, UploadTooLargeError)


def test_unsupported_extension(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    with pytest.raises(InputValidationError, match="Unsupported"):
        read_upload(path)


def test_missing_file(tmp_path):
    with pytest.raises(InputValidationError):
        read_upload(tmp_path / "gone.png")


def test_valid_upload_keeps_bytes(tmp_path, png_bytes):
    data = png_bytes()
    path = tmp_path / "ref.PNG"
    path.write_bytes(data)
    ref = read_upload(path)
    assert ref.data == data
    assert ref.mime_type == "image/png"


def test_data_uri_round_trip(png_bytes):
    ref = ReferenceImage(png_bytes(), "image/png")
    uri = ref.to_data_uri()
    assert uri.startswith("data:image/png;base64,")
    assert ReferenceImage.from_data_uri(uri) == ref


@pytest.mark.parametrize("uri", [
    "not a uri",
    "data:image/png,abcd",
    "data:image/png;base64,@@@",
])
def test_malformed_data_uri(uri):
    with pytest.raises(InputValidationError):
        ReferenceImage.from_data_uri(uri)


def test_oversized_data_uri():
    ref = ReferenceImage(b"\1" * (MAX_UPLOAD_BYTES + 1), "image/jpeg")
    with pytest.raises(UploadTooLargeError):
        ReferenceImage.from_data_uri(ref.to_data_uri())


def test_decode_image_loads_pixels(png_bytes):
    img = decode_image(png_bytes(32, 18))
    assert img.size == (32, 18)
    assert img.format == "PNG"


def test_decode_image_rejects_garbage():
    with pytest.raises(ValueError):
        decode_image(b"definitely not an image")


def test_unique_path(tmp_path):
    target = tmp_path / "a.png"
    assert unique_path(target) == target
    target.write_bytes(b"x")
    (tmp_path / "a-01.png").write_bytes(b"x")
    assert unique_path(target) == tmp_path / "a-02.png"
