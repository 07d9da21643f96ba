import pytest

from conftest import PNG_BYTES
from errors import InvalidInputError
from ingestion.image_ingestion import (
    INVALID_IMAGE_MESSAGE,
    ImageUpload,
    from_bytes,
    from_data_uri,
    load_image,
)


def test_load_image_reads_bytes_and_mime(tmp_path):
    path = tmp_path / "problem.png"
    path.write_bytes(PNG_BYTES)

    image = load_image(path)

    assert image.data == PNG_BYTES
    assert image.mime_type == "image/png"
    assert image.filename == "problem.png"
    assert image.data_uri.startswith("data:image/png;base64,")


def test_load_image_rejects_non_image(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("2x + 3 = 7")

    with pytest.raises(InvalidInputError) as exc_info:
        load_image(path)

    assert exc_info.value.user_message == INVALID_IMAGE_MESSAGE


def test_load_image_rejects_empty_file(tmp_path):
    path = tmp_path / "empty.jpg"
    path.write_bytes(b"")

    with pytest.raises(InvalidInputError):
        load_image(path)


def test_load_image_missing_file(tmp_path):
    with pytest.raises(InvalidInputError):
        load_image(tmp_path / "missing.png")


def test_from_bytes_requires_image_mime():
    with pytest.raises(InvalidInputError):
        from_bytes(b"%PDF-1.4", "application/pdf")

    with pytest.raises(InvalidInputError):
        from_bytes(PNG_BYTES, None)


def test_data_uri_is_parsed_back(png_image):
    parsed = from_data_uri(png_image.data_uri)

    assert parsed.data == png_image.data
    assert parsed.mime_type == "image/png"


def test_from_data_uri_rejects_non_image_and_garbage():
    with pytest.raises(InvalidInputError):
        from_data_uri("data:text/plain;base64,aGVsbG8=")

    with pytest.raises(InvalidInputError):
        from_data_uri("data:image/png;base64,***not-base64***")

    with pytest.raises(InvalidInputError):
        from_data_uri("https://example.com/problem.png")


def test_repr_does_not_dump_bytes():
    image = ImageUpload(data=PNG_BYTES, mime_type="image/png")
    assert "size=40" in repr(image)
