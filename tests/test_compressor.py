import base64
from io import BytesIO

import pytest
from PIL import Image
from pydantic import ValidationError as PydanticValidationError

from jobsite.client.compressor import ImageCompressor, estimate_size, scaled_dimensions
from jobsite.client.exceptions import DecodeError, ReadError


def decode(photo) -> Image.Image:
	body = photo.data.split(",", 1)[1]
	return Image.open(BytesIO(base64.b64decode(body)))


@pytest.mark.parametrize("width, height", [(1600, 1200), (1000, 333), (4032, 3024), (801, 5000), (3000, 7)])
def test_wide_images_are_scaled_to_max_width(width, height):
	new_width, new_height = scaled_dimensions(width, height, 800)
	assert new_width == 800
	assert abs(new_height / new_width - height / width) <= 1 / new_width


@pytest.mark.parametrize("width, height", [(800, 600), (640, 480), (1, 1), (300, 2000)])
def test_narrow_images_are_unchanged(width, height):
	assert scaled_dimensions(width, height, 800) == (width, height)


def test_extreme_aspect_ratio_keeps_one_pixel():
	assert scaled_dimensions(10000, 1, 800) == (800, 1)


def test_compress_downscales_and_encodes_jpeg(image_bytes):
	photo = ImageCompressor(max_width=800, quality=0.6).compress_bytes(image_bytes(1600, 1200), "site.jpg")

	assert photo.name == "site.jpg"
	assert photo.data.startswith("data:image/jpeg;base64,")
	assert (photo.width, photo.height) == (800, 600)
	assert photo.size == estimate_size(photo.data)
	assert photo.timestamp

	decoded = decode(photo)
	assert decoded.format == "JPEG"
	assert decoded.size == (800, 600)


def test_compress_keeps_small_image_size(image_bytes):
	photo = ImageCompressor().compress_bytes(image_bytes(640, 480), "small.jpg")
	assert decode(photo).size == (640, 480)


def test_compress_with_larger_variant_settings(image_bytes):
	compressor = ImageCompressor(max_width=1200, quality=0.8)
	assert compressor.jpeg_quality == 80

	photo = compressor.compress_bytes(image_bytes(2400, 1000), "wide.jpg")
	assert (photo.width, photo.height) == (1200, 500)


def test_compress_converts_transparent_png(image_bytes):
	photo = ImageCompressor().compress_bytes(image_bytes(400, 300, fmt="PNG", mode="RGBA"), "plan.png")
	decoded = decode(photo)
	assert decoded.format == "JPEG"
	assert decoded.mode == "RGB"


def test_estimate_size():
	body = base64.b64encode(b"x" * 10).decode()
	assert len(body) == 16
	assert estimate_size("data:image/jpeg;base64," + body) == 12


def test_compressed_photo_is_immutable(image_bytes):
	photo = ImageCompressor().compress_bytes(image_bytes(100, 100), "a.jpg")
	with pytest.raises(PydanticValidationError):
		photo.name = "b.jpg"


def test_decode_error_for_non_image():
	with pytest.raises(DecodeError):
		ImageCompressor().compress_bytes(b"%PDF-1.7 not an image", "notes.pdf")


def test_read_error_for_missing_file(tmp_path):
	with pytest.raises(ReadError):
		ImageCompressor().compress_file(str(tmp_path / "missing.jpg"))


@pytest.mark.asyncio
async def test_compress_file_async(image_file):
	path = image_file("deck.jpg", 2000, 1000)
	photo = await ImageCompressor().compress(path)
	assert photo.name == "deck.jpg"
	assert (photo.width, photo.height) == (800, 400)


@pytest.mark.parametrize("kwargs", [{"max_width": 0}, {"quality": 0}, {"quality": 1.5}])
def test_invalid_settings(kwargs):
	with pytest.raises(ValueError):
		ImageCompressor(**kwargs)
