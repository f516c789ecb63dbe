import asyncio
import base64
import logging
import os
from datetime import datetime, timezone
from io import BytesIO
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from jobsite.client.exceptions import DecodeError, ReadError
from jobsite.client.models import CompressedPhoto

logger = logging.getLogger(__name__)

JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"


def scaled_dimensions(width: int, height: int, max_width: int) -> Tuple[int, int]:
	"""Shrink to ``max_width`` keeping the aspect ratio; never upscale"""
	if width <= max_width:
		return width, height
	return max_width, max(1, round(height * max_width / width))


def estimate_size(data_uri: str) -> int:
	"""Decoded byte count of a base64 data URI, floor(len(body) * 3 / 4)"""
	body = data_uri.partition(",")[2]
	return len(body) * 3 // 4


class ImageCompressor:
	"""Downscale and re-encode photos to JPEG data URIs before staging.

	``quality`` is the 0..1 factor a browser canvas takes; Pillow gets it
	as a 1..95 integer.
	"""

	def __init__(self, max_width: int = 800, quality: float = 0.6):
		if max_width < 1:
			raise ValueError("max_width must be positive")
		if not 0 < quality <= 1:
			raise ValueError("quality must be in (0, 1]")
		self.max_width = max_width
		self.quality = quality

	@property
	def jpeg_quality(self) -> int:
		return max(1, min(95, round(self.quality * 100)))

	def compress_bytes(self, raw: bytes, name: str) -> CompressedPhoto:
		try:
			with Image.open(BytesIO(raw)) as img:
				img.load()
				img = ImageOps.exif_transpose(img)
				if img.mode != "RGB":
					img = img.convert("RGB")

				width, height = scaled_dimensions(img.width, img.height, self.max_width)
				if (width, height) != img.size:
					img = img.resize((width, height), Image.Resampling.LANCZOS)

				buffer = BytesIO()
				img.save(buffer, format="JPEG", quality=self.jpeg_quality, optimize=True)
		except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
			raise DecodeError(f"Failed to load image {name}") from e

		data = JPEG_DATA_URI_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")
		photo = CompressedPhoto(
			name=name,
			data=data,
			size=estimate_size(data),
			timestamp=datetime.now(timezone.utc).isoformat(),
			width=width,
			height=height,
		)
		logger.debug(f"Compressed {name}: {len(raw)} -> {photo.size} bytes, {width}x{height}")
		return photo

	def compress_file(self, path: str) -> CompressedPhoto:
		try:
			with open(path, "rb") as f:
				raw = f.read()
		except OSError as e:
			raise ReadError(f"Failed to read file {path}") from e
		return self.compress_bytes(raw, os.path.basename(path))

	async def compress(self, path: str) -> CompressedPhoto:
		"""Compress off the event loop so the UI keeps processing events"""
		return await asyncio.to_thread(self.compress_file, path)
