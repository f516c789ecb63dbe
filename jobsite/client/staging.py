import logging
from typing import Callable, Iterator, List, Optional, Tuple

from jobsite.client.exceptions import IndexOutOfRange
from jobsite.client.models import CompressedPhoto

logger = logging.getLogger(__name__)


class PhotoStagingStore:
	"""Ordered photos waiting for the next submission.

	The photo limit is checked by whoever selects photos, not here. All
	mutations happen on the event loop thread, so there is no locking.
	"""

	def __init__(self, on_change: Optional[Callable[["PhotoStagingStore"], None]] = None):
		self._photos: List[CompressedPhoto] = []
		self.on_change = on_change

	def __len__(self) -> int:
		return len(self._photos)

	def __iter__(self) -> Iterator[CompressedPhoto]:
		return iter(tuple(self._photos))

	def _changed(self) -> None:
		if self.on_change:
			self.on_change(self)

	def add(self, photo: CompressedPhoto) -> None:
		self._photos.append(photo)
		self._changed()

	def remove_at(self, index: int) -> CompressedPhoto:
		if not 0 <= index < len(self._photos):
			raise IndexOutOfRange(f"No staged photo at index {index} ({len(self._photos)} staged)")
		photo = self._photos.pop(index)
		self._changed()
		return photo

	def clear(self) -> None:
		self._photos.clear()
		self._changed()

	def list_photos(self) -> Tuple[CompressedPhoto, ...]:
		"""Snapshot in staging order"""
		return tuple(self._photos)

	@property
	def total_size(self) -> int:
		return sum(photo.size for photo in self._photos)

	def summary(self) -> str:
		return f"{len(self._photos)} photo(s) selected"
