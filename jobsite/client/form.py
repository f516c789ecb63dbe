import logging
import platform
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from jobsite.client.compressor import ImageCompressor
from jobsite.client.endpoint_client import EndpointClient
from jobsite.client.exceptions import JobsiteClientError, ValidationError
from jobsite.client.models import CompressedPhoto, PhotoTransport, ProgressEvent, SubmissionResult, SubmissionState
from jobsite.client.orchestrator import SubmissionOrchestrator
from jobsite.client.staging import PhotoStagingStore
from jobsite.config import Settings, settings
from jobsite.schemas.reference import CrewMember, JobSite
from jobsite.schemas.submission import FormFields, OPTIONAL_FIELDS, REQUIRED_FIELDS

logger = logging.getLogger(__name__)

FIELD_NAMES = REQUIRED_FIELDS + OPTIONAL_FIELDS

FIELD_LABELS = {
	"job_id": "Job site",
	"crew_member_id": "Crew member",
	"trade_task_type": "Trade / task type",
	"work_performed": "Work performed",
	"location_on_site": "Location on site",
	"status": "Status",
	"issues_concerns": "Issues / concerns",
	"materials_used": "Materials used",
	"materials_needed": "Materials needed",
	"weather_conditions": "Weather conditions",
}

StatusCallback = Callable[[str, str], None]


def get_device_info() -> Dict[str, Any]:
	return {
		"userAgent": f"jobsite-report/{settings.APP_VERSION} python/{platform.python_version()}",
		"platform": platform.platform(),
		"machine": platform.machine(),
		"timestamp": datetime.now(timezone.utc).isoformat(),
	}


class ReportForm:
	"""State behind one report form: field values, staged photos, submit control.

	Status text goes to ``on_status(message, kind)`` where kind is one of
	``loading``, ``success`` or ``error``.
	"""

	def __init__(self, client: EndpointClient, compressor: Optional[ImageCompressor] = None,
				 transport: PhotoTransport = PhotoTransport.UPLOAD_THEN_REFERENCE,
				 max_photos: int = 10, on_status: Optional[StatusCallback] = None):
		self.client = client
		self.compressor = compressor or ImageCompressor()
		self.max_photos = max_photos
		self.on_status = on_status
		self.values: Dict[str, str] = {name: "" for name in FIELD_NAMES}
		self.photos = PhotoStagingStore()
		self.job_sites: List[JobSite] = []
		self.crew_members: List[CrewMember] = []
		self.is_submitting = False
		self.orchestrator = SubmissionOrchestrator(client, transport, on_progress=self._on_progress)

	@classmethod
	def from_settings(cls, client: EndpointClient, config: Settings = settings,
					  on_status: Optional[StatusCallback] = None,
					  transport: Optional[PhotoTransport] = None) -> "ReportForm":
		return cls(
			client,
			compressor=ImageCompressor(config.PHOTO_MAX_WIDTH, config.PHOTO_QUALITY),
			transport=PhotoTransport(transport or config.PHOTO_TRANSPORT),
			max_photos=config.MAX_PHOTOS,
			on_status=on_status,
		)

	def show_status(self, message: str, kind: str = "loading") -> None:
		if self.on_status:
			self.on_status(message, kind)

	def _on_progress(self, event: ProgressEvent) -> None:
		if event.state in (SubmissionState.UPLOADING_PHOTO, SubmissionState.SUBMITTING_METADATA):
			self.show_status(event.message, "loading")

	# Fields

	def set_field(self, name: str, value: str) -> None:
		if name not in self.values:
			raise ValidationError(f"Unknown field: {name}")
		self.values[name] = value or ""

	def append_transcript(self, name: str, transcript: str) -> str:
		"""Append dictated text to a field, replacing it when blank"""
		if name not in self.values:
			raise ValidationError(f"Unknown field: {name}")
		current = self.values[name].strip()
		transcript = transcript.strip()
		self.values[name] = f"{current} {transcript}" if current else transcript
		return self.values[name]

	def validate(self) -> FormFields:
		missing = [name for name in REQUIRED_FIELDS if not self.values[name].strip()]
		if missing:
			raise ValidationError(
				"Please fill in: " + ", ".join(FIELD_LABELS[name] for name in missing)
			)
		return FormFields(**self.values)

	def reset(self) -> None:
		self.values = {name: "" for name in FIELD_NAMES}
		self.photos.clear()

	# Reference data

	async def load_reference_data(self) -> None:
		self.show_status("Loading job sites and crew members...", "loading")
		try:
			data = await self.client.fetch_reference_data()
		except JobsiteClientError as e:
			logger.error(f"Error loading dropdown data: {e}")
			self.show_status("Error loading data. Please refresh the page.", "error")
			raise

		self.job_sites = data.job_sites
		self.crew_members = data.crew_members
		self.show_status("", "hidden")

	def job_site_options(self) -> List[Tuple[str, str]]:
		return [(site.id, site.label) for site in self.job_sites]

	def crew_member_options(self) -> List[Tuple[str, str]]:
		return [(member.id, member.label) for member in self.crew_members]

	# Photos

	async def select_photos(self, paths: Sequence[str]) -> List[CompressedPhoto]:
		"""Compress and stage a selection, refusing it whole if it exceeds the limit"""
		if len(self.photos) + len(paths) > self.max_photos:
			self.show_status(f"Maximum {self.max_photos} photos allowed", "error")
			raise ValidationError(f"Maximum {self.max_photos} photos allowed")
		if not paths:
			return []

		self.show_status(f"Compressing {len(paths)} photo(s)...", "loading")
		added = []
		try:
			for path in paths:
				photo = await self.compressor.compress(path)
				self.photos.add(photo)
				added.append(photo)
		except JobsiteClientError as e:
			logger.error(f"Error processing photos: {e}")
			self.show_status("Error processing photos. Please try again.", "error")
			raise

		self.show_status(self.photos.summary(), "hidden")
		return added

	def remove_photo(self, index: int) -> CompressedPhoto:
		return self.photos.remove_at(index)

	# Submission

	async def submit(self) -> SubmissionResult:
		if self.is_submitting:
			raise ValidationError("A submission is already in progress")

		try:
			fields = self.validate()
		except ValidationError as e:
			self.show_status(str(e), "error")
			raise

		self.is_submitting = True
		try:
			result = await self.orchestrator.submit(fields, self.photos.list_photos(), get_device_info())
		except JobsiteClientError as e:
			self.show_status(f"Error: {e}", "error")
			raise
		finally:
			self.is_submitting = False

		photo_msg = f" with {result.recorded_photo_count} photo(s)" if result.recorded_photo_count > 0 else ""
		self.show_status(f"Report submitted successfully{photo_msg}!", "success")
		self.reset()
		return result
