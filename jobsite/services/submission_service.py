import json
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from jobsite.config import Settings, settings as default_settings
from jobsite.monitoring.metrics import photos_stored_total, photo_size_bytes
from jobsite.schemas.photo import EmbeddedPhoto, PhotoData, PhotoUploadResponse
from jobsite.schemas.reference import ReferenceDataResponse
from jobsite.schemas.submission import FormSubmission, SubmitFormResponse
from jobsite.services import workbook_service as sheets
from jobsite.services.storage_service import StorageError, decode_data_uri
from jobsite.services.workbook_service import WorkbookService

logger = logging.getLogger(__name__)


def parse_materials_list(text: Optional[str]) -> List[str]:
	"""Split free text into material items.

	Newlines take precedence; a single line is split on commas instead.
	"""
	if not text or not text.strip():
		return []

	items = text.split("\n")
	if len(items) == 1:
		items = text.split(",")

	return [item.strip() for item in items if item.strip()]


def to_iso(value: datetime) -> str:
	return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
	if not value:
		return None
	try:
		parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
	except ValueError:
		return None
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed


def generate_upload_file_name(timestamp: Optional[str], tz: str = "UTC") -> str:
	"""jobsite_<yyyyMMdd_HHmmss>_<8-char id>.jpg, dated from the capture timestamp"""
	taken_at = parse_timestamp(timestamp) or datetime.now(timezone.utc)
	formatted = taken_at.astimezone(ZoneInfo(tz)).strftime("%Y%m%d_%H%M%S")
	return f"jobsite_{formatted}_{str(uuid.uuid4())[:8]}.jpg"


def generate_embedded_file_name(submission_id: str, index: int, tz: str = "UTC") -> str:
	"""jobsite_<8-char submission id>_<yyyyMMdd_HHmmss>_<index+1>.jpg"""
	formatted = datetime.now(ZoneInfo(tz)).strftime("%Y%m%d_%H%M%S")
	return f"jobsite_{submission_id[:8]}_{formatted}_{index + 1}.jpg"


class SubmissionService:
	def __init__(self, workbook: WorkbookService, storage, config: Settings = None):
		self.workbook = workbook
		self.storage = storage
		self.config = config or default_settings

	def get_reference_data(self) -> ReferenceDataResponse:
		return ReferenceDataResponse(
			success=True,
			job_sites=self.workbook.get_job_sites(),
			crew_members=self.workbook.get_crew_members(),
		)

	def _store_photo(self, photo: EmbeddedPhoto, file_name: str, source: str) -> dict:
		try:
			content, content_type = decode_data_uri(photo.data, self.config.MAX_UPLOAD_SIZE)
			stored = self.storage.save(
				content,
				file_name,
				content_type=content_type,
				metadata={"original-filename": photo.name or file_name},
			)
		except StorageError:
			photos_stored_total.labels(source=source, status="failed").inc()
			raise

		photos_stored_total.labels(source=source, status="success").inc()
		photo_size_bytes.observe(len(content))
		return stored

	def upload_photo(self, photo: PhotoData) -> PhotoUploadResponse:
		"""Persist one photo ahead of its submission and return its link"""
		logger.info(f"Starting photo upload: {photo.name} ({len(photo.data)} chars)")
		file_name = generate_upload_file_name(photo.timestamp, self.config.TIMEZONE)
		stored = self._store_photo(photo, file_name, source="upload")

		logger.info(f"Upload complete: {stored['file_name']} ({stored['id']})")
		return PhotoUploadResponse(
			success=True,
			drive_url=stored["url"],
			file_id=stored["id"],
			file_name=stored["file_name"],
		)

	def _store_embedded_photos(self, photos: Sequence[EmbeddedPhoto], submission_id: str) -> List[list]:
		rows = []
		for index, photo in enumerate(photos):
			file_name = generate_embedded_file_name(submission_id, index, self.config.TIMEZONE)
			try:
				stored = self._store_photo(photo, file_name, source="embedded")
			except StorageError as e:
				# Skip this photo; the reduced count is all the caller learns
				logger.error(f"Error uploading photo {index} of submission {submission_id}: {e}")
				continue
			rows.append([
				str(uuid.uuid4()),
				submission_id,
				stored["url"],
				photo.name or f"Photo {index + 1}",
				datetime.now(timezone.utc).replace(tzinfo=None),
			])
		return rows

	def submit_form(self, form: FormSubmission) -> SubmitFormResponse:
		submission_id = str(uuid.uuid4())
		now = datetime.now(timezone.utc)

		self.workbook.append_row(sheets.FORM_SUBMISSIONS, [
			submission_id,
			form.job_id,
			form.crew_member_id,
			now.replace(tzinfo=None),
			form.trade_task_type,
			form.work_performed,
			form.location_on_site,
			form.status,
			form.issues_concerns or "",
			form.weather_conditions or "",
			json.dumps(form.device_info) if form.device_info else "",
		])

		for sheet_name, text in ((sheets.MATERIALS_USED, form.materials_used),
								 (sheets.MATERIALS_NEEDED, form.materials_needed)):
			self.workbook.append_rows(sheet_name, [
				[str(uuid.uuid4()), submission_id, material]
				for material in parse_materials_list(text)
			])

		photo_rows = [
			[
				str(uuid.uuid4()),
				submission_id,
				reference.url,
				reference.name or f"Photo {index + 1}",
				datetime.now(timezone.utc).replace(tzinfo=None),
			]
			for index, reference in enumerate(form.photo_urls)
		]
		if form.photos:
			photo_rows.extend(self._store_embedded_photos(form.photos, submission_id))
		recorded = self.workbook.append_rows(sheets.PHOTOS, photo_rows)

		logger.info(
			f"Submission {submission_id} recorded for job {form.job_id} "
			f"by crew member {form.crew_member_id} with {recorded} photo(s)"
		)
		return SubmitFormResponse(
			success=True,
			submission_id=submission_id,
			timestamp=to_iso(now),
			photos_recorded=recorded,
		)
