import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from jobsite.client.endpoint_client import EndpointClient
from jobsite.client.exceptions import JobsiteClientError
from jobsite.client.models import (
	CompressedPhoto,
	PhotoTransport,
	ProgressEvent,
	SubmissionResult,
	SubmissionState,
	UploadResult,
)
from jobsite.schemas.submission import FormFields, FormSubmission

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class SubmissionOrchestrator:
	"""Runs one submission attempt end to end.

	With ``UPLOAD_THEN_REFERENCE`` each photo is uploaded on its own, in
	staging order, before a single metadata call referencing the returned
	links. The first failed upload ends the attempt: nothing further is
	sent and photos already uploaded stay orphaned in storage.

	With ``EMBED_DIRECTLY`` metadata and photos go out in one call and the
	endpoint reports how many photos it managed to store.

	There is no retry in either mode.
	"""

	def __init__(self, client: EndpointClient,
				 transport: PhotoTransport = PhotoTransport.UPLOAD_THEN_REFERENCE,
				 on_progress: Optional[ProgressCallback] = None):
		self.client = client
		self.transport = PhotoTransport(transport)
		self.on_progress = on_progress

	def _report(self, state: SubmissionState, message: str,
				current: Optional[int] = None, total: Optional[int] = None) -> None:
		logger.debug(f"{state.value}: {message}")
		if self.on_progress:
			self.on_progress(ProgressEvent(state, message, current, total))

	async def _upload_all(self, photos: Sequence[CompressedPhoto], uploads: List[UploadResult]) -> None:
		total = len(photos)
		for index, photo in enumerate(photos):
			self._report(
				SubmissionState.UPLOADING_PHOTO,
				f"Uploading photo {index + 1} of {total}...",
				index + 1,
				total,
			)
			uploads.append(await self.client.upload_photo(photo))

	async def submit(self, fields: FormFields, photos: Sequence[CompressedPhoto],
					 device_info: Optional[Dict[str, Any]] = None) -> SubmissionResult:
		photos = tuple(photos)
		uploads: List[UploadResult] = []

		try:
			if self.transport is PhotoTransport.UPLOAD_THEN_REFERENCE:
				await self._upload_all(photos, uploads)
				payload = FormSubmission(
					**fields.model_dump(),
					action="submitForm",
					photo_urls=[upload.to_reference() for upload in uploads],
					device_info=device_info,
				)
				self._report(SubmissionState.SUBMITTING_METADATA, "Saving form data...")
			else:
				payload = FormSubmission(
					**fields.model_dump(),
					photos=[photo.to_photo_data() for photo in photos],
					device_info=device_info,
				)
				self._report(
					SubmissionState.SUBMITTING_METADATA,
					f"Submitting report with {len(photos)} photo(s)..." if photos else "Saving form data...",
				)

			response = await self.client.submit_form(payload)
		except JobsiteClientError as e:
			if uploads:
				logger.warning(f"Submission aborted after {len(uploads)} uploaded photo(s); they are not referenced")
			logger.error(f"Form submission error: {e}")
			self._report(SubmissionState.FAILED, f"Error: {e}")
			raise

		result = SubmissionResult(
			submission_id=response.submission_id,
			timestamp=response.timestamp or "",
			recorded_photo_count=response.photos_recorded,
			uploads=uploads,
		)
		if result.recorded_photo_count < len(photos):
			logger.warning(
				f"Submission {result.submission_id}: {result.recorded_photo_count} of {len(photos)} photo(s) recorded"
			)
		self._report(SubmissionState.SUCCESS, _success_message(result.recorded_photo_count))
		return result


def _success_message(recorded: int) -> str:
	photo_msg = f" with {recorded} photo(s)" if recorded > 0 else ""
	return f"Report submitted successfully{photo_msg}!"
