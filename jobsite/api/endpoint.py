import json
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from jobsite.api.dependencies import get_submission_service
from jobsite.monitoring.metrics import submissions_total
from jobsite.schemas.base import ErrorResponse
from jobsite.schemas.photo import PhotoUploadRequest
from jobsite.schemas.submission import FormSubmission
from jobsite.services.submission_service import SubmissionService

router = APIRouter()
logger = logging.getLogger(__name__)


def _failure(message: str) -> dict:
	return ErrorResponse(error=message).to_wire()


def _describe(error: ValidationError) -> str:
	return "; ".join(
		f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" if err['loc'] else err['msg']
		for err in error.errors()
	)


@router.get("/")
async def get_reference_data(service: SubmissionService = Depends(get_submission_service)):
	"""Job sites and crew members for the form dropdowns"""
	try:
		result = await run_in_threadpool(service.get_reference_data)
	except Exception as e:
		logger.error(f"Error loading reference data: {e}")
		return _failure(str(e))
	return result.to_wire()


@router.post("/")
async def post_action(request: Request, service: SubmissionService = Depends(get_submission_service)):
	"""Route a POST by its ``action``.

	Bodies are read as raw text since browsers send them as text/plain.
	A body without ``action`` is a submission carrying embedded photos.
	Handled failures answer 200 with ``success: false``.
	"""
	try:
		data = json.loads(await request.body())
		if not isinstance(data, dict):
			raise ValueError("request body must be a JSON object")
	except ValueError as e:
		logger.warning(f"Rejected malformed request body: {e}")
		return _failure(f"Invalid request body: {e}")

	action = data.get("action")
	if action == "uploadPhoto":
		try:
			upload = PhotoUploadRequest.model_validate(data)
			result = await run_in_threadpool(service.upload_photo, upload.photo)
		except ValidationError as e:
			return _failure(_describe(e))
		except Exception as e:
			logger.error(f"Error in photo upload: {e}")
			return _failure(str(e))
		return result.to_wire()

	if action not in (None, "submitForm"):
		logger.warning(f"Unknown action: {action}")
		return _failure(f"Unknown action: {action}")

	variant = "embedded" if action is None else "two_phase"
	try:
		form = FormSubmission.model_validate(data)
		result = await run_in_threadpool(service.submit_form, form)
	except ValidationError as e:
		submissions_total.labels(variant=variant, status="failed").inc()
		return _failure(_describe(e))
	except Exception as e:
		logger.exception(f"Error in form submission: {e}")
		submissions_total.labels(variant=variant, status="failed").inc()
		return _failure(str(e))

	submissions_total.labels(variant=variant, status="success").inc()
	return result.to_wire()
