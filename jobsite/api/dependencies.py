from functools import lru_cache

from jobsite.config import settings
from jobsite.services.storage_service import create_photo_storage
from jobsite.services.submission_service import SubmissionService
from jobsite.services.workbook_service import WorkbookService


@lru_cache()
def get_submission_service() -> SubmissionService:
	"""Process-wide service bound to the configured workbook and photo storage"""
	workbook = WorkbookService(settings.WORKBOOK_PATH)
	return SubmissionService(workbook, create_photo_storage(settings), settings)
