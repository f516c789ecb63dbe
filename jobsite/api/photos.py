import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from jobsite.api.dependencies import get_submission_service
from jobsite.config import settings
from jobsite.services.storage_service import LocalPhotoStorage, StorageError, ALLOWED_CONTENT_TYPES
from jobsite.services.submission_service import SubmissionService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/config", tags=["Configuration"])
async def get_upload_config():
    """
    Upload limits for clients
    """
    return {
        "max_file_size": settings.MAX_UPLOAD_SIZE,
        "max_photos": settings.MAX_PHOTOS,
        "allowed_content_types": sorted(ALLOWED_CONTENT_TYPES),
        "storage_backend": settings.STORAGE_BACKEND,
    }


@router.get("/{file_name}", tags=["Photos"])
async def get_photo(file_name: str, service: SubmissionService = Depends(get_submission_service)):
    """
    Serve a photo stored in the local photo directory
    """
    storage = service.storage
    if not isinstance(storage, LocalPhotoStorage):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photos are not served locally")

    try:
        path = storage.path_for(file_name)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")

    return FileResponse(path, media_type="image/jpeg")
