from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from jobsite.schemas.photo import PhotoData, PhotoReference


class PhotoTransport(str, Enum):
	"""How staged photos travel with a submission"""
	UPLOAD_THEN_REFERENCE = "upload_then_reference"
	EMBED_DIRECTLY = "embed_directly"


class SubmissionState(str, Enum):
	UPLOADING_PHOTO = "uploading_photo"
	SUBMITTING_METADATA = "submitting_metadata"
	SUCCESS = "success"
	FAILED = "failed"


class CompressedPhoto(BaseModel):
	name: str = Field(..., description="Original file name")
	data: str = Field(..., description="data:image/jpeg;base64, URI")
	size: int = Field(..., ge=0, description="Approximate decoded size in bytes")
	timestamp: str = Field(..., description="ISO-8601 compression time")
	width: int = Field(..., gt=0)
	height: int = Field(..., gt=0)

	model_config = ConfigDict(frozen=True)

	def to_photo_data(self) -> PhotoData:
		return PhotoData(data=self.data, name=self.name, timestamp=self.timestamp)


class UploadResult(BaseModel):
	url: str
	file_id: str
	file_name: str

	model_config = ConfigDict(frozen=True)

	def to_reference(self) -> PhotoReference:
		return PhotoReference(url=self.url, name=self.file_name, file_id=self.file_id)


class SubmissionResult(BaseModel):
	submission_id: str
	timestamp: str
	recorded_photo_count: int
	uploads: List[UploadResult] = []


@dataclass(frozen=True)
class ProgressEvent:
	state: SubmissionState
	message: str
	current: Optional[int] = None
	total: Optional[int] = None
