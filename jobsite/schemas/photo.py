from typing import Literal, Optional

from pydantic import Field, field_validator

from jobsite.schemas.base import CamelModel, EndpointResponse

DATA_URI_PREFIX = "data:image/jpeg;base64,"


class EmbeddedPhoto(CamelModel):
	"""A photo carried inside a submission.

	Left unchecked here: a photo that cannot be decoded is skipped when it
	is stored and only lowers the recorded count.
	"""
	data: str = ""
	name: Optional[str] = None
	timestamp: Optional[str] = None


class PhotoData(EmbeddedPhoto):
	"""A photo as carried on the wire: a data URI plus its original name"""
	data: str = Field(..., description="data:image/...;base64, URI")
	name: str = Field(..., description="Original file name")
	timestamp: Optional[str] = Field(None, description="ISO-8601 capture time")

	@field_validator("data")
	def check_data_uri(cls, v):
		if not v.startswith("data:") or "," not in v:
			raise ValueError("photo data must be a base64 data URI")
		return v


class PhotoUploadRequest(CamelModel):
	action: Literal["uploadPhoto"]
	photo: PhotoData


class PhotoReference(CamelModel):
	"""A photo already persisted by an earlier upload call"""
	url: str
	name: Optional[str] = None
	file_id: Optional[str] = None


class PhotoUploadResponse(EndpointResponse):
	drive_url: Optional[str] = None
	file_id: Optional[str] = None
	file_name: Optional[str] = None
