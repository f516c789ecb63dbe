from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from jobsite.schemas.base import CamelModel, EndpointResponse
from jobsite.schemas.photo import EmbeddedPhoto, PhotoReference

REQUIRED_FIELDS = (
	"job_id",
	"crew_member_id",
	"trade_task_type",
	"work_performed",
	"location_on_site",
	"status",
)

OPTIONAL_FIELDS = (
	"issues_concerns",
	"materials_used",
	"materials_needed",
	"weather_conditions",
)


class FormFields(CamelModel):
	job_id: str
	crew_member_id: str
	trade_task_type: str
	work_performed: str
	location_on_site: str
	status: str
	issues_concerns: Optional[str] = None
	materials_used: Optional[str] = None
	materials_needed: Optional[str] = None
	weather_conditions: Optional[str] = None

	@field_validator(*REQUIRED_FIELDS)
	def check_required(cls, v, info):
		if not v or not v.strip():
			raise ValueError(f"{info.field_name} is required")
		return v


class FormSubmission(FormFields):
	"""Body of a submitForm call.

	The two-phase flow sends ``photoUrls`` pointing at photos uploaded
	beforehand; the embedded flow omits ``action`` and carries ``photos``.
	"""
	action: Optional[Literal["submitForm"]] = None
	photo_urls: List[PhotoReference] = []
	photos: List[EmbeddedPhoto] = []
	device_info: Optional[Dict[str, Any]] = None


class SubmitFormResponse(EndpointResponse):
	submission_id: Optional[str] = None
	timestamp: Optional[str] = None
	photos_recorded: int = Field(0, ge=0)
