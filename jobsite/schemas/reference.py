from typing import List, Optional

from pydantic import ConfigDict

from jobsite.schemas.base import CamelModel, EndpointResponse


class JobSite(CamelModel):
	# Spreadsheet cells come back as numbers when an id is numeric
	model_config = ConfigDict(coerce_numbers_to_str=True)

	id: str
	name: str
	address: Optional[str] = None

	@property
	def label(self) -> str:
		return f"{self.name} - {self.address}" if self.address else self.name


class CrewMember(CamelModel):
	model_config = ConfigDict(coerce_numbers_to_str=True)

	id: str
	name: str

	@property
	def label(self) -> str:
		return self.name


class ReferenceDataResponse(EndpointResponse):
	job_sites: List[JobSite] = []
	crew_members: List[CrewMember] = []
