from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
	"""Wire models: snake_case in Python, camelCase on the wire"""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	def to_wire(self) -> dict:
		return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EndpointResponse(CamelModel):
	success: bool
	error: Optional[str] = None


class ErrorResponse(EndpointResponse):
	success: bool = False
