import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as SchemaError

from jobsite.client.exceptions import NetworkError, RemoteFailure
from jobsite.client.models import CompressedPhoto, UploadResult
from jobsite.schemas.base import EndpointResponse
from jobsite.schemas.photo import PhotoUploadRequest, PhotoUploadResponse
from jobsite.schemas.reference import ReferenceDataResponse
from jobsite.schemas.submission import FormSubmission, SubmitFormResponse

logger = logging.getLogger(__name__)


class EndpointClient:
	"""Async client for the report endpoint.

	Every call is a GET or POST on the same URL. POST bodies are JSON sent
	as text/plain, which keeps browsers from issuing a CORS preflight.
	"""

	def __init__(self, base_url: str, timeout: float = 60.0, api_key: Optional[str] = None,
				 http_client: Optional[httpx.AsyncClient] = None):
		self.base_url = base_url
		self.api_key = api_key
		self._owns_client = http_client is None
		self.http_client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

	async def __aenter__(self) -> "EndpointClient":
		return self

	async def __aexit__(self, *exc_info) -> None:
		await self.aclose()

	async def aclose(self) -> None:
		if self._owns_client:
			await self.http_client.aclose()

	def _headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
		headers = {"Accept": "application/json"}
		if content_type:
			headers["Content-Type"] = content_type
		if self.api_key:
			headers["X-API-Key"] = self.api_key
		return headers

	async def _request(self, body: Optional[Dict[str, Any]], what: str, default_error: str) -> Dict[str, Any]:
		try:
			if body is None:
				response = await self.http_client.get(self.base_url, headers=self._headers())
			else:
				response = await self.http_client.post(
					self.base_url,
					content=json.dumps(body),
					headers=self._headers("text/plain;charset=utf-8"),
				)
		except httpx.HTTPError as e:
			raise NetworkError(f"{what} failed: {e}") from e

		if not response.is_success:
			raise NetworkError(f"{what} failed: HTTP error! status: {response.status_code}", response.status_code)

		try:
			data = response.json()
		except ValueError as e:
			raise NetworkError(f"{what} failed: response is not JSON", response.status_code) from e
		if not isinstance(data, dict):
			raise NetworkError(f"{what} failed: unexpected response", response.status_code)

		if not data.get("success"):
			raise RemoteFailure(data.get("error") or default_error)
		return data

	def _parse(self, model, data: Dict[str, Any], what: str) -> EndpointResponse:
		try:
			return model.model_validate(data)
		except SchemaError as e:
			raise NetworkError(f"{what} failed: malformed response ({e.error_count()} error(s))") from e

	async def fetch_reference_data(self) -> ReferenceDataResponse:
		data = await self._request(None, "Loading reference data", "Failed to load data")
		return self._parse(ReferenceDataResponse, data, "Loading reference data")

	async def upload_photo(self, photo: CompressedPhoto) -> UploadResult:
		request = PhotoUploadRequest(action="uploadPhoto", photo=photo.to_photo_data())
		data = await self._request(request.to_wire(), "Photo upload", "Photo upload failed")
		response = self._parse(PhotoUploadResponse, data, "Photo upload")
		if not response.drive_url:
			raise RemoteFailure("Photo upload returned no link")
		return UploadResult(
			url=response.drive_url,
			file_id=response.file_id or "",
			file_name=response.file_name or photo.name,
		)

	async def submit_form(self, payload: FormSubmission) -> SubmitFormResponse:
		data = await self._request(payload.to_wire(), "Submission", "Submission failed")
		response = self._parse(SubmitFormResponse, data, "Submission")
		if not response.submission_id:
			raise RemoteFailure("Submission returned no identifier")
		return response
