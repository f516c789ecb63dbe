import base64
from io import BytesIO
from typing import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from jobsite.api.dependencies import get_submission_service
from jobsite.client.models import CompressedPhoto
from jobsite.main import app
from jobsite.services import workbook_service as sheets
from jobsite.services.storage_service import LocalPhotoStorage
from jobsite.services.submission_service import SubmissionService
from jobsite.services.workbook_service import WorkbookService


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
	"""Encode a solid-colour test image"""
	def _make(width: int = 1600, height: int = 1200, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
		color = (200, 120, 40, 255) if mode == "RGBA" else (200, 120, 40)
		buffer = BytesIO()
		Image.new(mode, (width, height), color).save(buffer, format=fmt)
		return buffer.getvalue()
	return _make


@pytest.fixture
def image_file(tmp_path, image_bytes) -> Callable[..., str]:
	"""Write a test image to disk and return its path"""
	def _make(name: str = "photo.jpg", width: int = 1600, height: int = 1200, fmt: str = "JPEG") -> str:
		path = tmp_path / name
		path.write_bytes(image_bytes(width, height, fmt))
		return str(path)
	return _make


@pytest.fixture
def data_uri(image_bytes) -> Callable[..., str]:
	def _make(width: int = 320, height: int = 240) -> str:
		return "data:image/jpeg;base64," + base64.b64encode(image_bytes(width, height)).decode("ascii")
	return _make


@pytest.fixture
def make_photo() -> Callable[[str], CompressedPhoto]:
	"""A tiny already-compressed photo, no decoding involved"""
	def _make(name: str) -> CompressedPhoto:
		return CompressedPhoto(
			name=name,
			data="data:image/jpeg;base64,/9j/4AAQ",
			size=6,
			timestamp="2024-03-05T14:07:09+00:00",
			width=1,
			height=1,
		)
	return _make


@pytest.fixture
def workbook(tmp_path) -> WorkbookService:
	"""Workbook seeded with two job sites and two crew members"""
	service = WorkbookService(str(tmp_path / "jobsite_form.xlsx"))
	service.append_rows(sheets.JOB_SITES, [
		["J-100", "Riverside Tower", "12 River Rd"],
		["J-200", "Oak Street Duplex", "48 Oak St"],
	])
	service.append_rows(sheets.CREW_MEMBERS, [
		["C-1", "Dana Ruiz"],
		["C-2", "Sam Okafor"],
	])
	return service


@pytest.fixture
def photo_storage(tmp_path) -> LocalPhotoStorage:
	return LocalPhotoStorage(str(tmp_path / "photos"), "http://test")


@pytest.fixture
def submission_service(workbook, photo_storage) -> SubmissionService:
	return SubmissionService(workbook, photo_storage)


@pytest.fixture
async def client(submission_service) -> AsyncGenerator[AsyncClient, None]:
	"""Test client for the endpoint app bound to the temporary workbook"""
	app.dependency_overrides[get_submission_service] = lambda: submission_service

	async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
		yield client

	app.dependency_overrides.clear()


@pytest.fixture
def form_body() -> dict:
	return {
		"action": "submitForm",
		"jobId": "J-100",
		"crewMemberId": "C-1",
		"tradeTaskType": "Framing",
		"workPerformed": "Framed north wall",
		"locationOnSite": "Level 2",
		"status": "In progress",
		"issuesConcerns": "",
		"materialsUsed": "",
		"materialsNeeded": "",
		"weatherConditions": "Overcast",
		"deviceInfo": {"userAgent": "pytest", "platform": "test"},
	}
