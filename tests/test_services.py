import base64
import re

import boto3
import pytest
from botocore.stub import ANY, Stubber
from openpyxl import load_workbook

from jobsite.services import workbook_service as sheets
from jobsite.services.storage_service import (
	LocalPhotoStorage,
	S3PhotoStorage,
	StorageError,
	decode_data_uri,
)
from jobsite.services.submission_service import (
	generate_embedded_file_name,
	generate_upload_file_name,
	parse_materials_list,
)
from jobsite.services.workbook_service import SHEET_HEADERS, WorkbookService


@pytest.mark.parametrize("text, expected", [
	("nails\npaint", ["nails", "paint"]),
	("nails, paint", ["nails", "paint"]),
	("nails", ["nails"]),
	("drywall, tape\nmud", ["drywall, tape", "mud"]),
	("  \n , ", [","]),
	(" , ", []),
	("", []),
	(None, []),
])
def test_parse_materials_list(text, expected):
	assert parse_materials_list(text) == expected


def test_upload_file_name_uses_photo_timestamp():
	name = generate_upload_file_name("2024-12-31T23:59:58Z")
	assert re.match(r"^jobsite_20241231_235958_[0-9a-f]{8}\.jpg$", name)


def test_upload_file_name_converts_to_configured_timezone():
	name = generate_upload_file_name("2024-07-01T12:00:00Z", tz="America/New_York")
	assert name.startswith("jobsite_20240701_080000_")


def test_upload_file_name_falls_back_to_now():
	assert re.match(r"^jobsite_\d{8}_\d{6}_[0-9a-f]{8}\.jpg$", generate_upload_file_name("yesterday"))


def test_embedded_file_name():
	name = generate_embedded_file_name("3f2b8c1e-0d4a-4c55-9f1e-1d2c3b4a5f60", 0)
	assert re.match(r"^jobsite_3f2b8c1e_\d{8}_\d{6}_1\.jpg$", name)


def test_workbook_created_with_headers(tmp_path):
	path = tmp_path / "nested" / "book.xlsx"
	WorkbookService(str(path)).ensure_workbook()

	workbook = load_workbook(path)
	assert set(workbook.sheetnames) == set(SHEET_HEADERS)
	for sheet_name, headers in SHEET_HEADERS.items():
		assert [cell.value for cell in workbook[sheet_name][1]] == headers


def test_workbook_adds_missing_sheets(tmp_path):
	from openpyxl import Workbook

	path = tmp_path / "legacy.xlsx"
	legacy = Workbook()
	legacy.active.title = sheets.JOB_SITES
	legacy.active.append(["job_id", "name", "address"])
	legacy.active.append(["J-1", "Depot", "1 Yard Ln"])
	legacy.save(path)

	service = WorkbookService(str(path))
	assert service.get_job_sites() == [{"id": "J-1", "name": "Depot", "address": "1 Yard Ln"}]
	assert service.read_rows(sheets.PHOTOS) == []


def test_workbook_appends_in_order(tmp_path):
	service = WorkbookService(str(tmp_path / "book.xlsx"))
	assert service.append_rows(sheets.MATERIALS_USED, []) == 0
	service.append_rows(sheets.MATERIALS_USED, [["m1", "s1", "nails"], ["m2", "s1", "paint"]])
	service.append_row(sheets.MATERIALS_USED, ["m3", "s2", "glue"])

	assert [row[2] for row in service.read_rows(sheets.MATERIALS_USED)] == ["nails", "paint", "glue"]


def test_decode_data_uri():
	content, content_type = decode_data_uri("data:image/png;base64," + base64.b64encode(b"\x89PNG").decode())
	assert content == b"\x89PNG"
	assert content_type == "image/png"


@pytest.mark.parametrize("data", [
	"not a data uri",
	"data:image/jpeg,plain-text",
	"data:application/pdf;base64,JVBERi0=",
	"data:image/jpeg;base64,",
	"data:image/jpeg;base64,###",
])
def test_decode_data_uri_rejects(data):
	with pytest.raises(StorageError):
		decode_data_uri(data)


def test_decode_data_uri_enforces_size():
	data = "data:image/jpeg;base64," + base64.b64encode(b"x" * 100).decode()
	with pytest.raises(StorageError, match="too large"):
		decode_data_uri(data, max_size=99)


def test_local_storage_saves_and_links(tmp_path):
	storage = LocalPhotoStorage(str(tmp_path / "photos"), "https://reports.example.com/")
	stored = storage.save(b"jpeg", "jobsite_1.jpg")

	assert stored["url"] == "https://reports.example.com/photos/jobsite_1.jpg"
	assert (tmp_path / "photos" / "jobsite_1.jpg").read_bytes() == b"jpeg"
	assert storage.check_connection() is True


@pytest.mark.parametrize("name", ["../escape.jpg", "sub/dir.jpg", "..", ""])
def test_local_storage_rejects_paths(tmp_path, name):
	storage = LocalPhotoStorage(str(tmp_path), "http://test")
	with pytest.raises(StorageError):
		storage.path_for(name)


@pytest.fixture
def s3_client():
	return boto3.client(
		"s3",
		region_name="us-east-1",
		endpoint_url="http://minio.local:9000",
		aws_access_key_id="testing",
		aws_secret_access_key="testing",
	)


def test_s3_storage_uploads_and_builds_public_url(s3_client):
	stubber = Stubber(s3_client)
	stubber.add_response("head_bucket", {}, {"Bucket": "site-photos"})
	stubber.add_response(
		"put_object",
		{"ETag": '"abc123"'},
		{
			"Bucket": "site-photos",
			"Key": ANY,
			"Body": b"jpeg-bytes",
			"ContentType": "image/jpeg",
			"Metadata": ANY,
		},
	)

	with stubber:
		storage = S3PhotoStorage("site-photos", endpoint_url="http://minio.local:9000/", s3_client=s3_client)
		stored = storage.save(b"jpeg-bytes", "jobsite_20240305_140709_ab12cd34.jpg")

	stubber.assert_no_pending_responses()
	assert re.match(
		r"^http://minio\.local:9000/site-photos/photos/\d{4}/\d{2}/\d{2}/jobsite_20240305_140709_ab12cd34\.jpg$",
		stored["url"],
	)
	assert stored["file_name"] == "jobsite_20240305_140709_ab12cd34.jpg"


def test_s3_storage_creates_missing_bucket(s3_client):
	stubber = Stubber(s3_client)
	stubber.add_client_error("head_bucket", service_error_code="404", http_status_code=404)
	stubber.add_response("create_bucket", {"Location": "/site-photos"}, {"Bucket": "site-photos"})
	stubber.add_response("put_bucket_policy", {}, {"Bucket": "site-photos", "Policy": ANY})

	with stubber:
		S3PhotoStorage("site-photos", s3_client=s3_client)

	stubber.assert_no_pending_responses()


def test_s3_storage_wraps_client_errors(s3_client):
	stubber = Stubber(s3_client)
	stubber.add_response("head_bucket", {}, {"Bucket": "site-photos"})
	stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)

	with stubber:
		storage = S3PhotoStorage("site-photos", s3_client=s3_client)
		with pytest.raises(StorageError):
			storage.save(b"jpeg-bytes", "jobsite_x.jpg")

	assert storage.public_url("photos/x.jpg") == "https://site-photos.s3.amazonaws.com/photos/x.jpg"
