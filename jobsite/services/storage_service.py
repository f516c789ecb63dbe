import base64
import binascii
import json
import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from jobsite.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}


class StorageError(Exception):
	"""A photo could not be decoded or persisted"""


def decode_data_uri(data: str, max_size: Optional[int] = None) -> Tuple[bytes, str]:
	"""Split a ``data:<mime>;base64,<body>`` URI into raw bytes and its MIME type"""
	header, sep, body = data.partition(",")
	if not sep or not header.startswith("data:") or ";base64" not in header:
		raise StorageError("Photo data is not a base64 data URI")

	content_type = header[len("data:"):].split(";")[0] or "image/jpeg"
	if content_type not in ALLOWED_CONTENT_TYPES:
		raise StorageError(f"Content type not allowed: {content_type}")

	try:
		content = base64.b64decode(body, validate=True)
	except (binascii.Error, ValueError) as e:
		raise StorageError(f"Invalid base64 photo data: {e}") from e

	if not content:
		raise StorageError("Photo data is empty")
	if max_size is not None and len(content) > max_size:
		raise StorageError(f"Photo too large: {len(content)} bytes (max: {max_size})")
	return content, content_type


class LocalPhotoStorage:
	"""Stores photos in a directory served back by the /photos route"""

	def __init__(self, directory: str, public_base_url: str):
		self.directory = Path(directory)
		self.public_base_url = public_base_url.rstrip("/")

	def path_for(self, file_name: str) -> Path:
		if os.path.basename(file_name) != file_name or file_name in ("", ".", ".."):
			raise StorageError(f"Invalid file name: {file_name}")
		return self.directory / file_name

	def save(self, content: bytes, file_name: str, content_type: str = "image/jpeg",
			 metadata: Optional[Dict[str, str]] = None) -> Dict[str, str]:
		path = self.path_for(file_name)
		try:
			os.makedirs(self.directory, exist_ok=True)
			with open(path, "wb") as f:
				f.write(content)
		except OSError as e:
			logger.error(f"Could not write photo {path}: {e}")
			raise StorageError(f"Could not write photo: {e}") from e

		logger.info(f"Photo stored at {path} ({len(content)} bytes)")
		return {
			"id": str(uuid.uuid4()),
			"file_name": file_name,
			"url": f"{self.public_base_url}/photos/{file_name}",
		}

	def check_connection(self) -> bool:
		try:
			os.makedirs(self.directory, exist_ok=True)
			return os.access(self.directory, os.W_OK)
		except OSError as e:
			logger.error(f"Photo directory health check failed: {e}")
			return False


class S3PhotoStorage:
	"""Stores photos in an S3-compatible bucket with public read access"""

	def __init__(self, bucket_name: str, endpoint_url: Optional[str] = None,
				 access_key_id: Optional[str] = None, secret_access_key: Optional[str] = None,
				 region: Optional[str] = None, s3_client=None):
		self.s3_client = s3_client or boto3.client(
			"s3",
			endpoint_url=endpoint_url,
			aws_access_key_id=access_key_id,
			aws_secret_access_key=secret_access_key,
			region_name=region,
			config=BotoConfig(
				signature_version="s3v4",
				s3={"addressing_style": "path"},
			),
		)
		self.bucket_name = bucket_name
		self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
		self.region = region
		self._ensure_bucket_exists()

	def _ensure_bucket_exists(self):
		"""Create the bucket if it does not exist"""
		try:
			self.s3_client.head_bucket(Bucket=self.bucket_name)
			logger.info(f"Bucket {self.bucket_name} already exists")
		except ClientError as e:
			error_code = e.response['Error']['Code']
			if error_code not in ('404', 'NoSuchBucket'):
				logger.error(f"Error checking bucket: {e}")
				raise StorageError(f"Cannot access bucket {self.bucket_name}: {e}") from e
			try:
				create_params = {'Bucket': self.bucket_name}
				if self.region and self.region != "us-east-1":
					create_params['CreateBucketConfiguration'] = {'LocationConstraint': self.region}
				self.s3_client.create_bucket(**create_params)
				policy = {
					"Version": "2012-10-17",
					"Statement": [
						{
							"Effect": "Allow",
							"Principal": "*",
							"Action": ["s3:GetObject"],
							"Resource": f"arn:aws:s3:::{self.bucket_name}/*"
						}
					]
				}
				self.s3_client.put_bucket_policy(Bucket=self.bucket_name, Policy=json.dumps(policy))
				logger.info(f"Bucket {self.bucket_name} created with public read policy")
			except ClientError as create_error:
				logger.error(f"Error creating bucket: {create_error}")
				raise StorageError(f"Cannot create bucket {self.bucket_name}: {create_error}") from create_error

	def public_url(self, key: str) -> str:
		if self.endpoint_url:
			return f"{self.endpoint_url}/{self.bucket_name}/{key}"
		return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

	def save(self, content: bytes, file_name: str, content_type: str = "image/jpeg",
			 metadata: Optional[Dict[str, str]] = None) -> Dict[str, str]:
		file_id = str(uuid.uuid4())
		key = f"photos/{datetime.now().strftime('%Y/%m/%d')}/{file_name}"

		object_metadata = {
			'file-id': file_id,
			'upload-timestamp': datetime.now().isoformat(),
		}
		if metadata:
			object_metadata.update(metadata)

		try:
			self.s3_client.put_object(
				Bucket=self.bucket_name,
				Key=key,
				Body=content,
				ContentType=content_type,
				Metadata=object_metadata,
			)
		except (ClientError, BotoCoreError) as e:
			logger.error(f"S3 error while uploading {key}: {e}")
			raise StorageError(f"Error uploading to S3: {e}") from e

		return {
			"id": file_id,
			"file_name": file_name,
			"url": self.public_url(key),
		}

	def check_connection(self) -> bool:
		try:
			self.s3_client.head_bucket(Bucket=self.bucket_name)
			return True
		except (ClientError, BotoCoreError) as e:
			logger.error(f"S3 health check failed: {e}")
			return False


def create_photo_storage(config: Settings = None):
	config = config or default_settings
	if config.STORAGE_BACKEND == "s3":
		return S3PhotoStorage(
			bucket_name=config.S3_BUCKET_NAME,
			endpoint_url=config.S3_ENDPOINT_URL,
			access_key_id=config.AWS_ACCESS_KEY_ID,
			secret_access_key=config.AWS_SECRET_ACCESS_KEY,
			region=config.S3_REGION,
		)
	return LocalPhotoStorage(config.PHOTOS_DIR, config.PUBLIC_BASE_URL)
