from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
	# App
	APP_NAME: str = "Jobsite Field Report"
	APP_VERSION: str = "1.0.0"
	DEBUG: bool = False
	ENVIRONMENT: str = "development" # development, staging, production
	LOG_LEVEL: str = "INFO"
	TIMEZONE: str = "UTC"

	# Server
	HOST: str = "0.0.0.0"
	PORT: int = 8000

	# Workbook
	WORKBOOK_PATH: str = "data/jobsite_form.xlsx"

	# Photo storage
	STORAGE_BACKEND: Literal["local", "s3"] = "local"
	PHOTOS_DIR: str = "data/photos"
	PUBLIC_BASE_URL: str = "http://localhost:8000"
	S3_ENDPOINT_URL: Optional[str] = None
	AWS_ACCESS_KEY_ID: Optional[str] = None
	AWS_SECRET_ACCESS_KEY: Optional[str] = None
	S3_BUCKET_NAME: str = "jobsite-form-photos"
	S3_REGION: Optional[str] = None
	MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

	# HTTP
	CORS_ORIGINS: List[str] = ["*"]
	ALLOWED_HOSTS: List[str] = ["*"]
	REQUIRE_API_KEY: bool = False
	API_KEYS: List[str] = []

	# Monitoring
	EXPOSE_METRICS: bool = True

	# Client
	ENDPOINT_URL: str = "http://localhost:8000/"
	CLIENT_API_KEY: Optional[str] = None
	PHOTO_TRANSPORT: Literal["upload_then_reference", "embed_directly"] = "upload_then_reference"
	PHOTO_MAX_WIDTH: int = 800
	PHOTO_QUALITY: float = 0.6
	MAX_PHOTOS: int = 10
	REQUEST_TIMEOUT: float = 60.0

	model_config = SettingsConfigDict(
		env_file=".env",
		env_file_encoding="utf-8",
		case_sensitive=True,
		extra="ignore"
	)


@lru_cache()
def get_settings() -> Settings:
	return Settings()


settings = get_settings()
