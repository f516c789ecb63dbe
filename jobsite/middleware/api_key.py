import hmac
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Iterable, List
import logging

logger = logging.getLogger(__name__)


class APIKeyMiddleware(BaseHTTPMiddleware):
	"""Shared-secret gate for deployments reachable from the internet"""

	def __init__(self, app, api_keys: Iterable[str], exclude_paths: List[str] = None):
		super().__init__(app)
		self.api_keys = [key for key in api_keys if key]
		self.exclude_paths = exclude_paths or []

	async def dispatch(self, request: Request, call_next):
		path = request.url.path
		if any(path.startswith(excluded) for excluded in self.exclude_paths):
			return await call_next(request)

		# CORS preflight carries no custom headers
		if request.method == "OPTIONS":
			return await call_next(request)

		api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")

		if not api_key or not self.validate_api_key(api_key):
			logger.warning(f"Invalid API key attempt from {request.client.host if request.client else 'unknown'}")
			return JSONResponse(
				status_code=status.HTTP_401_UNAUTHORIZED,
				content={
					"success": False,
					"error": "Invalid or missing API key",
					"timestamp": datetime.now(timezone.utc).isoformat()
				},
				headers={"WWW-Authenticate": 'ApiKey realm="API"'}
			)

		return await call_next(request)

	def validate_api_key(self, api_key: str) -> bool:
		return any(hmac.compare_digest(api_key, key) for key in self.api_keys)
