from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
import logging
import json
import time
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
	"""One structured JSON log line per request"""

	async def dispatch(self, request: Request, call_next):
		start_time = time.time()

		response = await call_next(request)

		duration = time.time() - start_time

		log_dict = {
			"timestamp": datetime.now(timezone.utc).isoformat(),
			"level": "INFO",
			"request_id": getattr(request.state, "request_id", None),
			"method": request.method,
			"path": request.url.path,
			"content_length": request.headers.get("content-length"),
			"client_host": request.client.host if request.client else None,
			"user_agent": request.headers.get("user-agent"),
			"status_code": response.status_code,
			"duration_seconds": round(duration, 3),
		}

		if response.status_code >= 400:
			log_dict["level"] = "WARNING" if response.status_code < 500 else "ERROR"

		logger.info(json.dumps(log_dict))

		# Photo uploads are slow on mobile links, only flag the outliers
		if duration > 5.0:
			logger.warning(f"Slow request detected: {request.method} {request.url.path} took {duration:.2f}s")

		return response
