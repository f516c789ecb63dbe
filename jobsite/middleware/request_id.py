import contextvars
import logging
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

request_id_context = contextvars.ContextVar("request_id", default=None)

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
	"""Tag each request with an id, reusing the caller's when it sends one"""

	async def dispatch(self, request: Request, call_next):
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
		request.state.request_id = request_id
		token = request_id_context.set(request_id)

		try:
			response = await call_next(request)
		finally:
			request_id_context.reset(token)

		response.headers[REQUEST_ID_HEADER] = request_id
		return response


def get_request_id() -> str:
	return request_id_context.get() or "-"


class RequestIDFilter(logging.Filter):
	"""Expose the current request id to log formats as ``%(request_id)s``"""

	def filter(self, record: logging.LogRecord) -> bool:
		record.request_id = get_request_id()
		return True
