import logging
import sys

from jobsite.config import settings
from jobsite.middleware.request_id import RequestIDFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


def setup_logging(level: str = None) -> None:
	"""Configure the root logger once for the server and the CLI"""
	level = (level or settings.LOG_LEVEL).upper()
	if settings.DEBUG:
		level = "DEBUG"

	root = logging.getLogger()
	if any(getattr(h, "_jobsite", False) for h in root.handlers):
		root.setLevel(level)
		return

	handler = logging.StreamHandler(sys.stdout)
	handler.setFormatter(logging.Formatter(LOG_FORMAT))
	handler.addFilter(RequestIDFilter())
	handler._jobsite = True
	root.addHandler(handler)
	root.setLevel(level)

	# httpx logs every request at INFO
	logging.getLogger("httpx").setLevel(logging.WARNING)
	logging.getLogger("botocore").setLevel(logging.WARNING)
