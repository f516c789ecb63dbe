from typing import Optional


class JobsiteClientError(Exception):
	"""Base class for every failure surfaced to the person filling the form"""


class ReadError(JobsiteClientError):
	"""The selected file could not be read"""


class DecodeError(JobsiteClientError):
	"""The selected file is not a decodable image"""


class NetworkError(JobsiteClientError):
	"""Transport failure, non-2xx status or unreadable response body"""

	def __init__(self, message: str, status_code: Optional[int] = None):
		super().__init__(message)
		self.status_code = status_code


class RemoteFailure(JobsiteClientError):
	"""The endpoint answered with ``success: false``"""


class ValidationError(JobsiteClientError):
	"""Form input rejected before any network call"""


class IndexOutOfRange(JobsiteClientError, IndexError):
	"""No staged photo at the requested position"""
