"""Exceptions raised by download and stream authorization.

The HTTP layer maps each one to a status code and a generic message; the
detail passed here is for the logs only.
"""


class AccessError(Exception):
    status_code = 403


class AccessDenied(AccessError):
    """The requester holds no active grant for the file."""

    status_code = 403


class AccessExpired(AccessError):
    status_code = 410


class DownloadLimitReached(AccessError):
    status_code = 429


class UnsupportedMedia(AccessError):
    """Streaming was requested for a file that is not a video."""

    status_code = 400


class RangeNotSatisfiable(AccessError):
    status_code = 416

    def __init__(self, detail: str, file_size: int):
        super().__init__(detail)
        self.file_size = file_size
