"""Remote file store reached over HTTP.

Uploads of large design files get a five minute timeout and three attempts
with exponential backoff capped at ten seconds. Reads use HTTP range
requests so video streaming never pulls the whole file.
"""

from datetime import datetime

import httpx
import structlog

from storefront import config
from storefront.storage.port import FileNotStored, FileStorage
from storefront.storage.signing import signed_query
from storefront.utils.retry import http_retry

logger = structlog.get_logger(__name__)

UPLOAD_TIMEOUT = httpx.Timeout(300.0, connect=10.0)

_upload_retry = http_retry(__name__, attempts=3, max_wait=10)


class HttpFileStorage(FileStorage):
    def __init__(self, base_url: str, signing_key: str, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.signing_key = signing_key
        self.client = client or httpx.Client(timeout=UPLOAD_TIMEOUT)

    @classmethod
    def from_config(cls) -> "HttpFileStorage":
        return cls(base_url=config.file_storage_url(), signing_key=config.file_url_signing_key())

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @_upload_retry
    def _put(self, path: str, data: bytes, content_type: str | None) -> httpx.Response:
        response = self.client.put(
            self._url(path),
            content=data,
            headers={"Content-Type": content_type or "application/octet-stream"},
        )
        response.raise_for_status()
        return response

    def save(self, path: str, data: bytes, content_type: str | None = None) -> str:
        self._put(path, data, content_type)
        logger.info("File uploaded", path=path, size=len(data))
        return self._url(path)

    @_upload_retry
    def open_range(self, path: str, start: int, end: int) -> bytes:
        response = self.client.get(self._url(path), headers={"Range": f"bytes={start}-{end}"})
        if response.status_code == 404:
            raise FileNotStored(path)
        response.raise_for_status()
        if response.status_code == 200:
            # Store ignored the range header
            return response.content[start : end + 1]
        return response.content

    @_upload_retry
    def size(self, path: str) -> int:
        response = self.client.head(self._url(path))
        if response.status_code == 404:
            raise FileNotStored(path)
        response.raise_for_status()
        return int(response.headers.get("Content-Length", "0"))

    def signed_url(self, path: str, expires_at: datetime) -> str:
        return f"{self._url(path)}?{signed_query(self.signing_key, path, expires_at)}"
