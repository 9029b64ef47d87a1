"""Local filesystem storage.

Files live under ``root``. Signed URLs point at the storefront's own
``/files/{path}`` route, which checks the signature before serving.
"""

from datetime import datetime
from pathlib import Path
from urllib.parse import quote

import structlog

from storefront import config
from storefront.storage.port import FileNotStored, FileStorage
from storefront.storage.signing import signed_query

logger = structlog.get_logger(__name__)


class LocalFileStorage(FileStorage):
    def __init__(self, root: str, base_url: str, signing_key: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.signing_key = signing_key

    @classmethod
    def from_config(cls) -> "LocalFileStorage":
        return cls(
            root=config.file_storage_root(),
            base_url=config.public_base_url(),
            signing_key=config.file_url_signing_key(),
        )

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise FileNotStored(path)
        return target

    def save(self, path: str, data: bytes, content_type: str | None = None) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("File stored", path=path, size=len(data))
        return f"{self.base_url}/files/{quote(path)}"

    def open_range(self, path: str, start: int, end: int) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotStored(path)
        with target.open("rb") as fh:
            fh.seek(start)
            return fh.read(end - start + 1)

    def size(self, path: str) -> int:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotStored(path)
        return target.stat().st_size

    def signed_url(self, path: str, expires_at: datetime) -> str:
        return f"{self.base_url}/files/{quote(path)}?{signed_query(self.signing_key, path, expires_at)}"
