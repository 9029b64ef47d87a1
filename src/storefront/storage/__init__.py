"""File storage factory.

Provides get_storage() / set_storage() to swap implementations:
- LocalFileStorage under FILE_STORAGE_ROOT (default)
- HttpFileStorage when FILE_STORAGE=http
"""

from storefront import config
from storefront.storage.port import FileStorage

_current_storage: FileStorage | None = None


def get_storage() -> FileStorage:
    global _current_storage
    if _current_storage is None:
        backend = config.file_storage_backend()
        if backend == "http":
            from storefront.storage.http_adapter import HttpFileStorage

            _current_storage = HttpFileStorage.from_config()
        elif backend == "local":
            from storefront.storage.local_adapter import LocalFileStorage

            _current_storage = LocalFileStorage.from_config()
        else:
            raise ValueError(f"Unknown file storage backend: {backend}")
    return _current_storage


def set_storage(storage: FileStorage) -> None:
    """Override the active storage (useful for tests)."""
    global _current_storage
    _current_storage = storage


def reset_storage() -> None:
    global _current_storage
    _current_storage = None
