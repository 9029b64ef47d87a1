"""Download and stream authorization for design files.

Every request is checked against the requester's ``OrderDesignFile``
grants. Admins bypass the grant check. A successful download bumps both the
grant's and the file's counters and hands out a signed URL; streaming
reads byte ranges of video files and does not count as a download.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront import config
from storefront.access.errors import (
    AccessDenied,
    AccessExpired,
    DownloadLimitReached,
    RangeNotSatisfiable,
    UnsupportedMedia,
)
from storefront.access.order_design_file import OrderDesignFile
from storefront.catalogue.design_file import DesignFile
from storefront.storage import get_storage

logger = structlog.get_logger(__name__)

ADMIN_ROLE = "admin"
STREAM_CHUNK_SIZE = 1024 * 1024  # open-ended ranges are served in 1 MiB slices

_RANGE = re.compile(r"^bytes=(\d*)-(\d*)$")


@dataclass(frozen=True)
class Requester:
    user_id: str
    email: str | None = None
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


@dataclass(frozen=True)
class DownloadTicket:
    design_file_id: str
    file_name: str
    url: str
    expires_at: datetime
    downloads_remaining: int | None = None


@dataclass(frozen=True)
class StreamSlice:
    content: bytes
    start: int
    end: int
    total_size: int
    content_type: str
    partial: bool

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total_size}"


def _load_active_file(design_file_id: str) -> DesignFile:
    design_file = current_domain.repository_for(DesignFile).get(design_file_id)
    if not design_file.is_active:
        raise ObjectNotFoundError(f"DesignFile {design_file_id} is not active")
    return design_file


def _grants_for(design_file_id: str, user_id: str) -> list[OrderDesignFile]:
    repo = current_domain.repository_for(OrderDesignFile)
    return [
        g
        for g in repo._dao.query.filter(design_file_id=str(design_file_id), customer_id=str(user_id)).all().items
        if g.is_active
    ]


def _usable_grant(design_file: DesignFile, requester: Requester, now: datetime) -> OrderDesignFile | None:
    """The grant to charge for this request, or None for admins.

    Raises the matching access error when no grant can be used.
    """
    if requester.is_admin:
        return None

    grants = _grants_for(design_file.id, requester.user_id)
    if not grants:
        logger.warning("Download denied, no grant", design_file_id=design_file.id, user_id=requester.user_id)
        raise AccessDenied(f"No active grant for file {design_file.id}")

    if design_file.is_expired(now):
        raise AccessExpired(f"File {design_file.id} expired")
    current = [g for g in grants if not g.is_expired(now)]
    if not current:
        logger.info("Download refused, access expired", design_file_id=design_file.id, user_id=requester.user_id)
        raise AccessExpired(f"All grants for file {design_file.id} expired")

    if design_file.is_limit_reached():
        raise DownloadLimitReached(f"File {design_file.id} reached its download limit")
    open_grants = [g for g in current if not g.is_limit_reached()]
    if not open_grants:
        logger.info("Download refused, limit reached", design_file_id=design_file.id, user_id=requester.user_id)
        raise DownloadLimitReached(f"Grant limit reached for file {design_file.id}")
    return open_grants[0]


def generate_download_url(design_file: DesignFile, expires_at: datetime) -> str:
    """Signed link for stored files; externally hosted files keep their URL."""
    if design_file.storage_path:
        return get_storage().signed_url(design_file.storage_path, expires_at)
    return design_file.file_url


def authorize_download(design_file_id: str, requester: Requester, now: datetime | None = None) -> DownloadTicket:
    now = now or datetime.now(UTC)
    design_file = _load_active_file(design_file_id)
    grant = _usable_grant(design_file, requester, now)

    remaining = None
    if grant is not None:
        grant.record_download()
        design_file.record_download()
        current_domain.repository_for(OrderDesignFile).add(grant)
        current_domain.repository_for(DesignFile).add(design_file)
        if grant.max_downloads:
            remaining = grant.max_downloads - grant.download_count

    expires_at = now + timedelta(hours=config.download_link_ttl_hours())
    logger.info(
        "Download authorized",
        design_file_id=design_file.id,
        user_id=requester.user_id,
        order_number=grant.order_number if grant else None,
    )
    return DownloadTicket(
        design_file_id=str(design_file.id),
        file_name=design_file.file_name,
        url=generate_download_url(design_file, expires_at),
        expires_at=expires_at,
        downloads_remaining=remaining,
    )


def parse_range(header: str | None, total_size: int) -> tuple[int, int] | None:
    """Parse a single ``bytes=`` range into inclusive offsets.

    Returns None when no range was requested. Only the first range of a
    multi-range header is honoured.
    """
    if not header:
        return None
    spec = header.split(",")[0].strip()
    match = _RANGE.match(spec)
    if not match or (not match.group(1) and not match.group(2)):
        raise RangeNotSatisfiable(f"Malformed range {header!r}", total_size)

    first, last = match.group(1), match.group(2)
    if not first:
        # Suffix range: the last N bytes
        length = int(last)
        if length == 0 or total_size == 0:
            raise RangeNotSatisfiable(f"Empty suffix range {header!r}", total_size)
        return max(total_size - length, 0), total_size - 1

    start = int(first)
    end = int(last) if last else min(start + STREAM_CHUNK_SIZE, total_size) - 1
    if start >= total_size or start > end:
        raise RangeNotSatisfiable(f"Range {header!r} outside 0-{total_size - 1}", total_size)
    return start, min(end, total_size - 1)


def authorize_stream(
    design_file_id: str,
    requester: Requester,
    range_header: str | None = None,
    now: datetime | None = None,
) -> StreamSlice:
    now = now or datetime.now(UTC)
    design_file = _load_active_file(design_file_id)
    _usable_grant(design_file, requester, now)
    if not design_file.is_video():
        raise UnsupportedMedia(f"File {design_file.id} is {design_file.mime_type}, not a video")
    if not design_file.storage_path:
        raise ObjectNotFoundError(f"File {design_file.id} has no stored content")

    storage = get_storage()
    total_size = storage.size(design_file.storage_path)
    requested = parse_range(range_header, total_size)
    if requested:
        start, end = requested
    elif total_size > STREAM_CHUNK_SIZE:
        # Players that send no Range get the first slice and ask for the rest
        start, end = 0, STREAM_CHUNK_SIZE - 1
    else:
        start, end = 0, max(total_size - 1, 0)
    partial = requested is not None or total_size > STREAM_CHUNK_SIZE
    content = storage.open_range(design_file.storage_path, start, end) if total_size else b""
    return StreamSlice(
        content=content,
        start=start,
        end=end,
        total_size=total_size,
        content_type=design_file.mime_type,
        partial=partial,
    )
