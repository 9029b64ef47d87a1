"""FastAPI routes for design file downloads, video streaming and signed file links."""

import mimetypes

from fastapi import APIRouter, Depends, Header, Query, Response

from storefront import config
from storefront.access.download import Requester, authorize_download, authorize_stream
from storefront.access.errors import AccessDenied
from storefront.api.dependencies import current_requester
from storefront.api.schemas import DownloadResponse
from storefront.storage import get_storage
from storefront.storage.port import FileNotStored
from storefront.storage.signing import verify_signed_path

design_file_router = APIRouter(prefix="/design-files", tags=["design-files"])
signed_file_router = APIRouter(prefix="/files", tags=["design-files"])


@design_file_router.get("/{design_file_id}/download", response_model=DownloadResponse)
def download_design_file(
    design_file_id: str,
    requester: Requester = Depends(current_requester),
) -> DownloadResponse:
    ticket = authorize_download(design_file_id, requester)
    return DownloadResponse(
        download_url=ticket.url,
        file_name=ticket.file_name,
        expires_at=ticket.expires_at,
        downloads_remaining=ticket.downloads_remaining,
    )


@design_file_router.get("/{design_file_id}/stream")
def stream_design_file(
    design_file_id: str,
    requester: Requester = Depends(current_requester),
    range_header: str | None = Header(default=None, alias="Range"),
) -> Response:
    """Serve a video file whole, or the requested byte range with 206."""
    piece = authorize_stream(design_file_id, requester, range_header)
    headers = {
        "Accept-Ranges": "bytes",
        "Content-Length": str(len(piece.content)),
    }
    if piece.partial:
        headers["Content-Range"] = piece.content_range
    return Response(
        content=piece.content,
        status_code=206 if piece.partial else 200,
        media_type=piece.content_type,
        headers=headers,
    )


@signed_file_router.get("/{path:path}")
def signed_file(
    path: str,
    expires: int = Query(...),
    signature: str = Query(...),
) -> Response:
    """Serve a locally stored file behind a time-boxed signed link."""
    if not verify_signed_path(config.file_url_signing_key(), path, expires, signature):
        raise AccessDenied(f"Invalid or expired file signature for {path}")

    storage = get_storage()
    try:
        size = storage.size(path)
        content = storage.open_range(path, 0, size - 1) if size else b""
    except FileNotStored as exc:
        raise AccessDenied(f"File {path} is not stored") from exc

    file_name = path.rsplit("/", 1)[-1]
    media_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
