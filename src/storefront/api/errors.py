"""Exception handlers for the HTTP surface.

Customers see a generic Arabic message per status code; the underlying
detail is logged and never returned.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException

from storefront.access.errors import AccessError, RangeNotSatisfiable

logger = structlog.get_logger(__name__)

MESSAGES = {
    400: "البيانات المرسلة غير صحيحة",
    401: "يجب تسجيل الدخول أولاً",
    403: "ليس لديك صلاحية للوصول إلى هذا المورد",
    404: "العنصر المطلوب غير موجود",
    410: "انتهت صلاحية الوصول إلى هذا الملف",
    416: "نطاق البيانات المطلوب غير صالح",
    429: "تم تجاوز الحد الأقصى لعدد مرات التحميل",
    500: "حدث خطأ في الخادم، يرجى المحاولة لاحقاً",
}


def error_response(status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": MESSAGES.get(status_code, MESSAGES[500])},
        headers=headers,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Request rejected", path=request.url.path, errors=str(exc.errors()))
    return error_response(400)


async def handle_domain_validation(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Domain validation failed", path=request.url.path, errors=exc.messages)
    return error_response(400)


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    logger.info("Resource not found", path=request.url.path, detail=str(exc))
    return error_response(404)


async def handle_access_error(request: Request, exc: AccessError) -> JSONResponse:
    logger.warning(
        "Access refused",
        path=request.url.path,
        status_code=exc.status_code,
        detail=str(exc),
    )
    headers = None
    if isinstance(exc, RangeNotSatisfiable):
        headers = {"Content-Range": f"bytes */{exc.file_size}", "Accept-Ranges": "bytes"}
    return error_response(exc.status_code, headers)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("HTTP error", path=request.url.path, detail=exc.detail)
    return error_response(exc.status_code, getattr(exc, "headers", None))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error=str(exc))
    return error_response(500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(ValidationError, handle_domain_validation)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(AccessError, handle_access_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
