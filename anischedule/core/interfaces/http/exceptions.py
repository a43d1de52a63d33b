"""HTTP exception handlers.

提供统一的异常处理机制，将领域异常转换为标准 HTTP 响应。
各模块的异常类通过定义 http_status_code 和 error_code 类属性来自定义响应。

Response body shape is flat (``{"error": "...", "code": "..."}``) because the
schedule front-end reads ``error`` as a string.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from anischedule.core.config import settings
from anischedule.core.domain.exceptions import DomainException


def error_response(
    status_code: int,
    message: str,
    error_code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": error_code},
        headers=headers,
    )


def cors_error_headers(request: Request) -> dict[str, str]:
    """CORS headers for responses produced outside CORSMiddleware.

    Starlette 把 Exception 处理器挂在最外层的 ServerErrorMiddleware 上，
    CORSMiddleware 不会再处理这些响应。
    """
    origin = request.headers.get("origin")
    if not origin:
        return {}

    allowed = settings.all_cors_origins
    if "*" in allowed:
        return {"Access-Control-Allow-Origin": "*"}
    if origin.rstrip("/") in allowed:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}


async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle domain exceptions.

    通过读取异常类的 http_status_code 和 error_code 类属性来确定响应。
    内部错误信息只写日志，不返回给客户端。
    """
    status_code = getattr(exc, "http_status_code", 400)
    error_code = getattr(exc, "error_code", "DOMAIN_ERROR")

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return error_response(status_code, exc.client_message, error_code)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An internal error occurred",
        "INTERNAL_ERROR",
        headers=cors_error_headers(request),
    )
