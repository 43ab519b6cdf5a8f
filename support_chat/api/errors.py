"""
Exception handlers mapping errors to the JSON error contract

Every error body has the shape {"error": str, "errorCode": str, ...}.
"""

from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from support_chat.config.constants import RATE_LIMIT_REMAINING_HEADER
from support_chat.utils.errors import ChatServiceError, UnknownError, UpstreamServiceError, ValidationError


def _rate_limit_headers(request: Request) -> Dict[str, str]:
    """Budget left in the caller's window, for requests that passed the rate-limit gate"""
    remaining = getattr(request.state, "rate_limit_remaining", None)
    if remaining is None:
        return {}
    return {RATE_LIMIT_REMAINING_HEADER: str(remaining)}


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


async def chat_service_error_handler(request: Request, exc: ChatServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        detail = exc.upstream_message if isinstance(exc, UpstreamServiceError) else None
        logger.error(f"{request.method} {request.url.path} failed [{exc.error_code}]: {exc.message}"
                     + (f" (upstream: {detail})" if detail else ""))
    else:
        logger.warning(f"{request.method} {request.url.path} rejected [{exc.error_code}]: {exc.message}")
    headers = {**_rate_limit_headers(request), **exc.to_headers()}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    error = ValidationError(details=details)
    logger.warning(f"{request.method} {request.url.path} validation failed: {details}")
    return JSONResponse(status_code=error.status_code, content=error.to_body(), headers=_rate_limit_headers(request))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    error = UnknownError()
    return JSONResponse(status_code=error.status_code, content=error.to_body(), headers=_rate_limit_headers(request))


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ChatServiceError, chat_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
