"""
Problem-details error envelope.

Every error leaves the API as ``{type, title, status, detail, instance}``
plus ``code``, ``request_id`` and, where present, ``errors`` and
``overlapping_slots``.
"""

from http import HTTPStatus
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.exceptions import INVALID_DATA_MESSAGE, DomainException, RepositoryException
from .core.request_context import get_request_id_value

logger = logging.getLogger(__name__)

VALIDATION_PROBLEM_TYPE = "https://garage-booking.dev/problems/validation"

# Detail keys lifted to the top level of the problem document
_EXTRA_DETAIL_KEYS = ("overlapping_slots",)


def _title_from_status(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _media_type() -> str:
    return "application/problem+json" if settings.strict_schemas else "application/json"


def _problem_response(
    request: Request,
    status_code: int,
    *,
    detail: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Any] = None,
    type_: str = "about:blank",
    extras: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    problem: Dict[str, Any] = {
        "type": type_,
        "title": _title_from_status(status_code),
        "status": status_code,
        "detail": detail or "",
        "instance": request.url.path,
    }
    if code:
        problem["code"] = code
    request_id = get_request_id_value(default="")
    if request_id:
        problem["request_id"] = request_id
    if errors is not None:
        problem["errors"] = jsonable_encoder(errors)
    if extras:
        problem.update(jsonable_encoder(extras))
    return JSONResponse(problem, status_code=status_code, media_type=_media_type(), headers=headers)


def _parse_detail(
    detail: Any,
) -> Tuple[Optional[str], Optional[str], Optional[Any], Dict[str, Any]]:
    """Split an HTTPException detail into (message, code, errors, extras)."""
    if detail is None:
        return None, None, None, {}
    if not isinstance(detail, dict):
        return str(detail), None, None, {}

    code = detail.get("code") if isinstance(detail.get("code"), str) else None
    message = detail.get("message") or detail.get("detail")
    message = message if isinstance(message, str) else None
    details = detail.get("details")
    if not isinstance(details, dict):
        return message, code, details or None, {}

    extras = {key: details[key] for key in _EXTRA_DETAIL_KEYS if key in details}
    errors = details.get("errors")
    if errors is None:
        errors = {k: v for k, v in details.items() if k not in _EXTRA_DETAIL_KEYS} or None
    return message, code, errors, extras


def register_error_handlers(app: FastAPI) -> None:
    def _from_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message, code, errors, extras = _parse_detail(exc.detail)
        return _problem_response(
            request,
            exc.status_code,
            detail=message,
            code=code,
            errors=errors,
            extras=extras,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _from_http_exception(request, exc)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        # Reached only when a route lets a domain error escape unconverted
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}", extra={"details": exc.details})
        return _from_http_exception(request, exc.to_http_exception())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _problem_response(
            request,
            422,
            detail=INVALID_DATA_MESSAGE,
            code="validation_error",
            errors=exc.errors(),
            type_=VALIDATION_PROBLEM_TYPE if settings.strict_schemas else "about:blank",
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _problem_response(
            request,
            422,
            detail=INVALID_DATA_MESSAGE,
            code="validation_error",
            errors=exc.errors(),
        )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error(f"Repository failure on {request.url.path}: {exc}")
        return _problem_response(
            request, 500, detail="Internal Server Error", code="repository_error"
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _problem_response(
            request, 500, detail="Internal Server Error", code="internal_server_error"
        )
