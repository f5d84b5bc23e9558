"""RFC 7807 Problem Details error handling."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ProblemDetailError(Exception):
    """Raise for RFC 7807 problem+json responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: str,
        error_type: str | None = None,
    ):
        self.status = status
        self.title = title
        self.detail = detail
        self.error_type = error_type or "about:blank"


class BackendError(Exception):
    """The Blood Bond backend answered with a non-2xx status."""

    def __init__(self, status: int, detail: str | dict | list | None = None):
        super().__init__(f"backend returned {status}")
        self.status = status
        self.detail = detail


class BackendUnavailable(Exception):
    """The Blood Bond backend could not be reached (transport error or timeout)."""


def _problem(request: Request, status: int, title: str, detail) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "type": "about:blank",
            "title": title,
            "status": status,
            "detail": detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status,
        content={
            "type": exc.error_type,
            "title": exc.title,
            "status": exc.status,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    title = exc.detail if isinstance(exc.detail, str) else "Error"
    return _problem(request, exc.status_code, title, exc.detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _problem(request, 422, "Validation Error", exc.errors())


async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    detail = exc.detail if exc.detail is not None else "Backend request failed"
    return _problem(request, exc.status, "Backend Error", detail)


async def backend_unavailable_handler(
    request: Request, exc: BackendUnavailable
) -> JSONResponse:
    logger.warning("Backend unavailable on %s: %s", request.url.path, exc)
    return _problem(request, 502, "Backend Unavailable", str(exc))
