"""Exception handlers and security-header middleware for the FastAPI app."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import VALIDATION_ERROR, ApiError

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "img-src 'self' data:",
        "object-src 'none'",
        "base-uri 'self'",
        "form-action 'self'",
        "frame-ancestors 'none'",
    ]
)


def _is_secure(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    return request.headers.get("x-forwarded-proto", "").lower() == "https"


def register_security_headers(app: FastAPI) -> None:
    """Attach hardening headers to every response; HSTS only over HTTPS."""

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if _is_secure(request):
            response.headers["Content-Security-Policy"] = (
                CONTENT_SECURITY_POLICY + "; upgrade-insecure-requests"
            )
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"
        else:
            response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        return response


def register_exception_handlers(app: FastAPI) -> None:
    """Render errors as {"message": ..., "code": ...} without leaking internals."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed."
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Field locations only; pydantic error details echo the submitted input.
        fields = sorted(
            {
                ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body"
                for err in exc.errors()
            }
        )
        logger.info(
            "Request validation failed",
            extra={"path": request.url.path, "method": request.method, "fields": fields},
        )
        return JSONResponse(
            status_code=422,
            content={"message": "Invalid request.", "code": VALIDATION_ERROR, "fields": fields},
        )

    @app.exception_handler(RateLimitExceeded)
    async def handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning(
            "Rate limit exceeded",
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=429,
            content={"message": "Too many requests. Try again later."},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error",
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(status_code=500, content={"message": "Internal server error."})
