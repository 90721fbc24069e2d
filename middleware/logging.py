"""
Recipedium Logging Middleware
Per-request IDs, request/response logging and slow request detection
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from jose import jwt, JWTError
import logging
import structlog
import time
import uuid
from typing import Dict, Any, Optional
from contextvars import ContextVar

from core.config import settings
from utils.request_utils import get_client_ip

logger = structlog.get_logger()

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

QUIET_PATHS = ("/api/health", "/favicon.ico")
MASKED_HEADERS = {"authorization", "cookie", "x-auth-token"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Assigns every request an X-Request-ID and binds it into structlog's
    contextvars, so every log line emitted while handling the request carries
    it. Health probes only get the header, not the log lines.
    """

    def __init__(self, app, slow_request_threshold: Optional[float] = None):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold or settings.SLOW_REQUEST_THRESHOLD

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

        request_id_var.set(request_id)
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        if request.url.path.startswith(QUIET_PATHS):
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        request_info = self._request_info(request)
        logger.debug("Request started", **request_info)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                **request_info,
                elapsed=round(time.perf_counter() - started, 4),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        elapsed = time.perf_counter() - started
        logger.log(
            _level_for(response.status_code),
            "Request completed",
            **request_info,
            status_code=response.status_code,
            elapsed=round(elapsed, 4),
        )
        if elapsed > self.slow_request_threshold:
            logger.warning(
                "Slow request detected",
                endpoint=f"{request.method} {request.url.path}",
                elapsed=round(elapsed, 4),
            )

        response.headers["X-Request-ID"] = request_id
        return response

    def _request_info(self, request: Request) -> Dict[str, Any]:
        info = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.query_params),
            "client_ip": get_client_ip(request),
        }
        if settings.DEBUG:
            info["headers"] = {
                key: "***" if key.lower() in MASKED_HEADERS else value
                for key, value in request.headers.items()
            }

        token_subject = _unverified_subject(request)
        if token_subject:
            info["token_sub"] = token_subject
        return info


def _unverified_subject(request: Request) -> Optional[str]:
    """Subject claim for log correlation only; the auth gate verifies tokens"""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
    else:
        token = request.headers.get("x-auth-token")
    if not token:
        return None

    try:
        return jwt.get_unverified_claims(token).get("sub")
    except JWTError:
        return None


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def get_request_id() -> str:
    """Request ID of the request being handled, or an empty string"""
    return request_id_var.get()


def log_user_activity(activity: str, details: Dict[str, Any] = None):
    # request_id and user_id come from the bound contextvars
    logger.info("User activity", activity=activity, details=details or {})


def log_business_event(event: str, data: Dict[str, Any] = None):
    logger.info("Business event", business_event=event, data=data or {})
