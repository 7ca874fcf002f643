import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger.json import JsonFormatter

from messages_api.errors import internal_error_response
from messages_api.metrics import record_http_request


# Context variable to store request_id for the current request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

request_logger = logging.getLogger("messages_api.requests")


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter adding an ISO-8601 UTC timestamp, the level and the request_id."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("ts"):
            now = datetime.fromtimestamp(record.created, tz=timezone.utc)
            log_record["ts"] = now.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        log_record["level"] = record.levelname

        if "request_id" not in log_record:
            req_id = request_id_ctx.get()
            if req_id:
                log_record["request_id"] = req_id


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Send all application and Uvicorn logs to stdout as JSON lines.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger = logging.getLogger()
    logger.setLevel(log_level.upper())
    logger.handlers = []

    json_handler = logging.StreamHandler(sys.stdout)
    json_handler.setFormatter(CustomJsonFormatter("%(ts)s %(level)s %(name)s %(message)s"))
    logger.addHandler(json_handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = []
        uvicorn_logger.addHandler(json_handler)
        uvicorn_logger.propagate = False

    # RequestLoggingMiddleware writes the access log
    logging.getLogger("uvicorn.access").disabled = True

    return logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every HTTP request as one structured line and record HTTP metrics.

    Log keys: ts, level, request_id, method, path, status, latency_ms, plus
    anything a route attached with log_request_data(). The request id is also
    returned in the X-Request-ID header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        start_time = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                # Rendered here so the 500 carries the request id and is not re-raised
                response = internal_error_response(request, exc)

            response.headers["X-Request-ID"] = request_id
            self._log(request, response.status_code, time.perf_counter() - start_time)
            return response
        finally:
            request_id_ctx.reset(token)

    @staticmethod
    def _log(request: Request, status: int, latency_seconds: float) -> None:
        # Skip /metrics to avoid self-instrumentation noise
        if request.url.path != "/metrics":
            record_http_request(
                method=request.method,
                path=request.url.path,
                status=status,
                latency_seconds=latency_seconds
            )

        log_data = {
            "request_id": request.state.request_id,
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "latency_ms": round(latency_seconds * 1000, 2),
        }
        log_data.update(getattr(request.state, "log_data", {}))

        if status >= 500:
            request_logger.error("Request completed", extra=log_data)
        elif status >= 400:
            request_logger.warning("Request completed", extra=log_data)
        else:
            request_logger.info("Request completed", extra=log_data)


def log_request_data(request: Request, **fields: Any) -> None:
    """
    Attach route-specific fields to the request log line written by the middleware.
    None values are dropped.

    Example:
        log_request_data(request, message_id=3, result="created")
    """
    data = getattr(request.state, "log_data", {})
    data.update({key: value for key, value in fields.items() if value is not None})
    request.state.log_data = data
