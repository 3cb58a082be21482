from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

# Structured keys callers may pass through `extra=`; copied verbatim into the record
CONTEXT_FIELDS = (
    "conversation_id",
    "source",
    "reason",
    "changes",
    "method",
    "path",
    "status",
    "duration_ms",
)

# Set per request by the middleware; FastAPI copies it into the threadpool
request_id_var: ContextVar[Optional[str]] = ContextVar("iris_request_id", default=None)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, ts, logger, message, request_id and context fields."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data: Dict[str, Any] = {
            "level": record.levelname,
            "ts": int(record.created * 1000),
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None) or request_id_var.get()
        if request_id:
            data["request_id"] = request_id
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                data[key] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def resolve_level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    name = name.strip()
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logging(level: Optional[str] = None) -> None:
    resolved = resolve_level(level)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(resolved)
    for name in ("app", "app.access", "app.extraction", "app.store"):
        logging.getLogger(name).setLevel(resolved)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request with its id and writes one access record."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            dur_ms = int((time.perf_counter() - start) * 1000)
            logging.getLogger("app.access").info(
                f"{request.method} {request.url.path} {response.status_code}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": dur_ms,
                },
            )
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response


def install_app_logging(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)
