# src/flockrewards/api/structured_logging.py
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

Json = Dict[str, Any]

# Keys the request logger owns; annotations cannot overwrite them.
_REQUEST_KEYS = ("request_id", "method", "path", "status", "duration_ms", "error")


def _falsy(v: str | None) -> bool:
    return (v or "").strip().lower() in {"0", "false", "no", "n", "off"}


def configure_structured_logging(level_name: Optional[str] = None) -> None:
    """Route stdlib logging to stderr as one JSON object per line.

    The level comes from the argument, else FLOCK_LOG_LEVEL, else INFO.
    Repeated calls only adjust the level.
    """
    name = (level_name or os.environ.get("FLOCK_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, name, logging.INFO)

    root = logging.getLogger()
    if getattr(root, "_flock_configured", False):  # type: ignore[attr-defined]
        root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.handlers = [handler]
    root.setLevel(level)
    setattr(root, "_flock_configured", True)  # type: ignore[attr-defined]


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    payload: Json = {"ts_ms": int(time.time() * 1000), "event": event}
    payload.update(fields)
    try:
        logger.info(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        logger.info(" ".join(parts))


def annotate_request(request: Request, **fields: Any) -> None:
    """Attach fields to the http_request line logged for this request.

    Reward routes record tier sizes and score-sum outcome; error handlers
    record the error code.
    """
    current = getattr(request.state, "log_fields", None) or {}
    request.state.log_fields = {**current, **fields}


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One http_request event per request, tagged with an x-request-id.

    Controls:
      - FLOCK_LOG_REQUESTS=0 to disable (default on)
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        self._enabled = not _falsy(os.environ.get("FLOCK_LOG_REQUESTS"))
        self._logger = logging.getLogger("flockrewards.http")

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None

        try:
            response = await call_next(request)
            status = int(getattr(response, "status_code", 200) or 200)
            response.headers.setdefault("x-request-id", request_id)
            return response
        except Exception as e:
            err = str(e)
            raise
        finally:
            fields: Json = {
                k: v for k, v in (getattr(request.state, "log_fields", None) or {}).items() if k not in _REQUEST_KEYS
            }
            fields.update(
                request_id=request_id,
                method=request.method,
                path=str(request.url.path or ""),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=err,
            )
            log_event(self._logger, "http_request", **fields)
