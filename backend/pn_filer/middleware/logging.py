"""Access log for the filing API: one JSON line per request.

Each line carries the request id (reused from the caller when present),
the filing format version the service runs with, and any counts a route
left in ``request.state.log_context`` (filed, failed, duplicates, PNCs
received), so a batch can be followed from the access log alone.
"""

import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger("pnfiler.access")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, format_version: str, environment: str = "development"):
        super().__init__(app)
        self.format_version = format_version
        self.environment = environment

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        entry = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            "request_id": request_id,
            "env": self.environment,
            "format_version": self.format_version,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 1),
        }
        entry.update(getattr(request.state, "log_context", None) or {})

        logger.info(json.dumps(entry))
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
