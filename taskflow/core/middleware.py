"""Request timing: logs every request and tags responses with an id and duration."""

import logging
import time
import uuid

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

SLOW_THRESHOLD_MS = 1000


def init_request_timing(app: FastAPI) -> None:
    @app.middleware("http")
    async def _time_request(request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex[:12])
        extra = {"method": request.method, "path": request.url.path, "request_id": request_id}
        try:
            response = await call_next(request)
        except Exception:
            extra.update(status=500, duration_ms=(time.perf_counter() - start) * 1000)
            logger.error("Server error: %s %s 500", request.method, request.url.path, extra=extra)
            raise
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        extra.update(status=response.status_code, duration_ms=duration_ms)
        if duration_ms > SLOW_THRESHOLD_MS:
            logger.warning("Slow request: %s %s %d", request.method, request.url.path, response.status_code, extra=extra)
        elif response.status_code >= 500:
            logger.error("Server error: %s %s %d", request.method, request.url.path, response.status_code, extra=extra)
        else:
            logger.debug("Request: %s %s %d", request.method, request.url.path, response.status_code, extra=extra)
        return response
