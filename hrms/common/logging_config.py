"""Process-wide logging setup and the HTTP request-log middleware."""

from __future__ import annotations

import logging
import time

from fastapi import Request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

request_logger = logging.getLogger("hrms.requests")


def configure_logging(level: str = "info") -> None:
    """Configure the root logger once; safe to call repeatedly."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )


async def log_requests(request: Request, call_next):
    """Log method, path, status and latency for every request."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    request_logger.info(
        "%s %s %s %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response
