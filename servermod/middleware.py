import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response

from .logging_utils import log_api_request
from .metrics import record_http_request


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Time, log and measure every HTTP request.

    Service logs emitted while the request runs carry its method and path.
    """
    start_time = time.perf_counter()

    with structlog.contextvars.bound_contextvars(
        http_method=request.method, http_path=request.url.path
    ):
        response = await call_next(request)

    duration = time.perf_counter() - start_time

    # Labelled by route template, not raw path
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    record_http_request(request.method, endpoint, response.status_code, duration)
    log_api_request(request, response.status_code, process_time_ms=duration * 1000)

    return response
