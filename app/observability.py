import logging
import time
import uuid

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter(
    "credentialing_http_requests_total",
    "HTTP requests processed",
    ["method", "route", "status"],
)
REQUEST_LATENCY = Histogram(
    "credentialing_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
)

REQUEST_ID_HEADER = "x-request-id"


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed = time.perf_counter() - start
            route = _route_template(request)
            REQUEST_COUNT.labels(request.method, route, str(status_code)).inc()
            REQUEST_LATENCY.labels(request.method, route).observe(elapsed)
            if status_code >= 500:
                logger.warning(
                    "request_id=%s %s %s -> %s in %.3fs",
                    request_id,
                    request.method,
                    request.url.path,
                    status_code,
                    elapsed,
                )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
