from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import re
import time

# Metrics definitions
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

LINKS_CREATED_TOTAL = Counter("links_created_total", "Total links created")
MESSAGES_SENT_TOTAL = Counter("messages_sent_total", "Total messages sent")
MESSAGES_DELETED_TOTAL = Counter("messages_deleted_total", "Total messages deleted")
RATE_LIMITED_TOTAL = Counter("rate_limited_total", "Total rate limited requests", ["scope"])
INTERNAL_ERRORS_TOTAL = Counter("internal_errors_total", "Total unhandled server errors")

# Ordered: first match wins
_PATH_TEMPLATES = [
    (re.compile(r"^/api/links/create$"), "/api/links/create"),
    (re.compile(r"^/api/links/[^/]+/toggle-visibility$"), "/api/links/{linkId}/toggle-visibility"),
    (re.compile(r"^/api/links/[^/]+/info$"), "/api/links/{linkId}/info"),
    (re.compile(r"^/api/links$"), "/api/links"),
    (re.compile(r"^/api/messages/[^/]+/send$"), "/api/messages/{linkId}/send"),
    (re.compile(r"^/api/messages/[^/]+$"), "/api/messages/{id}"),
    (re.compile(r"^/(metrics|health)?$"), None),
]


def normalize_path(path: str) -> str:
    for pattern, template in _PATH_TEMPLATES:
        if pattern.match(path):
            return template or path
    # Unknown paths collapse to one label to bound cardinality
    return "other"


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        metric_path = normalize_path(request.url.path)

        HTTP_REQUESTS_TOTAL.labels(method=request.method, path=metric_path, status=str(response.status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=request.method, path=metric_path).observe(process_time)

        return response

def metrics_endpoint(request: Request):
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
