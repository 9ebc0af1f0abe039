"""Prometheus metrics shared by middleware and the request gate"""

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "dashboard_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "dashboard_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
)
AUTH_REJECTIONS = Counter(
    "dashboard_auth_rejections_total",
    "Rejected authentication attempts",
    ["reason"],
)
RATE_LIMITED = Counter(
    "dashboard_rate_limited_total",
    "Requests rejected by the IP rate limiter",
)
RATE_LIMITER_ENTRIES = Gauge(
    "dashboard_rate_limiter_entries",
    "Client IPs currently tracked by the rate limiter",
)
