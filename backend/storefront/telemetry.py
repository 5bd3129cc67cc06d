"""
Observability: logging, OpenTelemetry tracing and Prometheus metrics.
"""

import logging
import time

from fastapi import Request
from opentelemetry import trace
from prometheus_client import Counter, Histogram

from storefront import config

tracer = trace.get_tracer("storefront")

# Prometheus metrics
http_requests_total = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
http_request_duration_seconds = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
orders_total = Counter('orders_total', 'Total orders', ['status'])
revenue_total = Counter('revenue_total', 'Total revenue of placed orders')
logins_total = Counter('logins_total', 'Login attempts', ['outcome'])


def configure_logging(level: str = None) -> None:
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


async def record_request_metrics(request: Request, call_next):
    """
    HTTP middleware: request count and latency per route template.

    The route template ("/api/products/{product_id}") is used rather than the
    raw path so label cardinality stays bounded.
    """
    start_time = time.time()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        http_requests_total.labels(method=request.method, endpoint=endpoint, status=str(status)).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(time.time() - start_time)
