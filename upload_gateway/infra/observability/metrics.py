from prometheus_client import Counter, Histogram, make_asgi_app

# Low-cardinality labels: route templates, never raw keys or upload ids
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

STORAGE_OPERATIONS = Counter(
    "storage_operations_total",
    "Delegated-write calls against the storage backend",
    ["operation", "outcome"],
)

STORAGE_LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage backend call latency in seconds",
    ["operation"],
)

# ASGI app served at /metrics
metrics_app = make_asgi_app()
