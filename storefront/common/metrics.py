from prometheus_client import Counter, Histogram

# HTTP
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"])
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0, float("inf"))
)

# Orders
ORDERS_PLACED = Counter("orders_placed_total", "Orders committed by checkout")
CHECKOUT_FAILURES = Counter("checkout_failures_total", "Checkout attempts rolled back", ["reason"])
ORDERS_CANCELLED = Counter("orders_cancelled_total", "Orders cancelled with stock restored")
