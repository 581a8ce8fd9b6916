from prometheus_client import Counter, Histogram

APP_NAME = "kiosk"

REQS = Counter("http_requests_total", "Total HTTP requests", ["service", "path", "method", "status"])
LAT = Histogram("http_request_duration_seconds", "Request latency", ["service", "path", "method"])
ORDERS_CREATED = Counter("orders_created_total", "Orders created successfully", ["channel"])
ORDERS_FAILED = Counter("order_create_failures_total", "Order create failures", ["reason"])
