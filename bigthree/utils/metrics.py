from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram

# Metric names are part of the dashboards contract; keep them stable.
MET_REQUESTS: Final = Counter("bigthree_api_requests_total", "API requests", ["route"])
MET_CHARTS: Final = Counter("bigthree_charts_total", "Chart computations by outcome", ["outcome"])
REQ_LATENCY: Final = Histogram("bigthree_request_seconds", "API request latency", ["route"])
GAUGE_APP_UP: Final = Gauge("bigthree_app_up", "1 if app is running")

CHART_OUTCOMES = ("ok", "time_unknown", "validation_error", "invalid_datetime",
                  "location_error", "geocoding_error", "domain_error", "internal_error")
