"""Forecast request metrics."""

from prometheus_client import Counter, Histogram

forecast_request_duration = Histogram(
    "nws_forecast_request_duration_milliseconds",
    "Duration of forecast requests in milliseconds",
    ["zone_id", "cache_hit"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000],
)
forecast_requests = Counter(
    "nws_forecast_requests_total",
    "Total number of forecast requests",
    ["zone_id", "cache_hit"],
)


class MetricsRecorder:
    """Records one duration sample and one count per forecast request."""

    def record_forecast_request(self, zone_id: str, cache_hit: bool, duration_ms: float) -> None:
        labels = {"zone_id": zone_id, "cache_hit": "true" if cache_hit else "false"}
        forecast_request_duration.labels(**labels).observe(duration_ms)
        forecast_requests.labels(**labels).inc()
