"""Forecast service orchestrating cache, upstream client and metrics."""

import time

import structlog
from opentelemetry import trace

from nws_proxy.api.schemas import Forecast, Zone, ZoneCacheStatus
from nws_proxy.config import Settings
from nws_proxy.services.cache import CacheStore
from nws_proxy.services.metrics import MetricsRecorder
from nws_proxy.services.nws import UpstreamClient

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

ZONES_CACHE_KEY = "zones"


def forecast_cache_key(zone_id: str) -> str:
    """Cache key holding the forecast list for a zone."""
    return f"forecast_{zone_id}"


class ForecastService:
    """Service for fetching zones and zone forecasts with caching.

    The zone list is populated through the cache's atomic get-or-populate,
    so concurrent callers on a cold cache share one upstream call. Forecasts
    use a plain check, fetch, then set: concurrent callers on a cold key each
    fetch from upstream.
    """

    def __init__(
        self,
        cache: CacheStore,
        client: UpstreamClient,
        metrics: MetricsRecorder,
        settings: Settings,
    ) -> None:
        """Initialize service with cache, client and metrics recorder."""
        self._cache = cache
        self._client = client
        self._metrics = metrics
        self._zones_ttl = settings.zones_cache_ttl_seconds
        self._forecast_ttl = settings.forecast_cache_ttl_seconds

    async def get_zones(self) -> list[Zone]:
        """Get forecast zones, fetching the catalog from upstream at most once per TTL.

        Upstream failures propagate to the caller.
        """
        return await self._cache.get_or_populate(
            ZONES_CACHE_KEY, self._zones_ttl, self._client.fetch_zones
        )

    async def get_forecast(self, zone_id: str) -> list[Forecast]:
        """Get forecast periods for a zone.

        Checks cache first, fetches from upstream on cache miss and stores the
        result. One metrics sample is recorded on every exit path.

        Args:
            zone_id: NWS forecast zone identifier

        Returns:
            Forecast periods, possibly empty
        """
        start_time = time.perf_counter()
        cache_hit = False

        with tracer.start_as_current_span("ForecastService.get_forecast") as span:
            span.set_attribute("zone_id", zone_id)
            try:
                cached = self._cache.try_get(forecast_cache_key(zone_id))
                if cached is not None:
                    cache_hit = True
                    logger.info("Cache hit for forecast request", zone_id=zone_id, cache_hit=True)
                    return cached

                logger.info(
                    "Cache miss, fetching forecast from upstream",
                    zone_id=zone_id,
                    cache_hit=False,
                )
                forecasts = await self._client.fetch_forecast(zone_id)

                with tracer.start_as_current_span("cache update") as update_span:
                    update_span.set_attribute("zone_id", zone_id)
                    update_span.set_attribute("forecast_periods", len(forecasts))
                    self._cache.set(forecast_cache_key(zone_id), forecasts, self._forecast_ttl)

                return forecasts

            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                span.set_attribute("cache_hit", cache_hit)
                self._metrics.record_forecast_request(zone_id, cache_hit, duration_ms)

    def cache_status(self, zone_ids: list[str]) -> list[ZoneCacheStatus]:
        """Report whether each zone has a live cached forecast."""
        statuses = []
        for zone_id in zone_ids:
            key = forecast_cache_key(zone_id)
            is_cached = self._cache.contains(key)
            data = self._cache.peek(key) if is_cached else None
            statuses.append(
                ZoneCacheStatus(zoneId=zone_id, isCached=is_cached, hasData=data is not None)
            )
        return statuses
