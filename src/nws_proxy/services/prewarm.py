"""Background pre-warming of popular zone forecasts."""

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from prometheus_client import Counter, Histogram

from nws_proxy.services.forecast import ForecastService

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

# Metrics
prewarm_duration = Histogram(
    "nws_prewarm_duration_seconds",
    "Time taken by one pre-warm pass",
)
prewarm_zones = Counter(
    "nws_prewarm_zones_total",
    "Zones processed by pre-warm passes",
    ["status"],
)


class PrewarmState(StrEnum):
    """Lifecycle of the pre-warm loop."""

    IDLE = "idle"
    RUNNING = "running"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


@dataclass
class RefreshResult:
    """Outcome of one pre-warm pass."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ForecastPrewarmer:
    """Keeps forecasts for popular zones warm in the cache.

    A pass fetches every popular zone concurrently through the forecast
    service and waits for all of them. ``run`` repeats passes on a fixed
    interval until ``stop`` is called or the task is cancelled. The stop
    signal is checked while sleeping and again before each new pass; a pass
    already in flight is allowed to finish.
    """

    def __init__(
        self,
        service: ForecastService,
        zone_ids: list[str],
        interval_seconds: float = 900.0,
        max_concurrency: int = 3,
    ) -> None:
        self._service = service
        self._zone_ids = list(zone_ids)
        self._interval = interval_seconds
        self._max_concurrency = max_concurrency
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.state = PrewarmState.IDLE

    @property
    def zone_ids(self) -> list[str]:
        return list(self._zone_ids)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_now(self) -> RefreshResult:
        """Run one pre-warm pass and wait for it to complete."""
        result = RefreshResult()
        semaphore = asyncio.Semaphore(self._max_concurrency)

        with tracer.start_as_current_span("ForecastPrewarmer.refresh") as span:
            span.set_attribute("zone_count", len(self._zone_ids))
            logger.info(
                "Starting forecast cache update",
                zone_count=len(self._zone_ids),
            )

            with prewarm_duration.time():
                async with asyncio.TaskGroup() as group:
                    for zone_id in self._zone_ids:
                        group.create_task(self._refresh_zone(zone_id, semaphore, result))

            span.set_attribute("failed", len(result.failed))
            logger.info(
                "Completed forecast cache update",
                succeeded=len(result.succeeded),
                failed=len(result.failed),
            )
        return result

    async def _refresh_zone(
        self,
        zone_id: str,
        semaphore: asyncio.Semaphore,
        result: RefreshResult,
    ) -> None:
        async with semaphore:
            with tracer.start_as_current_span("ForecastPrewarmer.refresh_zone") as span:
                span.set_attribute("zone_id", zone_id)
                try:
                    forecasts = await self._service.get_forecast(zone_id)
                except Exception as e:
                    span.set_attribute("status", "error")
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    logger.warning(
                        "Failed to cache forecast for zone",
                        zone_id=zone_id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    prewarm_zones.labels(status="failed").inc()
                    result.failed.append(zone_id)
                    return

                span.set_attribute("status", "success")
                span.set_attribute("forecast_periods", len(forecasts))
                logger.debug(
                    "Cached forecast for zone",
                    zone_id=zone_id,
                    forecast_periods=len(forecasts),
                )
                prewarm_zones.labels(status="success").inc()
                result.succeeded.append(zone_id)

    async def run(self) -> None:
        """Refresh on a fixed interval until stopped."""
        logger.info(
            "Forecast prewarmer started",
            interval_seconds=self._interval,
            zones=self._zone_ids,
        )
        try:
            while not self._stop_event.is_set():
                self.state = PrewarmState.RUNNING
                await self.refresh_now()

                if self._stop_event.is_set():
                    break
                self.state = PrewarmState.SLEEPING
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                except TimeoutError:
                    pass
        finally:
            self.state = PrewarmState.STOPPED
            logger.info("Forecast prewarmer stopped")

    def start(self) -> asyncio.Task[None]:
        """Start the refresh loop as a background task."""
        if self.is_running:
            raise RuntimeError("Prewarmer is already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(), name="forecast-prewarmer")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it to finish."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        self.state = PrewarmState.STOPPED
