"""Test fixtures."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from nws_proxy.api.dependencies import reset_singletons
from nws_proxy.api.schemas import Forecast, Zone
from nws_proxy.config import Settings, get_settings
from nws_proxy.main import create_app
from nws_proxy.services.cache import MemoryCacheStore
from nws_proxy.services.errors import UpstreamUnavailable
from nws_proxy.services.faults import FaultInjector, NoFaultInjector, PeriodicFaultInjector
from nws_proxy.services.forecast import ForecastService
from nws_proxy.services.metrics import MetricsRecorder
from nws_proxy.services.nws import NwsClient

POPULAR_ZONES = ["DCZ001", "NYZ072", "PAZ071"]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubUpstream:
    """In-memory upstream that counts calls and yields to the event loop."""

    def __init__(self, fault_injector: FaultInjector | None = None, delay: float = 0.01) -> None:
        self.faults = fault_injector or NoFaultInjector()
        self.delay = delay
        self.zone_calls = 0
        self.forecast_calls: list[str] = []
        self.failing_zones: set[str] = set()

    async def fetch_zones(self) -> list[Zone]:
        self.zone_calls += 1
        await asyncio.sleep(self.delay)
        return [Zone(key="DCZ001", name="District of Columbia", state="DC")]

    async def fetch_forecast(self, zone_id: str) -> list[Forecast]:
        self.faults.before_attempt(zone_id)
        self.forecast_calls.append(zone_id)
        await asyncio.sleep(self.delay)
        if zone_id in self.failing_zones:
            raise UpstreamUnavailable(f"NWS API returned 500 for {zone_id}", 500)
        return [Forecast(number=1, name="Tonight", detailedForecast=f"Clear over {zone_id}.")]


@pytest.fixture
def zones_payload() -> dict[str, Any]:
    """NWS zone catalog with a station-less zone and a duplicate."""

    def feature(zone_id: str, name: str, state: str, stations: list[str]) -> dict[str, Any]:
        return {
            "id": f"https://api.weather.gov/zones/forecast/{zone_id}",
            "type": "Feature",
            "properties": {
                "id": zone_id,
                "type": "public",
                "name": name,
                "state": state,
                "observationStations": stations,
            },
        }

    return {
        "type": "FeatureCollection",
        "features": [
            feature("DCZ001", "District of Columbia", "DC", ["https://api.weather.gov/stations/KDCA"]),
            feature("NYZ072", "New York (Manhattan)", "NY", ["https://api.weather.gov/stations/KNYC"]),
            feature("AKZ999", "Remote Alaska", "AK", []),
            feature("DCZ001", "District of Columbia", "DC", ["https://api.weather.gov/stations/KDCA"]),
        ],
    }


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    """NWS zone forecast with two periods."""
    zone_id = "DCZ001"
    return {
        "type": "Feature",
        "properties": {
            "zone": f"https://api.weather.gov/zones/forecast/{zone_id}",
            "periods": [
                {"number": 1, "name": "Tonight", "detailedForecast": "Mostly clear, with a low around 45."},
                {"number": 2, "name": "Sunday", "detailedForecast": "Sunny, with a high near 68."},
            ],
        },
    }


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        upstream_url="https://nws.test",
        upstream_timeout_seconds=1.0,
        cache_max_size=1000,
        popular_zones=list(POPULAR_ZONES),
        prewarm_enabled=False,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def clock() -> FakeClock:
    """Create a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def cache_store(clock: FakeClock) -> MemoryCacheStore:
    """Create test cache store driven by the fake clock."""
    return MemoryCacheStore(max_size=1000, timer=clock)


@pytest.fixture
def fault_injector() -> PeriodicFaultInjector:
    """Create a fault injector failing every 5th attempt."""
    return PeriodicFaultInjector(every=5)


@pytest.fixture
def nws_client(settings: Settings, fault_injector: PeriodicFaultInjector) -> NwsClient:
    """Create test NWS client."""
    return NwsClient(settings, fault_injector)


@pytest.fixture
def stub_upstream(fault_injector: PeriodicFaultInjector) -> StubUpstream:
    """Create an in-memory upstream sharing the fault injector."""
    return StubUpstream(fault_injector)


@pytest.fixture
def forecast_service(
    settings: Settings, cache_store: MemoryCacheStore, stub_upstream: StubUpstream
) -> ForecastService:
    """Create forecast service backed by the stub upstream."""
    return ForecastService(cache_store, stub_upstream, MetricsRecorder(), settings)


@pytest.fixture
def forecast_requests() -> Callable[[str, str], float]:
    """Read the forecast request counter for a zone and cache-hit label."""

    def sample(zone_id: str, cache_hit: str) -> float:
        value = REGISTRY.get_sample_value(
            "nws_forecast_requests_total",
            {"zone_id": zone_id, "cache_hit": cache_hit},
        )
        return value or 0.0

    return sample


@pytest.fixture
def app():
    """Create test application."""
    # Reset singletons before each test
    reset_singletons()
    # Clear settings cache
    get_settings.cache_clear()
    return create_app()


@pytest.fixture
def client(app) -> TestClient:
    """Create test client."""
    return TestClient(app)
