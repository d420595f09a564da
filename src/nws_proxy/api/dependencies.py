"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from nws_proxy.config import Settings, get_settings
from nws_proxy.services.cache import MemoryCacheStore
from nws_proxy.services.faults import FaultInjector, create_fault_injector
from nws_proxy.services.forecast import ForecastService
from nws_proxy.services.metrics import MetricsRecorder
from nws_proxy.services.nws import NwsClient
from nws_proxy.services.prewarm import ForecastPrewarmer

# Singleton instances for services
_cache_store: MemoryCacheStore | None = None
_fault_injector: FaultInjector | None = None
_nws_client: NwsClient | None = None
_metrics_recorder: MetricsRecorder | None = None
_prewarmer: ForecastPrewarmer | None = None


def get_cache_store(settings: Annotated[Settings, Depends(get_settings)]) -> MemoryCacheStore:
    """Get cache store instance (singleton)."""
    global _cache_store
    if _cache_store is None:
        _cache_store = MemoryCacheStore(max_size=settings.cache_max_size)
    return _cache_store


def get_fault_injector(settings: Annotated[Settings, Depends(get_settings)]) -> FaultInjector:
    """Get the process-wide fault injector (singleton)."""
    global _fault_injector
    if _fault_injector is None:
        _fault_injector = create_fault_injector(settings.fault_injection_every)
    return _fault_injector


def get_nws_client(
    settings: Annotated[Settings, Depends(get_settings)],
    fault_injector: Annotated[FaultInjector, Depends(get_fault_injector)],
) -> NwsClient:
    """Get NWS client instance (singleton)."""
    global _nws_client
    if _nws_client is None:
        _nws_client = NwsClient(settings, fault_injector)
    return _nws_client


def get_metrics_recorder() -> MetricsRecorder:
    """Get metrics recorder instance (singleton)."""
    global _metrics_recorder
    if _metrics_recorder is None:
        _metrics_recorder = MetricsRecorder()
    return _metrics_recorder


def get_forecast_service(
    settings: Annotated[Settings, Depends(get_settings)],
    cache: Annotated[MemoryCacheStore, Depends(get_cache_store)],
    client: Annotated[NwsClient, Depends(get_nws_client)],
    metrics: Annotated[MetricsRecorder, Depends(get_metrics_recorder)],
) -> ForecastService:
    """Get forecast service instance."""
    return ForecastService(cache, client, metrics, settings)


def get_prewarmer(
    settings: Annotated[Settings, Depends(get_settings)],
    service: Annotated[ForecastService, Depends(get_forecast_service)],
) -> ForecastPrewarmer:
    """Get forecast prewarmer instance (singleton)."""
    global _prewarmer
    if _prewarmer is None:
        _prewarmer = ForecastPrewarmer(
            service,
            settings.popular_zones,
            interval_seconds=settings.prewarm_interval_seconds,
            max_concurrency=settings.prewarm_max_concurrency,
        )
    return _prewarmer


def build_prewarmer(settings: Settings) -> ForecastPrewarmer:
    """Resolve the prewarmer outside of a request, sharing the request singletons."""
    fault_injector = get_fault_injector(settings)
    service = get_forecast_service(
        settings,
        get_cache_store(settings),
        get_nws_client(settings, fault_injector),
        get_metrics_recorder(),
    )
    return get_prewarmer(settings, service)


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
ForecastServiceDep = Annotated[ForecastService, Depends(get_forecast_service)]
PrewarmerDep = Annotated[ForecastPrewarmer, Depends(get_prewarmer)]


def reset_singletons() -> None:
    """Reset singleton instances (for testing)."""
    global _cache_store, _fault_injector, _nws_client, _metrics_recorder, _prewarmer
    _cache_store = None
    _fault_injector = None
    _nws_client = None
    _metrics_recorder = None
    _prewarmer = None
