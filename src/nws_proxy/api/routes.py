"""API route definitions."""

import structlog
from fastapi import APIRouter, HTTPException, Response, status

from nws_proxy.api.dependencies import ForecastServiceDep, PrewarmerDep, SettingsDep
from nws_proxy.api.schemas import (
    ErrorDetail,
    ErrorResponse,
    Forecast,
    RefreshResponse,
    Zone,
    ZoneCacheStatus,
)
from nws_proxy.services.errors import InjectedFault, NwsError, UpstreamTimeoutError

logger = structlog.get_logger()

# Weather endpoints
weather_router = APIRouter(tags=["weather"])

# Cache management endpoints
cache_router = APIRouter(prefix="/cache", tags=["cache"])


@weather_router.get(
    "/zones",
    response_model=list[Zone],
    responses={
        502: {"model": ErrorResponse, "description": "Upstream API error"},
        504: {"model": ErrorResponse, "description": "Upstream timeout"},
    },
)
async def get_zones(
    forecast_service: ForecastServiceDep,
    settings: SettingsDep,
    response: Response,
) -> list[Zone]:
    """Get NWS forecast zones that have observation stations.

    The zone list is cached for an hour.
    """
    try:
        zones = await forecast_service.get_zones()

    except UpstreamTimeoutError as e:
        logger.error("Upstream timeout fetching zones", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=ErrorResponse(
                error=ErrorDetail(
                    code="UPSTREAM_TIMEOUT",
                    message="NWS API request timed out",
                )
            ).model_dump(),
        ) from e

    except NwsError as e:
        logger.error("Upstream request for zones failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=ErrorResponse(
                error=ErrorDetail(
                    code="UPSTREAM_ERROR",
                    message=f"NWS API request failed: {e}",
                )
            ).model_dump(),
        ) from e

    response.headers["Cache-Control"] = f"public, max-age={settings.zones_cache_ttl_seconds}"
    return zones


@weather_router.get(
    "/forecast/{zone_id}",
    response_model=list[Forecast],
    responses={
        404: {"model": ErrorResponse, "description": "Forecast unavailable for zone"},
    },
)
async def get_forecast(
    zone_id: str,
    forecast_service: ForecastServiceDep,
    settings: SettingsDep,
    response: Response,
) -> list[Forecast]:
    """Get forecast periods for a zone.

    Any upstream failure, real or injected, is reported as not found.
    Results are cached for 15 minutes per zone.
    """
    try:
        forecasts = await forecast_service.get_forecast(zone_id)

    except NwsError as e:
        logger.warning(
            "Forecast unavailable",
            zone_id=zone_id,
            injected=isinstance(e, InjectedFault),
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorResponse(
                error=ErrorDetail(
                    code="FORECAST_NOT_FOUND",
                    message=f"No forecast available for zone {zone_id}",
                )
            ).model_dump(),
        ) from e

    response.headers["Cache-Control"] = f"public, max-age={settings.forecast_cache_ttl_seconds}"
    return forecasts


@cache_router.get("/status", response_model=list[ZoneCacheStatus])
async def cache_status(
    forecast_service: ForecastServiceDep,
    settings: SettingsDep,
) -> list[ZoneCacheStatus]:
    """Report whether each popular zone has a live cached forecast."""
    return forecast_service.cache_status(settings.popular_zones)


@cache_router.post("/refresh", response_model=RefreshResponse)
async def refresh_cache(prewarmer: PrewarmerDep) -> RefreshResponse:
    """Refresh popular zone forecasts now and wait for completion."""
    result = await prewarmer.refresh_now()
    return RefreshResponse(
        message="Cache refresh completed",
        succeeded=result.succeeded,
        failed=result.failed,
    )
