"""National Weather Service API client."""

from typing import Any, Protocol
from urllib.parse import quote

import httpx
from prometheus_client import Counter, Histogram

from nws_proxy.api.schemas import Forecast, Zone
from nws_proxy.config import Settings
from nws_proxy.services.errors import UpstreamTimeoutError, UpstreamUnavailable
from nws_proxy.services.faults import FaultInjector

# Metrics
upstream_requests = Counter(
    "nws_upstream_requests_total",
    "Total upstream API requests",
    ["operation", "status"],
)
upstream_duration = Histogram(
    "nws_upstream_request_duration_seconds",
    "Upstream request duration in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0],
)


class UpstreamClient(Protocol):
    """Source of zone catalogs and zone forecasts."""

    async def fetch_zones(self) -> list[Zone]: ...

    async def fetch_forecast(self, zone_id: str) -> list[Forecast]: ...


class NwsClient:
    """HTTP client for the NWS zones API."""

    def __init__(self, settings: Settings, fault_injector: FaultInjector) -> None:
        """Initialize client with settings and a fault injection strategy."""
        self._base_url = settings.upstream_url.rstrip("/")
        self._timeout = settings.upstream_timeout_seconds
        self._headers = {
            "User-Agent": settings.upstream_user_agent,
            "Accept": "application/geo+json",
        }
        self._faults = fault_injector

    async def fetch_zones(self) -> list[Zone]:
        """Fetch forecast zones that have at least one observation station.

        Zones are deduplicated by identifier, keeping upstream order.

        Raises:
            UpstreamTimeoutError: If request times out
            UpstreamUnavailable: If the request fails or the payload is unusable
        """
        data = await self._get_json("zones", "/zones", params={"type": "forecast"})
        return self._parse_zones(data)

    async def fetch_forecast(self, zone_id: str) -> list[Forecast]:
        """Fetch forecast periods for a zone.

        The fault injector sees the attempt before any request is issued.

        Raises:
            InjectedFault: If the fault injector fails this attempt
            UpstreamTimeoutError: If request times out
            UpstreamUnavailable: If the request fails or the payload is unusable
        """
        self._faults.before_attempt(zone_id)

        path = f"/zones/forecast/{quote(zone_id, safe='')}/forecast"
        data = await self._get_json("forecast", path)
        return self._parse_forecast(data)

    async def _get_json(
        self,
        operation: str,
        path: str,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"

        with upstream_duration.labels(operation=operation).time():
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, headers=self._headers
                ) as client:
                    response = await client.get(url, params=params)

                if response.status_code != 200:
                    upstream_requests.labels(operation=operation, status="error").inc()
                    raise UpstreamUnavailable(
                        f"NWS API returned {response.status_code}: {response.text}",
                        response.status_code,
                    )

                data = response.json()

            except httpx.TimeoutException as e:
                upstream_requests.labels(operation=operation, status="timeout").inc()
                raise UpstreamTimeoutError(
                    f"NWS API request timed out after {self._timeout}s"
                ) from e

            except httpx.RequestError as e:
                upstream_requests.labels(operation=operation, status="error").inc()
                raise UpstreamUnavailable(f"NWS API request failed: {e}") from e

            except ValueError as e:
                upstream_requests.labels(operation=operation, status="error").inc()
                raise UpstreamUnavailable(f"NWS API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            upstream_requests.labels(operation=operation, status="error").inc()
            raise UpstreamUnavailable("NWS API returned a non-object payload")

        upstream_requests.labels(operation=operation, status="success").inc()
        return data

    def _parse_zones(self, data: dict[str, Any]) -> list[Zone]:
        features = data.get("features")
        if not isinstance(features, list):
            raise UpstreamUnavailable("Missing 'features' field in zones response")

        zones: dict[str, Zone] = {}
        try:
            for feature in features:
                if not isinstance(feature, dict):
                    raise UpstreamUnavailable("Zone feature is not an object")
                properties = feature.get("properties") or {}
                if not isinstance(properties, dict):
                    raise UpstreamUnavailable("Zone 'properties' is not an object")
                if not properties.get("observationStations"):
                    continue
                key = properties.get("id")
                if not key or key in zones:
                    continue
                zones[key] = Zone(
                    key=key,
                    name=properties.get("name") or key,
                    state=properties.get("state"),
                )
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Malformed zone in response: {e}") from e
        return list(zones.values())

    def _parse_forecast(self, data: dict[str, Any]) -> list[Forecast]:
        properties = data.get("properties") or {}
        if not isinstance(properties, dict):
            raise UpstreamUnavailable("Forecast 'properties' is not an object")
        periods = properties.get("periods") or []
        if not isinstance(periods, list):
            raise UpstreamUnavailable("Forecast 'periods' is not a list")

        try:
            return [
                Forecast(
                    number=period.get("number"),
                    name=period.get("name") or "",
                    detailedForecast=period.get("detailedForecast") or "",
                    shortForecast=period.get("shortForecast"),
                    temperature=period.get("temperature"),
                    temperatureUnit=period.get("temperatureUnit"),
                    windSpeed=period.get("windSpeed"),
                    windDirection=period.get("windDirection"),
                )
                for period in periods
            ]
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Malformed forecast period in response: {e}") from e
