"""Tests for NWS client."""

from typing import Any

import httpx
import pytest
import respx
from httpx import Response

from nws_proxy.config import Settings
from nws_proxy.services.errors import InjectedFault, UpstreamTimeoutError, UpstreamUnavailable
from nws_proxy.services.faults import PeriodicFaultInjector
from nws_proxy.services.nws import NwsClient

FORECAST_URL = "https://nws.test/zones/forecast/DCZ001/forecast"


class TestFetchZones:
    """Tests for NwsClient.fetch_zones."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_filters_and_deduplicates(
        self, nws_client: NwsClient, zones_payload: dict[str, Any]
    ) -> None:
        """Test zones without stations are dropped and duplicates collapsed."""
        route = respx.get("https://nws.test/zones", params={"type": "forecast"}).mock(
            return_value=Response(200, json=zones_payload)
        )

        zones = await nws_client.fetch_zones()

        assert [zone.key for zone in zones] == ["DCZ001", "NYZ072"]
        assert zones[0].name == "District of Columbia"
        assert zones[0].state == "DC"
        assert route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio
    async def test_sends_user_agent(
        self, settings: Settings, nws_client: NwsClient, zones_payload: dict[str, Any]
    ) -> None:
        """Test the configured User-Agent is sent upstream."""
        route = respx.get("https://nws.test/zones").mock(
            return_value=Response(200, json=zones_payload)
        )

        await nws_client.fetch_zones()

        request = route.calls.last.request
        assert request.headers["User-Agent"] == settings.upstream_user_agent

    @respx.mock
    @pytest.mark.asyncio
    async def test_api_error(self, nws_client: NwsClient) -> None:
        """Test API error handling."""
        respx.get("https://nws.test/zones").mock(
            return_value=Response(500, text="Internal Server Error")
        )

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await nws_client.fetch_zones()

        assert exc_info.value.status_code == 500

    @respx.mock
    @pytest.mark.asyncio
    async def test_timeout(self, nws_client: NwsClient) -> None:
        """Test timeout handling."""
        respx.get("https://nws.test/zones").mock(side_effect=httpx.TimeoutException("timeout"))

        with pytest.raises(UpstreamTimeoutError):
            await nws_client.fetch_zones()

    @respx.mock
    @pytest.mark.asyncio
    async def test_connection_error(self, nws_client: NwsClient) -> None:
        """Test transport failures are reported as unavailable."""
        respx.get("https://nws.test/zones").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamUnavailable, match="request failed"):
            await nws_client.fetch_zones()

    @respx.mock
    @pytest.mark.asyncio
    async def test_missing_features_raises_error(self, nws_client: NwsClient) -> None:
        """Test parsing response without features raises error."""
        respx.get("https://nws.test/zones").mock(return_value=Response(200, json={"type": "x"}))

        with pytest.raises(UpstreamUnavailable, match="Missing 'features' field"):
            await nws_client.fetch_zones()

    @respx.mock
    @pytest.mark.asyncio
    async def test_zone_fetch_does_not_touch_fault_counter(
        self,
        nws_client: NwsClient,
        fault_injector: PeriodicFaultInjector,
        zones_payload: dict[str, Any],
    ) -> None:
        """Test only forecast fetches are counted as attempts."""
        respx.get("https://nws.test/zones").mock(return_value=Response(200, json=zones_payload))

        await nws_client.fetch_zones()

        assert fault_injector.attempts == 0


class TestFetchForecast:
    """Tests for NwsClient.fetch_forecast."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_success(self, nws_client: NwsClient, forecast_payload: dict[str, Any]) -> None:
        """Test successful forecast fetch."""
        respx.get(FORECAST_URL).mock(return_value=Response(200, json=forecast_payload))

        forecasts = await nws_client.fetch_forecast("DCZ001")

        assert [f.name for f in forecasts] == ["Tonight", "Sunday"]
        assert forecasts[0].number == 1
        assert forecasts[1].detailedForecast == "Sunny, with a high near 68."

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_periods_returns_empty(self, nws_client: NwsClient) -> None:
        """Test a payload without periods yields an empty list."""
        respx.get(FORECAST_URL).mock(return_value=Response(200, json={"properties": {}}))

        assert await nws_client.fetch_forecast("DCZ001") == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_attempt_counted_before_request(
        self, nws_client: NwsClient, fault_injector: PeriodicFaultInjector
    ) -> None:
        """Test a failed upstream call still counts as an attempt."""
        respx.get(FORECAST_URL).mock(return_value=Response(503, text="Service Unavailable"))

        with pytest.raises(UpstreamUnavailable):
            await nws_client.fetch_forecast("DCZ001")

        assert fault_injector.attempts == 1

    @respx.mock
    @pytest.mark.asyncio
    async def test_injected_fault_skips_upstream(
        self, settings: Settings, forecast_payload: dict[str, Any]
    ) -> None:
        """Test the fifth attempt fails without calling upstream."""
        injector = PeriodicFaultInjector(every=5, start=4)
        client = NwsClient(settings, injector)
        route = respx.get(FORECAST_URL).mock(return_value=Response(200, json=forecast_payload))

        with pytest.raises(InjectedFault):
            await client.fetch_forecast("DCZ001")
        assert route.call_count == 0

        forecasts = await client.fetch_forecast("DCZ001")
        assert len(forecasts) == 2
        assert route.call_count == 1
        assert injector.attempts == 6


    @respx.mock
    @pytest.mark.asyncio
    async def test_integer_temperature_kept(self, nws_client: NwsClient) -> None:
        """Test integer temperatures are not coerced to floats."""
        payload = {
            "properties": {
                "periods": [
                    {"number": 1, "name": "Today", "temperature": 45, "temperatureUnit": "F"},
                ]
            }
        }
        respx.get(FORECAST_URL).mock(return_value=Response(200, json=payload))

        forecasts = await nws_client.fetch_forecast("DCZ001")

        assert forecasts[0].temperature == 45
        assert isinstance(forecasts[0].temperature, int)

    @pytest.mark.parametrize(
        "payload",
        [
            {"properties": ["x"]},
            {"properties": "oops"},
            {"properties": {"periods": "none"}},
            {"properties": {"periods": ["not a period"]}},
            {"properties": {"periods": [{"name": ["Tonight"]}]}},
        ],
    )
    @respx.mock
    @pytest.mark.asyncio
    async def test_malformed_payload_raises_unavailable(
        self, nws_client: NwsClient, payload: dict[str, Any]
    ) -> None:
        """Test malformed forecast payloads are reported as unavailable."""
        respx.get(FORECAST_URL).mock(return_value=Response(200, json=payload))

        with pytest.raises(UpstreamUnavailable):
            await nws_client.fetch_forecast("DCZ001")


class TestMalformedZones:
    """Tests for malformed zone catalogs."""

    @pytest.mark.parametrize(
        "features",
        [
            ["not a feature"],
            [{"properties": "oops"}],
            [{"properties": {"id": "DCZ001", "name": 5, "observationStations": ["KDCA"]}}],
            [{"properties": {"id": ["DCZ001"], "observationStations": ["KDCA"]}}],
        ],
    )
    @respx.mock
    @pytest.mark.asyncio
    async def test_malformed_features_raise_unavailable(
        self, nws_client: NwsClient, features: list[Any]
    ) -> None:
        """Test malformed zone features are reported as unavailable."""
        respx.get("https://nws.test/zones").mock(
            return_value=Response(200, json={"features": features})
        )

        with pytest.raises(UpstreamUnavailable):
            await nws_client.fetch_zones()
