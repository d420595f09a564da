"""API request and response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class Zone(BaseModel):
    """NWS forecast zone."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Zone identifier, e.g. DCZ001")
    name: str = Field(..., description="Zone display name")
    state: str | None = Field(default=None, description="Two-letter state code")


class Forecast(BaseModel):
    """One forecast period for a zone."""

    model_config = ConfigDict(frozen=True)

    number: int | None = Field(default=None, description="Period sequence number")
    name: str = Field(..., description="Period name, e.g. Tonight")
    detailedForecast: str = Field(default="", description="Full forecast text")  # noqa: N815
    shortForecast: str | None = Field(default=None, description="Short description")  # noqa: N815
    temperature: int | float | None = Field(default=None, description="Temperature")
    temperatureUnit: str | None = Field(default=None, description="Temperature unit")  # noqa: N815
    windSpeed: str | None = Field(default=None, description="Wind speed")  # noqa: N815
    windDirection: str | None = Field(default=None, description="Wind direction")  # noqa: N815


class ZoneCacheStatus(BaseModel):
    """Cache state of one popular zone."""

    zoneId: str = Field(..., description="Zone identifier")  # noqa: N815
    isCached: bool = Field(..., description="A live forecast entry exists")  # noqa: N815
    hasData: bool = Field(..., description="The cached entry holds a value")  # noqa: N815


class RefreshResponse(BaseModel):
    """Manual cache refresh response."""

    message: str = Field(..., description="Outcome summary")
    succeeded: list[str] = Field(default_factory=list, description="Zones refreshed")
    failed: list[str] = Field(default_factory=list, description="Zones that failed")


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail
