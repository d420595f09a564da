"""Exceptions raised on the upstream side of the forecast services."""


class NwsError(Exception):
    """Base exception for NWS client errors."""


class UpstreamUnavailable(NwsError):
    """Raised when the NWS API cannot be reached or returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeoutError(UpstreamUnavailable):
    """Raised when an upstream request times out."""


class InjectedFault(NwsError):
    """Synthetic failure raised by a fault injector instead of calling upstream."""

    def __init__(self, message: str, attempt: int) -> None:
        super().__init__(message)
        self.attempt = attempt
