"""NWS forecast proxy with zone caching and background pre-warming."""

__version__ = "0.1.0"
