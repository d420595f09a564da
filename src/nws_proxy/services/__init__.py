"""Forecast fetching, caching and pre-warming services."""
