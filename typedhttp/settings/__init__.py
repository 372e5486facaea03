"""Application settings loading."""

from .app import HttpClientSettings, get_settings


__all__ = ["HttpClientSettings", "get_settings"]
