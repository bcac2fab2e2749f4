"""Utility functions."""

from korastats_sync.utils.timestamps import isoformat, parse_provider_datetime, utcnow

__all__ = [
    "utcnow",
    "parse_provider_datetime",
    "isoformat",
]
