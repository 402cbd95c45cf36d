"""Utility helpers."""
from wiowa_api.utils.datetime_helpers import ensure_utc
from wiowa_api.utils.exceptions import WiowaException

__all__ = ["ensure_utc", "WiowaException"]
