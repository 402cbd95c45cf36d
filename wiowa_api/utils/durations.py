"""Parsing of compact duration strings such as ``"7d"``, ``"24h"`` or ``"15m"``."""
import logging
import re
from datetime import timedelta

logger = logging.getLogger(__name__)

_DURATION_PATTERN = re.compile(r"^(\d+)([dhm])$")

_UNIT_TO_KWARG = {
    "d": "days",
    "h": "hours",
    "m": "minutes",
}


def is_valid_duration(value: str | None) -> bool:
    """Return True if ``value`` is a number followed by a ``d``/``h``/``m`` suffix."""
    if not value:
        return False
    return _DURATION_PATTERN.match(value.strip()) is not None


def parse_duration(value: str | None, default: timedelta) -> timedelta:
    """Parse ``value`` into a timedelta, falling back to ``default``.

    Unrecognized formats are accepted silently by callers; a warning is
    logged so that misconfiguration still shows up in the logs.

    Example:
        >>> parse_duration("7d", timedelta(days=1))
        datetime.timedelta(days=7)
        >>> parse_duration("soon", timedelta(days=7))
        datetime.timedelta(days=7)
    """
    if not value:
        return default

    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        logger.warning(f"Unrecognized duration '{value}', falling back to {default}")
        return default

    amount, unit = match.groups()
    return timedelta(**{_UNIT_TO_KWARG[unit]: int(amount)})
