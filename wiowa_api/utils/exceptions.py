"""Base exception types shared across services."""


class WiowaException(Exception):
    """Base class for domain errors raised by services."""
