from __future__ import annotations


class CountingError(Exception):
    """Base class for errors raised while counting parsed sentences."""


class MalformedOccurrence(CountingError):
    """A word occurrence could not be reduced to its underlying word."""

    def __init__(self, instance: str, reason: str = "no underlying word") -> None:
        super().__init__(f"malformed occurrence {instance!r}: {reason}")
        self.instance = instance
        self.reason = reason


class StoreError(CountingError):
    """Fetching or persisting a counter failed."""
