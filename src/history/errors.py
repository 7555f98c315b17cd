"""Error taxonomy for history capture and restore failures.

Every error here is local and recoverable: public history entry points catch
:class:`HistoryError`, log it and report failure through their return value.
"""
from __future__ import annotations


class HistoryError(Exception):
    """Base error for refused history operations."""


class InvalidReferenceError(HistoryError):
    """Raised when an object id is out of range or names no live object."""


class InvalidRegionError(HistoryError):
    """Raised when a capture region or frame range is degenerate or out of bounds."""


class PayloadAllocationError(HistoryError):
    """Raised when a raw sample payload cannot be obtained."""


class InconsistentStateError(HistoryError):
    """Raised when a stored step no longer fits the live object it targets."""


class HistoryDisabledError(HistoryError):
    """Raised when sample history is switched off by a zero byte budget."""
