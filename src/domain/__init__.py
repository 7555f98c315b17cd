"""Domain package exposing tracker document models and the live module document."""
from .document import ModuleDocument, UpdateHint
from .models import (
    EMPTY_CELL,
    MAX_CHANNELS,
    MAX_INSTRUMENTS,
    MAX_PATTERNS,
    MAX_SAMPLES,
    NOTE_MAX,
    ChannelSettings,
    Envelope,
    EnvelopePoint,
    EnvelopeType,
    Instrument,
    ModCommand,
    Pattern,
    Sample,
    SampleHeader,
)

__all__ = [
    "EMPTY_CELL",
    "MAX_CHANNELS",
    "MAX_INSTRUMENTS",
    "MAX_PATTERNS",
    "MAX_SAMPLES",
    "NOTE_MAX",
    "ChannelSettings",
    "Envelope",
    "EnvelopePoint",
    "EnvelopeType",
    "Instrument",
    "ModCommand",
    "ModuleDocument",
    "Pattern",
    "Sample",
    "SampleHeader",
    "UpdateHint",
]
