"""Editor commands that capture history before touching the document."""

from .instrument_editor import InstrumentEditor
from .pattern_editor import PatternEditor
from .sample_editor import SampleEditor

__all__ = [
    "InstrumentEditor",
    "PatternEditor",
    "SampleEditor",
]
