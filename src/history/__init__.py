"""Undo/redo history for pattern grids, sample waveforms and instruments."""
from .budget import SampleUndoBudget, table_bytes
from .errors import (
    HistoryDisabledError,
    HistoryError,
    InconsistentStateError,
    InvalidReferenceError,
    InvalidRegionError,
    PayloadAllocationError,
)
from .instrument_history import WHOLE_INSTRUMENT, InstrumentHistory, InstrumentUndoStep
from .manager import DocumentHistory
from .pattern_history import PatternHistory, PatternUndoStep
from .sample_history import SampleChange, SampleHistory, SampleUndoStep
from .settings import HistorySettings
from .step_store import HistoryTable, StepStore

__all__ = [
    "DocumentHistory",
    "HistoryDisabledError",
    "HistoryError",
    "HistorySettings",
    "HistoryTable",
    "InconsistentStateError",
    "InstrumentHistory",
    "InstrumentUndoStep",
    "InvalidReferenceError",
    "InvalidRegionError",
    "PatternHistory",
    "PatternUndoStep",
    "PayloadAllocationError",
    "SampleChange",
    "SampleHistory",
    "SampleUndoBudget",
    "SampleUndoStep",
    "StepStore",
    "WHOLE_INSTRUMENT",
    "table_bytes",
]
