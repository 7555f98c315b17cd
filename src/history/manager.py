"""Bundle of the three history managers owned by one module document."""
from __future__ import annotations

from typing import Sequence

from domain.document import ModuleDocument

from .instrument_history import InstrumentHistory
from .pattern_history import PatternHistory
from .sample_history import SampleHistory
from .settings import HistorySettings


class DocumentHistory:
    """Pattern, sample and instrument histories sharing one settings object."""

    def __init__(self, document: ModuleDocument, settings: HistorySettings | None = None) -> None:
        self.document = document
        self.settings = settings or HistorySettings()
        self.patterns = PatternHistory(document, self.settings)
        self.samples = SampleHistory(document, self.settings)
        self.instruments = InstrumentHistory(document, self.settings)

    def clear_all(self) -> None:
        """Drop every step, e.g. when the document is closed or reloaded."""

        self.patterns.clear_all()
        self.samples.clear_all()
        self.instruments.clear_all()

    def rearrange_patterns(self, new_index: Sequence[int]) -> None:
        self.patterns.rearrange_patterns(new_index)

    def rearrange_instruments(self, new_index: Sequence[int]) -> None:
        self.instruments.rearrange_instruments(new_index)

    def rearrange_samples(self, new_index: Sequence[int]) -> None:
        """Renumber sample history and every stored keyboard that points at samples."""

        self.samples.rearrange_samples(new_index)
        for slot in range(1, self.document.num_instruments + 1):
            self.instruments.rearrange_sample_references(slot, new_index)
