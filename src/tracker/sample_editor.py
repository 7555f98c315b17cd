"""Sample editing commands that announce their change kind to the history first."""
from __future__ import annotations

import numpy as np

from audio import sample_ops
from domain.document import ModuleDocument
from domain.models import Sample
from history.sample_history import SampleChange, SampleHistory


class SampleEditor:
    """Waveform and header edits on one document's sample slots.

    Each method returns whether an undo point was recorded; the edit itself
    is performed either way (sample undo may be disabled by a zero budget).
    """

    def __init__(self, document: ModuleDocument, history: SampleHistory) -> None:
        self._document = document
        self._history = history

    def invert(self, slot: int, start: int = 0, end: int | None = None) -> bool:
        sample, start, end = self._selection(slot, start, end)
        recorded = self._history.prepare_undo(slot, SampleChange.INVERT, "Invert", start, end)
        sample_ops.invert(sample, start, end)
        return recorded

    def reverse(self, slot: int, start: int = 0, end: int | None = None) -> bool:
        sample, start, end = self._selection(slot, start, end)
        recorded = self._history.prepare_undo(slot, SampleChange.REVERSE, "Reverse", start, end)
        sample_ops.reverse(sample, start, end)
        return recorded

    def unsign(self, slot: int, start: int = 0, end: int | None = None) -> bool:
        sample, start, end = self._selection(slot, start, end)
        recorded = self._history.prepare_undo(slot, SampleChange.UNSIGN, "Unsign", start, end)
        sample_ops.unsign(sample, start, end)
        return recorded

    def silence(self, slot: int, start: int = 0, end: int | None = None) -> bool:
        sample, start, end = self._selection(slot, start, end)
        recorded = self._history.prepare_undo(slot, SampleChange.UPDATE, "Silence", start, end)
        sample_ops.silence(sample, start, end)
        return recorded

    def delete_range(self, slot: int, start: int, end: int) -> bool:
        sample, start, end = self._selection(slot, start, end)
        recorded = self._history.prepare_undo(slot, SampleChange.DELETE, "Delete Selection", start, end)
        sample_ops.remove_range(sample, start, end)
        return recorded

    def insert_silence(self, slot: int, position: int, frames: int) -> bool:
        sample = self._document.sample(slot)
        if not 0 <= position <= sample.header.length:
            raise IndexError(f"Insert position {position} outside sample of length {sample.header.length}")
        recorded = self._history.prepare_undo(
            slot, SampleChange.INSERT, "Insert Silence", position, position + frames
        )
        sample_ops.insert_silence(sample, position, frames)
        return recorded

    def replace_data(self, slot: int, data: np.ndarray, *, name: str | None = None) -> bool:
        """Swap the whole waveform, e.g. after resampling or loading a file."""

        sample = self._document.sample(slot)
        recorded = self._history.prepare_undo(slot, SampleChange.REPLACE, "Replace Sample")
        sample_ops.replace(sample, data)
        if name is not None:
            sample.name = name
        sample.header.modified = True
        sample.header.keep_on_disk = False
        return recorded

    def rename(self, slot: int, name: str) -> bool:
        sample = self._document.sample(slot)
        recorded = self._history.prepare_undo(slot, SampleChange.NONE, "Rename Sample")
        sample.name = name
        return recorded

    def set_loop(self, slot: int, start: int, end: int, *, enabled: bool = True) -> bool:
        sample = self._document.sample(slot)
        if not 0 <= start < end <= sample.header.length:
            raise ValueError(f"Loop [{start}, {end}) outside sample of length {sample.header.length}")
        recorded = self._history.prepare_undo(slot, SampleChange.NONE, "Set Loop")
        sample.header.loop_start = start
        sample.header.loop_end = end
        sample.header.loop_enabled = enabled
        return recorded

    def _selection(self, slot: int, start: int, end: int | None) -> tuple[Sample, int, int]:
        sample = self._document.sample(slot)
        length = sample.header.length
        end = length if end is None else end
        if not 0 <= start <= end <= length:
            raise IndexError(f"Selection [{start}, {end}) outside sample of length {length}")
        return sample, start, end
