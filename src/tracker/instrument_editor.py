"""Instrument editing commands with envelope-scoped or whole-instrument undo."""
from __future__ import annotations

from typing import Iterable

from domain.document import ModuleDocument
from domain.models import NOTE_MAX, EnvelopePoint, EnvelopeType, Instrument
from history.instrument_history import WHOLE_INSTRUMENT, InstrumentHistory


class InstrumentEditor:
    """Edits on instrument envelopes, names and keyboard maps."""

    def __init__(self, document: ModuleDocument, history: InstrumentHistory) -> None:
        self._document = document
        self._history = history

    def add_envelope_point(self, slot: int, kind: EnvelopeType, tick: int, value: int) -> int:
        """Insert a point keeping ticks ordered; returns its index."""

        instrument = self._get_instrument(slot)
        point = EnvelopePoint(tick=tick, value=value)
        envelope = instrument.envelope(kind)
        if any(existing.tick == tick for existing in envelope.points):
            raise ValueError(f"Envelope already has a point at tick {tick}")
        self._history.prepare_undo(slot, "Add Envelope Point", kind)
        index = sum(1 for existing in envelope.points if existing.tick < tick)
        envelope.points.insert(index, point)
        envelope.enabled = True
        return index

    def move_envelope_point(self, slot: int, kind: EnvelopeType, index: int, *, tick: int, value: int) -> None:
        instrument = self._get_instrument(slot)
        points = instrument.envelope(kind).points
        if not 0 <= index < len(points):
            raise IndexError(f"Envelope point {index} out of range")
        lower = points[index - 1].tick + 1 if index > 0 else 0
        upper = points[index + 1].tick - 1 if index + 1 < len(points) else tick
        point = EnvelopePoint(tick=max(lower, min(upper, tick)), value=value)
        self._history.prepare_undo(slot, "Move Envelope Point", kind)
        points[index] = point

    def remove_envelope_point(self, slot: int, kind: EnvelopeType, index: int) -> None:
        instrument = self._get_instrument(slot)
        points = instrument.envelope(kind).points
        if not 0 <= index < len(points):
            raise IndexError(f"Envelope point {index} out of range")
        self._history.prepare_undo(slot, "Remove Envelope Point", kind)
        del points[index]

    def map_keyboard(self, slot: int, notes: Iterable[int], sample: int) -> None:
        """Point the given notes (1-based) at *sample*; 0 unmaps them."""

        instrument = self._get_instrument(slot)
        note_list = list(notes)
        for note in note_list:
            if not 1 <= note <= NOTE_MAX:
                raise IndexError(f"Note {note} out of range")
        self._history.prepare_undo(slot, "Map Keyboard", WHOLE_INSTRUMENT)
        for note in note_list:
            instrument.keyboard[note - 1] = sample

    def rename(self, slot: int, name: str) -> None:
        instrument = self._get_instrument(slot)
        self._history.prepare_undo(slot, "Rename Instrument", WHOLE_INSTRUMENT)
        instrument.name = name

    def _get_instrument(self, slot: int) -> Instrument:
        instrument = self._document.instrument(slot)
        if instrument is None:
            raise KeyError(f"Instrument {slot} not found")
        return instrument
