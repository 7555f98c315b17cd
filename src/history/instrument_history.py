"""Undo/redo of instrument edits, either one envelope or the whole instrument."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from domain.document import ModuleDocument, UpdateHint
from domain.models import MAX_INSTRUMENTS, Envelope, EnvelopeType, Instrument

from .errors import HistoryError, InvalidReferenceError
from .renumber import rearrange_slots, remap_sample_references
from .settings import HistorySettings
from .step_store import HistoryTable

logger = logging.getLogger(__name__)

WHOLE_INSTRUMENT = None


@dataclass
class InstrumentUndoStep:
    """Either a single envelope (``envelope_type`` set) or a full instrument copy."""

    label: str
    envelope_type: EnvelopeType | None
    envelope: Envelope | None = None
    instrument: Instrument | None = None

    @property
    def is_whole_instrument(self) -> bool:
        return self.envelope_type is WHOLE_INSTRUMENT


class InstrumentHistory:
    """Per-slot undo and redo stacks for instruments 1..MAX_INSTRUMENTS-1."""

    def __init__(self, document: ModuleDocument, settings: HistorySettings | None = None) -> None:
        self._document = document
        self._settings = settings or HistorySettings()
        self._undo: HistoryTable[InstrumentUndoStep] = HistoryTable(MAX_INSTRUMENTS)
        self._redo: HistoryTable[InstrumentUndoStep] = HistoryTable(MAX_INSTRUMENTS)

    def undo_steps(self, slot: int) -> List[InstrumentUndoStep]:
        store = self._undo.get(slot)
        return list(store) if store is not None else []

    def redo_steps(self, slot: int) -> List[InstrumentUndoStep]:
        store = self._redo.get(slot)
        return list(store) if store is not None else []

    def can_undo(self, slot: int) -> bool:
        return self._undo.depth(slot) > 0

    def can_redo(self, slot: int) -> bool:
        return self._redo.depth(slot) > 0

    def get_undo_label(self, slot: int) -> str:
        step = self._undo.newest(slot)
        return step.label if step is not None else ""

    def get_redo_label(self, slot: int) -> str:
        step = self._redo.newest(slot)
        return step.label if step is not None else ""

    def clear_all(self) -> None:
        self._undo.clear_all()
        self._redo.clear_all()

    def clear(self, slot: int) -> None:
        self._undo.clear(slot)
        self._redo.clear(slot)

    def prepare_undo(
        self,
        slot: int,
        label: str,
        envelope_type: EnvelopeType | None = WHOLE_INSTRUMENT,
    ) -> bool:
        """Snapshot one envelope, or the whole instrument when no type is given."""

        if self.prepare_buffer(self._undo, slot, label, envelope_type):
            self._redo.clear(slot)
            return True
        return False

    def prepare_buffer(
        self,
        table: HistoryTable[InstrumentUndoStep],
        slot: int,
        label: str,
        envelope_type: EnvelopeType | None = WHOLE_INSTRUMENT,
    ) -> bool:
        try:
            instrument = self._live_instrument(table, slot)
        except HistoryError as exc:
            logger.debug("Instrument undo point refused: %s", exc)
            return False

        store = table.store(slot)
        store.trim_to(self._settings.max_undo_level - 1)
        if envelope_type is WHOLE_INSTRUMENT:
            step = InstrumentUndoStep(label, WHOLE_INSTRUMENT, instrument=instrument.model_copy(deep=True))
        else:
            step = InstrumentUndoStep(
                label,
                envelope_type,
                envelope=instrument.envelope(envelope_type).model_copy(deep=True),
            )
        store.push(step)
        self._document.update_all_views(UpdateHint("instrument_undo", slot))
        return True

    def undo(self, slot: int) -> bool:
        return self._transfer(self._undo, self._redo, slot)

    def redo(self, slot: int) -> bool:
        return self._transfer(self._redo, self._undo, slot)

    def remove_last_undo_step(self, slot: int) -> None:
        store = self._undo.get(slot)
        if store is not None:
            store.pop_newest()

    def rearrange_instruments(self, new_index: Sequence[int]) -> None:
        """Follow instrument renumbering: ``new_index[old]`` is the new slot."""

        num_instruments = self._document.num_instruments
        rearrange_slots(self._undo, new_index, num_instruments)
        rearrange_slots(self._redo, new_index, num_instruments)

    def rearrange_sample_references(self, slot: int, new_index: Sequence[int]) -> None:
        """Renumber keyboard sample references stored in whole-instrument steps."""

        if self._document.instrument(slot) is None:
            return
        for table in (self._undo, self._redo):
            store = table.get(slot)
            if store is None:
                continue
            for step in store:
                if step.is_whole_instrument:
                    step.instrument.keyboard = remap_sample_references(step.instrument.keyboard, new_index)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _live_instrument(self, table: HistoryTable[InstrumentUndoStep], slot: int) -> Instrument:
        if not table.is_valid_slot(slot):
            raise InvalidReferenceError(f"Instrument slot {slot} out of range")
        instrument = self._document.instrument(slot)
        if instrument is None:
            raise InvalidReferenceError(f"Instrument {slot} does not exist")
        return instrument

    def _transfer(
        self,
        source: HistoryTable[InstrumentUndoStep],
        target: HistoryTable[InstrumentUndoStep],
        slot: int,
    ) -> bool:
        if self._document.instrument(slot) is None or source.depth(slot) == 0:
            return False
        step = source.newest(slot)

        self.prepare_buffer(target, slot, step.label, step.envelope_type)

        instrument = self._document.instrument(slot)
        if step.is_whole_instrument:
            instrument.assign_from(step.instrument)
        else:
            instrument.set_envelope(step.envelope_type, step.envelope.model_copy(deep=True))

        source.store(slot).pop_newest()
        logger.debug("Instrument %d: restored %r", slot, step.label)
        self._document.update_all_views(UpdateHint("instrument_undo", slot))
        self._document.set_modified()
        return True
