"""Undo/redo of sample waveform and header edits.

Callers announce *what kind* of change they are about to make so that only
the edits that destroy information keep a copy of the old frames. Payloads of
every slot, in both directions, share one byte budget enforced by
:class:`~history.budget.SampleUndoBudget`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

import numpy as np

from audio import sample_ops
from domain.document import ModuleDocument, UpdateHint
from domain.models import MAX_SAMPLES, Sample, SampleHeader

from .budget import SampleUndoBudget
from .errors import (
    HistoryDisabledError,
    HistoryError,
    InconsistentStateError,
    InvalidReferenceError,
    InvalidRegionError,
    PayloadAllocationError,
)
from .renumber import rearrange_slots
from .settings import HistorySettings
from .step_store import HistoryTable

logger = logging.getLogger(__name__)


class SampleChange(Enum):
    """What an edit is about to do to the waveform."""

    NONE = "none"  # header only
    INVERT = "invert"
    REVERSE = "reverse"
    UNSIGN = "unsign"
    INSERT = "insert"  # frames [start, end) were inserted
    DELETE = "delete"  # frames [start, end) are removed
    UPDATE = "update"  # frames [start, end) are overwritten
    REPLACE = "replace"  # the whole buffer is swapped

    @property
    def carries_payload(self) -> bool:
        return self in _PAYLOAD_CHANGES

    def inverse(self) -> SampleChange:
        """Kind of the step that reverts a step of this kind."""

        if self is SampleChange.DELETE:
            return SampleChange.INSERT
        if self is SampleChange.INSERT:
            return SampleChange.DELETE
        return self


_PAYLOAD_CHANGES = frozenset({SampleChange.UPDATE, SampleChange.DELETE, SampleChange.REPLACE})
_SELF_INVERSE = {
    SampleChange.INVERT: sample_ops.invert,
    SampleChange.REVERSE: sample_ops.reverse,
    SampleChange.UNSIGN: sample_ops.unsign,
}


@dataclass
class SampleUndoStep:
    """Old header and name plus, for destructive kinds, the old frames.

    ``data`` is owned by the step alone; :meth:`take_data` moves it out.
    """

    old_header: SampleHeader
    old_name: str
    change: SampleChange
    start: int
    end: int
    label: str
    data: np.ndarray | None = None

    @property
    def has_payload(self) -> bool:
        return self.data is not None

    @property
    def num_frames(self) -> int:
        return self.end - self.start

    @property
    def nbytes(self) -> int:
        if self.data is None:
            return 0
        return self.num_frames * self.old_header.bytes_per_frame

    def take_data(self) -> np.ndarray | None:
        data, self.data = self.data, None
        return data


class SampleHistory:
    """Per-slot undo and redo stacks for samples 1..MAX_SAMPLES-1."""

    def __init__(self, document: ModuleDocument, settings: HistorySettings | None = None) -> None:
        self._document = document
        self._settings = settings or HistorySettings()
        self._undo: HistoryTable[SampleUndoStep] = HistoryTable(MAX_SAMPLES)
        self._redo: HistoryTable[SampleUndoStep] = HistoryTable(MAX_SAMPLES)
        self.budget = SampleUndoBudget(self._settings, (self._undo, self._redo))

    @property
    def settings(self) -> HistorySettings:
        return self._settings

    def undo_steps(self, slot: int) -> List[SampleUndoStep]:
        """Return the pending undo steps of *slot* (most recent last)."""

        store = self._undo.get(slot)
        return list(store) if store is not None else []

    def redo_steps(self, slot: int) -> List[SampleUndoStep]:
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

    def buffer_bytes(self) -> int:
        """Bytes currently held by undo and redo payloads of all slots."""

        return self.budget.held_bytes()

    def clear_all(self) -> None:
        self._undo.clear_all()
        self._redo.clear_all()

    def clear(self, slot: int) -> None:
        self._undo.clear(slot)
        self._redo.clear(slot)

    def prepare_undo(
        self,
        slot: int,
        change: SampleChange,
        label: str,
        start: int = 0,
        end: int = 0,
    ) -> bool:
        """Record the state of *slot* before an edit of kind *change*.

        ``[start, end)`` is the affected frame range; it is ignored for
        ``REPLACE`` (whole sample) and ``NONE`` (no frames).
        """

        if self.prepare_buffer(self._undo, slot, change, label, start, end):
            self._redo.clear(slot)
            return True
        return False

    def prepare_buffer(
        self,
        table: HistoryTable[SampleUndoStep],
        slot: int,
        change: SampleChange,
        label: str,
        start: int = 0,
        end: int = 0,
    ) -> bool:
        try:
            step = self._capture(table, slot, change, label, start, end)
        except HistoryDisabledError:
            return False
        except HistoryError as exc:
            logger.warning("Sample %s undo point refused: %s", slot, exc)
            return False

        store = table.store(slot)
        store.trim_to(self._settings.max_undo_level - 1)
        store.push(step)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Sample %d: captured %s [%d, %d), undo buffer holds %d bytes",
                slot,
                change.value,
                step.start,
                step.end,
                self.buffer_bytes(),
            )
        self._document.update_all_views(UpdateHint("sample_undo", slot))
        return True

    def undo(self, slot: int) -> bool:
        return self._transfer(self._undo, self._redo, slot)

    def redo(self, slot: int) -> bool:
        return self._transfer(self._redo, self._undo, slot)

    def remove_last_undo_step(self, slot: int) -> None:
        """Forget the newest undo step of *slot*, e.g. after an aborted edit."""

        store = self._undo.get(slot)
        if store is not None:
            store.pop_newest()

    def rearrange_samples(self, new_index: Sequence[int]) -> None:
        """Follow sample renumbering: ``new_index[old]`` is the new slot."""

        num_samples = self._document.num_samples
        rearrange_slots(self._undo, new_index, num_samples)
        rearrange_slots(self._redo, new_index, num_samples)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _capture(
        self,
        table: HistoryTable[SampleUndoStep],
        slot: int,
        change: SampleChange,
        label: str,
        start: int,
        end: int,
    ) -> SampleUndoStep:
        if not isinstance(change, SampleChange):
            raise ValueError(f"Unsupported sample change kind {change!r}")
        if not table.is_valid_slot(slot):
            raise InvalidReferenceError(f"Sample slot {slot} out of range")
        if not self._settings.sample_undo_enabled:
            raise HistoryDisabledError("Sample undo buffer size is zero")

        sample = self._document.sample(slot)
        header = sample.header
        if change is SampleChange.REPLACE:
            start, end = 0, header.length
        elif change is SampleChange.NONE:
            start = end = 0
        if start < 0 or start > header.length or start > end:
            raise InvalidRegionError(f"Frame range [{start}, {end}) invalid for length {header.length}")
        if change.carries_payload and end > header.length:
            raise InvalidRegionError(f"Frame range [{start}, {end}) exceeds length {header.length}")

        payload_bytes = 0
        if change.carries_payload and sample.has_data:
            payload_bytes = (end - start) * header.bytes_per_frame
            if not self.budget.fits(payload_bytes):
                raise PayloadAllocationError(
                    f"{payload_bytes} bytes exceed the {self.budget.limit} byte undo budget"
                )

        self.budget.restrict(payload_bytes)

        data = None
        if payload_bytes:
            try:
                data = np.array(sample.data[start:end], copy=True)
            except MemoryError as exc:
                raise PayloadAllocationError(f"Could not copy {payload_bytes} bytes") from exc

        return SampleUndoStep(
            old_header=header.model_copy(),
            old_name=sample.name,
            change=change,
            start=start,
            end=end,
            label=label,
            data=data,
        )

    def _transfer(
        self,
        source: HistoryTable[SampleUndoStep],
        target: HistoryTable[SampleUndoStep],
        slot: int,
    ) -> bool:
        if not source.is_valid_slot(slot) or source.depth(slot) == 0:
            return False
        sample = self._document.sample(slot)
        step = source.newest(slot)
        try:
            self._check_applicable(sample, step)
        except InconsistentStateError as exc:
            logger.warning("Sample %d: cannot restore %r: %s", slot, step.label, exc)
            return False

        # Taken off the stack first so budget eviction in prepare_buffer
        # cannot discard the step being restored.
        source.store(slot).pop_newest()
        if not self.prepare_buffer(target, slot, step.change.inverse(), step.label, step.start, step.end):
            logger.debug("Sample %d: no inverse step recorded for %r", slot, step.label)

        self._apply(slot, sample, step)

        self._document.update_all_views(UpdateHint("sample_undo", slot))
        self._document.set_modified()
        return True

    def _check_applicable(self, sample: Sample, step: SampleUndoStep) -> None:
        length = sample.header.length
        change = step.change
        if change in _SELF_INVERSE or change in (SampleChange.INSERT, SampleChange.UPDATE):
            if length < step.end:
                raise InconsistentStateError(f"sample is {length} frames, step needs {step.end}")
            if step.num_frames and sample.data is None:
                raise InconsistentStateError("sample has no waveform data")
        elif change is SampleChange.DELETE:
            if length < step.old_header.length - step.num_frames:
                raise InconsistentStateError(f"sample is {length} frames, too short to reinsert into")

    def _apply(self, slot: int, sample: Sample, step: SampleUndoStep) -> None:
        keep_on_disk = sample.header.keep_on_disk
        old_length = step.old_header.length
        data = sample.data
        replacement: np.ndarray | None = None
        replace = False

        if step.change is SampleChange.NONE:
            pass
        elif step.change in _SELF_INVERSE:
            _SELF_INVERSE[step.change](sample, step.start, step.end)
        elif step.change is SampleChange.INSERT:
            length = sample.header.length
            if step.num_frames != length - old_length:
                logger.warning(
                    "Sample %d: inserted range of %d frames does not match length change %d",
                    slot,
                    step.num_frames,
                    length - old_length,
                )
            if data is not None:
                kept = np.concatenate([data[:step.start], data[step.end:length]])[:old_length]
                data = np.zeros((old_length,) + data.shape[1:], dtype=data.dtype)
                data[:len(kept)] = kept
        elif step.change is SampleChange.UPDATE:
            if step.data is not None:
                data[step.start:step.end] = step.data
        elif step.change is SampleChange.DELETE:
            replacement = self._reinsert(sample, step)
            replace = True
        elif step.change is SampleChange.REPLACE:
            replacement = step.take_data()
            replace = True
        else:
            raise ValueError(f"Unsupported sample change kind {step.change!r}")

        sample.header = step.old_header.model_copy()
        sample.name = step.old_name
        if replace:
            self._document.replace_sample_data(slot, replacement, old_length)
        else:
            sample.data = data
        sample.precompute_loops()
        if step.change is not SampleChange.NONE:
            sample.header.modified = True
        if not keep_on_disk:
            sample.header.keep_on_disk = False

    @staticmethod
    def _reinsert(sample: Sample, step: SampleUndoStep) -> np.ndarray | None:
        header = step.old_header
        old_length = header.length
        if old_length == 0:
            return None
        shape = (0,) if header.channels == 1 else (0, header.channels)
        live = sample.data if sample.data is not None else np.zeros(shape, dtype=header.dtype)
        payload = step.data
        if payload is None:
            gap_shape = (step.num_frames,) + tuple(shape[1:])
            payload = np.zeros(gap_shape, dtype=header.dtype)
        suffix = live[step.start:step.start + old_length - step.end]
        return np.concatenate([live[:step.start], payload, suffix]).astype(header.dtype, copy=False)
