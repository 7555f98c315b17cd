"""Tracker pattern editing commands that record undo points before mutating."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

from domain.document import ModuleDocument
from domain.models import EMPTY_CELL, NOTE_MAX, ModCommand, Pattern
from history.pattern_history import PatternHistory


class PatternEditor:
    """Cell, region and channel edits on a document's patterns.

    Every command captures the region it is about to change. Commands issued
    inside :meth:`batch` are linked so one undo reverts the whole group, even
    when it spans several patterns.
    """

    def __init__(self, document: ModuleDocument, history: PatternHistory) -> None:
        self._document = document
        self._history = history
        self._batch_label: str | None = None
        self._batch_steps = 0

    @property
    def history(self) -> PatternHistory:
        return self._history

    def write_cell(
        self,
        pattern: int,
        row: int,
        channel: int,
        *,
        note: int | None = None,
        instrument: int | None = None,
        volume_command: int | None = None,
        volume: int | None = None,
        command: int | None = None,
        param: int | None = None,
    ) -> ModCommand:
        """Update the given fields of one cell, keeping the others."""

        target = self._get_pattern(pattern)
        self._check_cell(target, row, channel)
        payload = {
            key: value
            for key, value in {
                "note": note,
                "instrument": instrument,
                "volume_command": volume_command,
                "volume": volume,
                "command": command,
                "param": param,
            }.items()
            if value is not None
        }
        updated = ModCommand(**{**target.cell(row, channel).model_dump(), **payload})
        self._prepare(pattern, channel, row, 1, 1, "Note Entry")
        target.set_cell(row, channel, updated)
        return updated

    def clear_region(self, pattern: int, first_row: int, first_channel: int, num_rows: int, num_channels: int) -> int:
        """Empty a rectangle of cells and return how many cells were cleared."""

        target = self._get_pattern(pattern)
        self._check_cell(target, first_row, first_channel)
        if not self._prepare(pattern, first_channel, first_row, num_channels, num_rows, "Clear"):
            return 0
        cleared = 0
        for row, channel in self._region(target, first_row, first_channel, num_rows, num_channels):
            target.set_cell(row, channel, EMPTY_CELL)
            cleared += 1
        return cleared

    def transpose_region(
        self,
        pattern: int,
        first_row: int,
        first_channel: int,
        num_rows: int,
        num_channels: int,
        semitones: int,
    ) -> List[tuple[int, int]]:
        """Shift every note in the rectangle, clamped to the playable range."""

        target = self._get_pattern(pattern)
        self._check_cell(target, first_row, first_channel)
        if not self._prepare(pattern, first_channel, first_row, num_channels, num_rows, "Transpose"):
            return []
        touched: List[tuple[int, int]] = []
        for row, channel in self._region(target, first_row, first_channel, num_rows, num_channels):
            cell = target.cell(row, channel)
            if not 1 <= cell.note <= NOTE_MAX:
                continue
            note = max(1, min(NOTE_MAX, cell.note + semitones))
            target.set_cell(row, channel, cell.model_copy(update={"note": note}))
            touched.append((row, channel))
        return touched

    def resize_pattern(self, pattern: int, num_rows: int) -> None:
        target = self._get_pattern(pattern)
        self._prepare(pattern, 0, 0, self._document.num_channels, target.num_rows, "Resize Pattern")
        self._document.resize_pattern(pattern, num_rows)

    def delete_pattern(self, pattern: int) -> None:
        target = self._get_pattern(pattern)
        self._prepare(pattern, 0, 0, self._document.num_channels, target.num_rows, "Delete Pattern")
        self._document.remove_pattern(pattern)

    def remove_channel(self, channel: int) -> None:
        """Delete a channel from every pattern, keeping the channel headers undoable."""

        document = self._document
        if not 0 <= channel < document.num_channels:
            raise IndexError(f"Channel {channel} out of range")
        if document.num_channels == 1:
            raise ValueError("Cannot remove the last channel")
        with self.batch("Remove Channel"):
            for index, target in sorted(document.patterns.items()):
                self._prepare(
                    index,
                    0,
                    0,
                    document.num_channels,
                    target.num_rows,
                    "Remove Channel",
                    store_channel_info=True,
                )
        document.rearrange_channels([index for index in range(document.num_channels) if index != channel])

    @contextmanager
    def batch(self, label: str | None = None) -> Iterator[None]:
        """Link every undo point recorded inside the block into one group."""

        if self._batch_label is not None:
            raise RuntimeError("Cannot nest PatternEditor batches")
        self._batch_label = label or "Batch"
        self._batch_steps = 0
        try:
            yield
        finally:
            self._batch_label = None
            self._batch_steps = 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _prepare(
        self,
        pattern: int,
        first_channel: int,
        first_row: int,
        num_channels: int,
        num_rows: int,
        label: str,
        *,
        store_channel_info: bool = False,
    ) -> bool:
        link = self._batch_label is not None and self._batch_steps > 0
        if self._batch_label is not None:
            label = self._batch_label
        recorded = self._history.prepare_undo(
            pattern,
            first_channel,
            first_row,
            num_channels,
            num_rows,
            label,
            link_to_previous=link,
            store_channel_info=store_channel_info,
        )
        if recorded and self._batch_label is not None:
            self._batch_steps += 1
        return recorded

    def _get_pattern(self, pattern: int) -> Pattern:
        if not self._document.is_valid_pattern(pattern):
            raise KeyError(f"Pattern {pattern} not found")
        return self._document.pattern(pattern)

    def _check_cell(self, pattern: Pattern, row: int, channel: int) -> None:
        if not 0 <= row < pattern.num_rows:
            raise IndexError(f"Row {row} out of range for pattern with {pattern.num_rows} rows")
        if not 0 <= channel < pattern.num_channels:
            raise IndexError(f"Channel {channel} out of range for {pattern.num_channels} channels")

    @staticmethod
    def _region(
        pattern: Pattern,
        first_row: int,
        first_channel: int,
        num_rows: int,
        num_channels: int,
    ) -> Iterator[tuple[int, int]]:
        last_row = min(first_row + num_rows, pattern.num_rows)
        last_channel = min(first_channel + num_channels, pattern.num_channels)
        for row in range(first_row, last_row):
            for channel in range(first_channel, last_channel):
                yield row, channel
