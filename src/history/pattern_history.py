"""Undo/redo of rectangular pattern-grid edits.

A single document-wide pair of stacks holds steps for every pattern. Each
step is a snapshot of a region of one pattern (optionally with the channel
headers), so undo and redo are the same operation: snapshot the live region
onto the opposite stack, then write the stored region back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from domain.document import ModuleDocument, UpdateHint
from domain.models import MAX_PATTERNS, ChannelSettings, ModCommand

from .errors import HistoryError, InvalidReferenceError, InvalidRegionError
from .renumber import remap_pattern_targets
from .settings import HistorySettings
from .step_store import StepStore

logger = logging.getLogger(__name__)


@dataclass
class PatternUndoStep:
    """Snapshot of a pattern region, row-major, ``num_channels`` cells per row."""

    pattern: int
    num_pattern_rows: int
    first_channel: int
    first_row: int
    num_channels: int
    num_rows: int
    cells: List[ModCommand]
    label: str
    link_to_previous: bool = False
    channel_info: List[ChannelSettings] | None = field(default=None)

    @property
    def num_stored_channels(self) -> int:
        return len(self.channel_info) if self.channel_info is not None else 0

    def describe(self) -> str:
        if self.link_to_previous:
            return f"{self.label} (Multiple Patterns)"
        return f"{self.label} (Pat {self.pattern} Row {self.first_row} Chn {self.first_channel + 1})"


class PatternHistory:
    """Undo and redo stacks for pattern edits across the whole document."""

    def __init__(self, document: ModuleDocument, settings: HistorySettings | None = None) -> None:
        self._document = document
        self._settings = settings or HistorySettings()
        self._undo: StepStore[PatternUndoStep] = StepStore()
        self._redo: StepStore[PatternUndoStep] = StepStore()

    @property
    def undo_stack(self) -> List[PatternUndoStep]:
        """Return the pending undo steps (most recent last)."""

        return list(self._undo)

    @property
    def redo_stack(self) -> List[PatternUndoStep]:
        """Return the pending redo steps (most recent last)."""

        return list(self._redo)

    def clear_all(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def clear(self, pattern: int) -> None:
        """Drop every step targeting *pattern* from both stacks.

        When the first step of a linked group is dropped, the next surviving
        step of that group starts a new group.
        """

        for store in (self._undo, self._redo):
            unlink = False
            for step in store.clear():
                if step.pattern == pattern:
                    unlink = unlink or not step.link_to_previous
                    continue
                if unlink:
                    step.link_to_previous = False
                    unlink = False
                store.push(step)

    def can_undo(self) -> bool:
        return not self._undo.is_empty

    def can_redo(self) -> bool:
        return not self._redo.is_empty

    def get_undo_label(self) -> str:
        step = self._undo.peek_newest()
        return step.describe() if step is not None else ""

    def get_redo_label(self) -> str:
        step = self._redo.peek_newest()
        return step.describe() if step is not None else ""

    def prepare_undo(
        self,
        pattern: int,
        first_channel: int,
        first_row: int,
        num_channels: int,
        num_rows: int,
        label: str,
        *,
        link_to_previous: bool = False,
        store_channel_info: bool = False,
    ) -> bool:
        """Snapshot a region before it is edited.

        ``link_to_previous`` joins this step to the previous one so a single
        undo reverts both; use it for commands touching several patterns.
        ``store_channel_info`` also records every channel header, for
        commands that add, remove or reconfigure channels.
        """

        if self.prepare_buffer(
            self._undo,
            pattern,
            first_channel,
            first_row,
            num_channels,
            num_rows,
            label,
            link_to_previous=link_to_previous,
            store_channel_info=store_channel_info,
        ):
            self._redo.clear()
            return True
        return False

    def prepare_buffer(
        self,
        store: StepStore[PatternUndoStep],
        pattern: int,
        first_channel: int,
        first_row: int,
        num_channels: int,
        num_rows: int,
        label: str,
        *,
        link_to_previous: bool = False,
        store_channel_info: bool = False,
    ) -> bool:
        """Capture a step onto *store* without touching the other direction."""

        try:
            step = self._capture(
                pattern,
                first_channel,
                first_row,
                num_channels,
                num_rows,
                label,
                link_to_previous,
                store_channel_info,
            )
        except HistoryError as exc:
            logger.debug("Pattern undo point refused: %s", exc)
            return False

        store.trim_to(self._settings.max_undo_level - 1)
        store.push(step)
        self._document.update_all_views(UpdateHint("undo", pattern))
        return True

    def undo(self) -> int | None:
        """Revert the newest step (and any steps linked to it).

        Returns the pattern of the last step consumed, or ``None`` when the
        stack was empty.
        """

        return self._transfer(self._undo, self._redo)

    def redo(self) -> int | None:
        """Reapply the newest undone step (and any steps linked to it)."""

        return self._transfer(self._redo, self._undo)

    def remove_last_undo_step(self) -> None:
        """Forget the newest undo step without creating a redo step."""

        self._undo.pop_newest()

    def rearrange_patterns(self, new_index: Sequence[int]) -> None:
        """Follow pattern renumbering: ``new_index[old]`` is the new id."""

        remap_pattern_targets((self._undo, self._redo), new_index)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _capture(
        self,
        pattern: int,
        first_channel: int,
        first_row: int,
        num_channels: int,
        num_rows: int,
        label: str,
        link_to_previous: bool,
        store_channel_info: bool,
    ) -> PatternUndoStep:
        document = self._document
        if not document.is_valid_pattern(pattern):
            raise InvalidReferenceError(f"Pattern {pattern} does not exist")
        source = document.pattern(pattern)
        total_rows = source.num_rows
        total_channels = document.num_channels
        if num_channels < 1 or num_rows < 1:
            raise InvalidRegionError(f"Degenerate region {num_channels}x{num_rows}")
        if first_row < 0 or first_row >= total_rows or first_channel < 0 or first_channel >= total_channels:
            raise InvalidRegionError(f"Region origin row {first_row} channel {first_channel} out of bounds")
        num_rows = min(num_rows, total_rows - first_row)
        num_channels = min(num_channels, total_channels - first_channel)

        cells: List[ModCommand] = []
        for row in source.rows[first_row:first_row + num_rows]:
            cells.extend(row[first_channel:first_channel + num_channels])

        channel_info = None
        if store_channel_info:
            channel_info = [settings.model_copy() for settings in document.channels]

        return PatternUndoStep(
            pattern=pattern,
            num_pattern_rows=total_rows,
            first_channel=first_channel,
            first_row=first_row,
            num_channels=num_channels,
            num_rows=num_rows,
            cells=cells,
            label=label,
            link_to_previous=link_to_previous,
            channel_info=channel_info,
        )

    def _transfer(
        self,
        source: StepStore[PatternUndoStep],
        target: StepStore[PatternUndoStep],
    ) -> int | None:
        # Linked steps are replayed in a loop; every inverse step after the
        # first is itself linked so the group stays one unit on the other side.
        restored: int | None = None
        linked_from_previous = False
        while not source.is_empty:
            step = source.peek_newest()
            if not 0 <= step.pattern < MAX_PATTERNS:
                logger.warning("Dropping undo step for unrecoverable pattern %s", step.pattern)
                source.pop_newest()
                break

            self.prepare_buffer(
                target,
                step.pattern,
                step.first_channel,
                step.first_row,
                step.num_channels,
                step.num_rows,
                step.label,
                link_to_previous=linked_from_previous,
                store_channel_info=step.channel_info is not None,
            )
            self._restore(step)
            restored = step.pattern

            source.pop_newest()
            self._document.update_all_views(UpdateHint("undo", step.pattern))
            self._document.set_modified()

            if not step.link_to_previous:
                break
            linked_from_previous = True
        return restored

    def _restore(self, step: PatternUndoStep) -> bool:
        document = self._document
        if step.channel_info is not None:
            stored = step.num_stored_channels
            if stored != document.num_channels:
                keep = min(stored, document.num_channels)
                document.rearrange_channels([index if index < keep else None for index in range(stored)])
            document.channels = [settings.model_copy() for settings in step.channel_info]
            for channel in range(document.num_channels):
                document.update_channel_mute_status(channel)

        if step.first_channel + step.num_channels > document.num_channels:
            logger.warning(
                "Pattern %d undo region no longer fits %d channels",
                step.pattern,
                document.num_channels,
            )
            return False

        if not document.is_valid_pattern(step.pattern):
            document.insert_pattern(step.pattern, step.num_pattern_rows)
        elif document.pattern(step.pattern).num_rows != step.num_pattern_rows:
            document.resize_pattern(step.pattern, step.num_pattern_rows)

        pattern = document.pattern(step.pattern)
        rows = min(step.num_rows, pattern.num_rows - step.first_row)
        width = step.num_channels
        for offset in range(rows):
            row = pattern.rows[step.first_row + offset]
            row[step.first_channel:step.first_channel + width] = step.cells[offset * width:(offset + 1) * width]
        logger.debug("Restored %dx%d cells in pattern %d", width, rows, step.pattern)
        return True
