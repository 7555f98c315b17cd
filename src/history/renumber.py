"""Keep stored object references consistent when the editor renumbers objects.

Rearrangement tables follow the editor convention ``new_index[old] = new``;
index ``0`` of a slot-based table is unused and a target of ``0`` means the
object was removed.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .step_store import HistoryTable, StepStore

logger = logging.getLogger(__name__)


def rearrange_slots(table: HistoryTable, new_index: Sequence[int], num_objects: int) -> int:
    """Move every slot's stack to its new slot; clear stacks left without a target.

    Returns the number of steps discarded.
    """

    discarded = 0
    for old, store in sorted(table.detach_all().items()):
        target = new_index[old] if old < len(new_index) else 0
        if 0 < target <= num_objects and table.is_valid_slot(target):
            table.attach(target, store)
        else:
            discarded += len(store.clear())
    if discarded:
        logger.debug("Discarded %d history steps for removed slots", discarded)
    return discarded


def remap_pattern_targets(stores: Iterable[StepStore], new_index: Sequence[int]) -> None:
    """Rewrite each step's target pattern; ids beyond the table are kept as-is."""

    for store in stores:
        for step in store:
            if step.pattern < len(new_index):
                step.pattern = new_index[step.pattern]


def remap_sample_references(keyboard: Sequence[int], new_index: Sequence[int]) -> List[int]:
    """Translate keyboard sample references; unknown references become 0."""

    return [new_index[slot] if slot < len(new_index) else 0 for slot in keyboard]
