"""Global byte budget for raw sample payloads held by undo and redo stacks."""
from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .settings import HistorySettings
from .step_store import HistoryTable

logger = logging.getLogger(__name__)


class PayloadStep(Protocol):
    label: str

    @property
    def has_payload(self) -> bool: ...

    @property
    def nbytes(self) -> int: ...


def table_bytes(table: HistoryTable) -> int:
    """Bytes held by every payload-carrying step in *table*."""

    return sum(step.nbytes for step in table.steps() if step.has_payload)


class SampleUndoBudget:
    """Enforce one byte budget across every slot of several history tables.

    Eviction works oldest-first but spreads the pressure: each pass visits the
    slots in order (undo table first, then redo) and removes only the oldest
    payload-carrying step of each slot, together with any payload-free steps
    older than it, before moving on to the next slot. Slots holding no payload
    are never touched.
    """

    def __init__(self, settings: HistorySettings, tables: Sequence[HistoryTable]) -> None:
        self._settings = settings
        self._tables = tuple(tables)
        self.evicted_steps = 0
        self.evicted_bytes = 0

    @property
    def limit(self) -> int:
        return self._settings.sample_undo_buffer_bytes

    def held_bytes(self) -> int:
        return sum(table_bytes(table) for table in self._tables)

    def fits(self, incoming: int) -> bool:
        """Whether a payload of *incoming* bytes could ever be held."""

        return incoming <= self.limit

    def restrict(self, incoming: int = 0) -> int:
        """Evict until the held bytes plus *incoming* fit the budget.

        Returns the number of bytes released. Stops early if nothing evictable
        remains.
        """

        limit = self.limit
        held = self.held_bytes()
        released = 0
        while held + incoming > limit:
            progressed = False
            for table in self._tables:
                for slot in table.slots():
                    if held + incoming <= limit:
                        break
                    freed = self._evict_oldest_payload(table, slot)
                    if freed is None:
                        continue
                    held -= freed
                    released += freed
                    progressed = True
            if not progressed:
                break
        if released:
            self.evicted_bytes += released
            logger.debug(
                "Sample undo buffer trimmed by %d bytes, now holding %d of %d",
                released,
                held,
                limit,
            )
        return released

    def _evict_oldest_payload(self, table: HistoryTable, slot: int) -> int | None:
        store = table.get(slot)
        if store is None:
            return None
        for position, step in enumerate(store):
            if step.has_payload:
                evicted = store.evict_oldest(position + 1)
                self.evicted_steps += len(evicted)
                if store.is_empty:
                    table.clear(slot)
                return sum(item.nbytes for item in evicted if item.has_payload)
        return None
