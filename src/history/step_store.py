"""Raw containers for undo and redo stacks."""
from __future__ import annotations

from typing import Dict, Generic, Iterator, List, Protocol, TypeVar

from .errors import InvalidReferenceError


class LabelledStep(Protocol):
    label: str


T = TypeVar("T", bound=LabelledStep)


class StepStore(Generic[T]):
    """Insertion-ordered stack of history steps (oldest at index 0).

    The store never enforces a capacity itself; managers trim it by depth or,
    for samples, by the global byte budget.
    """

    def __init__(self) -> None:
        self._steps: List[T] = []

    def push(self, step: T) -> None:
        self._steps.append(step)

    def pop_newest(self) -> T | None:
        if not self._steps:
            return None
        return self._steps.pop()

    def peek_newest(self) -> T | None:
        if not self._steps:
            return None
        return self._steps[-1]

    def peek_newest_label(self) -> str | None:
        step = self.peek_newest()
        return step.label if step is not None else None

    def evict_oldest(self, count: int = 1) -> List[T]:
        """Drop up to *count* of the oldest steps and return them."""

        count = max(0, min(count, len(self._steps)))
        evicted = self._steps[:count]
        del self._steps[:count]
        return evicted

    def trim_to(self, depth: int) -> List[T]:
        """Evict oldest steps until at most *depth* remain."""

        return self.evict_oldest(len(self._steps) - max(depth, 0))

    def clear(self) -> List[T]:
        evicted = self._steps
        self._steps = []
        return evicted

    @property
    def is_empty(self) -> bool:
        return not self._steps

    @property
    def depth(self) -> int:
        return len(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._steps))

    def __getitem__(self, index: int) -> T:
        return self._steps[index]

    def __bool__(self) -> bool:  # pragma: no cover - trivial container hook
        return bool(self._steps)


class HistoryTable(Generic[T]):
    """Per-object stacks for one direction of one domain.

    Slots are 1-based and capped at ``max_slots`` (exclusive) up front; stores
    are created lazily the first time a slot records a step.
    """

    def __init__(self, max_slots: int) -> None:
        self.max_slots = max_slots
        self._stores: Dict[int, StepStore[T]] = {}

    def is_valid_slot(self, slot: int) -> bool:
        return 0 < slot < self.max_slots

    def get(self, slot: int) -> StepStore[T] | None:
        return self._stores.get(slot)

    def store(self, slot: int) -> StepStore[T]:
        """Return the stack for *slot*, creating it on first use."""

        if not self.is_valid_slot(slot):
            raise InvalidReferenceError(f"Slot {slot} outside 1..{self.max_slots - 1}")
        if slot not in self._stores:
            self._stores[slot] = StepStore()
        return self._stores[slot]

    def depth(self, slot: int) -> int:
        store = self._stores.get(slot)
        return store.depth if store is not None else 0

    def newest(self, slot: int) -> T | None:
        store = self._stores.get(slot)
        return store.peek_newest() if store is not None else None

    def slots(self) -> List[int]:
        """Slots currently holding at least one step, ascending."""

        return sorted(slot for slot, store in self._stores.items() if not store.is_empty)

    def clear(self, slot: int) -> List[T]:
        store = self._stores.pop(slot, None)
        return store.clear() if store is not None else []

    def clear_all(self) -> None:
        for slot in list(self._stores):
            self.clear(slot)

    def detach_all(self) -> Dict[int, StepStore[T]]:
        """Hand over every non-empty store and leave the table empty."""

        stores = {slot: store for slot, store in self._stores.items() if not store.is_empty}
        self._stores = {}
        return stores

    def attach(self, slot: int, store: StepStore[T]) -> None:
        if not self.is_valid_slot(slot):
            raise InvalidReferenceError(f"Slot {slot} outside 1..{self.max_slots - 1}")
        self._stores[slot] = store

    def steps(self) -> Iterator[T]:
        for slot in self.slots():
            yield from self._stores[slot]
