from dataclasses import dataclass

import pytest

from history.errors import InvalidReferenceError
from history.step_store import HistoryTable, StepStore


@dataclass
class _Step:
    label: str


def _filled_store(*labels: str) -> StepStore:
    store = StepStore()
    for label in labels:
        store.push(_Step(label))
    return store


def test_push_and_pop_newest_is_lifo():
    store = _filled_store("a", "b", "c")

    assert store.depth == 3
    assert store.peek_newest_label() == "c"
    assert store.pop_newest().label == "c"
    assert store.pop_newest().label == "b"
    assert [step.label for step in store] == ["a"]


def test_empty_store_returns_none():
    store = StepStore()

    assert store.is_empty
    assert store.pop_newest() is None
    assert store.peek_newest() is None
    assert store.peek_newest_label() is None


def test_evict_oldest_removes_from_the_front():
    store = _filled_store("a", "b", "c", "d")

    evicted = store.evict_oldest(2)

    assert [step.label for step in evicted] == ["a", "b"]
    assert [step.label for step in store] == ["c", "d"]
    assert store.evict_oldest(10) and store.is_empty


def test_trim_to_keeps_newest_steps():
    store = _filled_store("a", "b", "c", "d", "e")

    store.trim_to(2)

    assert [step.label for step in store] == ["d", "e"]
    assert store.trim_to(5) == []


def test_clear_returns_everything():
    store = _filled_store("a", "b")

    cleared = store.clear()

    assert len(cleared) == 2
    assert store.depth == 0


def test_history_table_creates_stores_lazily():
    table = HistoryTable(max_slots=8)

    assert table.get(3) is None
    assert table.depth(3) == 0
    table.store(3).push(_Step("x"))
    table.store(1).push(_Step("y"))

    assert table.slots() == [1, 3]
    assert table.newest(3).label == "x"
    assert [step.label for step in table.steps()] == ["y", "x"]


@pytest.mark.parametrize("slot", [0, 8, 100, -1])
def test_history_table_rejects_out_of_range_slots(slot):
    table = HistoryTable(max_slots=8)

    assert not table.is_valid_slot(slot)
    with pytest.raises(InvalidReferenceError):
        table.store(slot)


def test_history_table_detach_and_attach_moves_stores():
    table = HistoryTable(max_slots=8)
    table.store(2).push(_Step("moved"))
    table.store(4)

    detached = table.detach_all()

    assert list(detached) == [2]
    assert table.slots() == []
    table.attach(5, detached[2])
    assert table.newest(5).label == "moved"


def test_history_table_clear_slot_and_all():
    table = HistoryTable(max_slots=8)
    table.store(1).push(_Step("a"))
    table.store(2).push(_Step("b"))

    assert [step.label for step in table.clear(1)] == ["a"]
    assert table.slots() == [2]
    table.clear_all()
    assert table.slots() == []
