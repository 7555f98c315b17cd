import numpy as np
import pytest

from domain.models import Sample
from history.budget import SampleUndoBudget
from history.sample_history import SampleChange, SampleHistory
from history.settings import HistorySettings


def _history(document, budget_bytes: int) -> tuple[SampleHistory, HistorySettings]:
    settings = HistorySettings(sample_undo_buffer_bytes=budget_bytes)
    return SampleHistory(document, settings), settings


def _update(samples: SampleHistory, slot: int, label: str, frames: int = 10) -> bool:
    return samples.prepare_undo(slot, SampleChange.UPDATE, label, 0, frames)


def _labels(steps):
    return [step.label for step in steps]


def test_held_bytes_never_exceed_budget(document):
    samples, _ = _history(document, 100)

    for index in range(10):
        assert _update(samples, 1, f"u{index}")
        assert samples.buffer_bytes() <= 100

    assert samples.buffer_bytes() == 100
    assert _labels(samples.undo_steps(1)) == [f"u{index}" for index in range(5, 10)]
    assert samples.budget.evicted_steps == 5
    assert samples.budget.evicted_bytes == 100


def test_eviction_visits_slots_round_robin(document):
    samples, _ = _history(document, 120)
    for index in range(3):
        _update(samples, 1, f"a{index}")  # 10 int16 mono frames: 20 bytes
        _update(samples, 2, f"b{index}")  # 10 int8 stereo frames: 20 bytes
    assert samples.buffer_bytes() == 120

    assert _update(samples, 1, "a-big", frames=20)

    assert _labels(samples.undo_steps(1)) == ["a1", "a2", "a-big"]
    assert _labels(samples.undo_steps(2)) == ["b1", "b2"]
    assert samples.buffer_bytes() == 120


def test_slots_without_payload_are_left_alone(document):
    samples, _ = _history(document, 60)
    for index in range(3):
        samples.prepare_undo(2, SampleChange.NONE, f"rename{index}")
        samples.prepare_undo(2, SampleChange.INVERT, f"invert{index}", 0, 8)
    for index in range(3):
        _update(samples, 1, f"u{index}")

    _update(samples, 1, "u3")

    assert len(samples.undo_steps(2)) == 6
    assert _labels(samples.undo_steps(1)) == ["u1", "u2", "u3"]


def test_payload_free_steps_older_than_evicted_step_go_with_it(document):
    samples, _ = _history(document, 40)
    samples.prepare_undo(1, SampleChange.NONE, "a")
    _update(samples, 1, "b")
    samples.prepare_undo(1, SampleChange.NONE, "c")

    assert _update(samples, 1, "d", frames=20)

    assert _labels(samples.undo_steps(1)) == ["c", "d"]


def test_payload_larger_than_budget_is_refused(document):
    samples, _ = _history(document, 100)
    _update(samples, 1, "small")

    assert samples.prepare_undo(1, SampleChange.UPDATE, "huge", 0, 64) is False

    assert _labels(samples.undo_steps(1)) == ["small"]
    assert samples.buffer_bytes() == 20


def test_redo_payloads_count_against_budget(document):
    samples, _ = _history(document, 60)
    for index in range(3):
        _update(samples, 1, f"u{index}")

    samples.undo(1)
    assert samples.buffer_bytes() == 60

    _update(samples, 2, "other")

    assert samples.buffer_bytes() <= 60
    assert _labels(samples.undo_steps(1)) == ["u1"]
    assert len(samples.redo_steps(1)) == 1


def test_budget_change_applies_on_next_capture(document):
    samples, settings = _history(document, 1024 * 1024)
    for index in range(5):
        _update(samples, 1, f"u{index}")
    assert samples.buffer_bytes() == 100

    settings.sample_undo_buffer_bytes = 40
    _update(samples, 1, "u5")

    assert samples.buffer_bytes() == 40
    assert _labels(samples.undo_steps(1)) == ["u4", "u5"]


def test_restrict_reports_released_bytes(document):
    samples, settings = _history(document, 1024)
    _update(samples, 1, "u0")
    _update(samples, 2, "u1", frames=4)
    settings.sample_undo_buffer_bytes = 10

    released = samples.budget.restrict()

    assert released == 20
    assert samples.buffer_bytes() == 8
    assert not samples.can_undo(1)


def test_table_bytes_counts_only_payloads(document):
    document.set_sample(3, Sample.from_array(np.zeros(100, dtype=np.int16), name="Long"))
    samples, _ = _history(document, 4096)
    samples.prepare_undo(3, SampleChange.REVERSE, "rev", 0, 100)
    samples.prepare_undo(3, SampleChange.DELETE, "del", 10, 60)

    budget = SampleUndoBudget(samples.settings, [])

    assert budget.held_bytes() == 0
    assert samples.budget.held_bytes() == 100
    assert samples.budget.fits(4096)
    assert not samples.budget.fits(4097)


@pytest.mark.parametrize("budget_bytes", [0, 10, 1024 * 1024])
def test_limit_tracks_settings(budget_bytes):
    settings = HistorySettings(sample_undo_buffer_bytes=budget_bytes)
    assert SampleUndoBudget(settings, []).limit == budget_bytes
