import pytest

from domain.models import NOTE_MAX, ModCommand
from tracker.pattern_editor import PatternEditor


@pytest.fixture()
def editor(document, history) -> PatternEditor:
    return PatternEditor(document, history.patterns)


def _grid(document, pattern):
    return [list(row) for row in document.pattern(pattern).rows]


def test_write_cell_records_history(document, editor):
    updated = editor.write_cell(0, 3, 2, note=60, volume=40)

    assert updated.note == 60
    assert updated.volume == 40
    assert updated.instrument == 1
    assert document.pattern(0).cell(3, 2) == updated
    assert editor.history.get_undo_label() == "Note Entry (Pat 0 Row 3 Chn 3)"

    editor.history.undo()
    assert document.pattern(0).cell(3, 2).note == 1 + (3 + 2) % 96


def test_write_cell_rejects_out_of_range_positions(editor):
    with pytest.raises(IndexError):
        editor.write_cell(0, 16, 0, note=60)
    with pytest.raises(IndexError):
        editor.write_cell(0, 0, 4, note=60)
    with pytest.raises(KeyError):
        editor.write_cell(9, 0, 0, note=60)
    assert not editor.history.can_undo()


def test_clear_region_is_undoable(document, editor):
    before = _grid(document, 1)

    cleared = editor.clear_region(1, 14, 2, 8, 8)

    assert cleared == 4
    assert document.pattern(1).cell(15, 3).is_empty
    editor.history.undo()
    assert _grid(document, 1) == before


def test_transpose_region_clamps_and_skips_empty_cells(document, editor):
    pattern = document.pattern(0)
    pattern.set_cell(0, 0, ModCommand(note=NOTE_MAX - 1))
    pattern.set_cell(1, 0, ModCommand())

    touched = editor.transpose_region(0, 0, 0, 3, 1, 12)

    assert touched == [(0, 0), (2, 0)]
    assert pattern.cell(0, 0).note == NOTE_MAX
    assert pattern.cell(1, 0).is_empty
    assert pattern.cell(2, 0).note == 1 + 2 + 12


def test_resize_and_delete_pattern_are_undoable(document, editor):
    before = _grid(document, 0)
    editor.resize_pattern(0, 4)
    assert document.pattern(0).num_rows == 4

    editor.delete_pattern(1)
    assert not document.is_valid_pattern(1)

    assert editor.history.undo() == 1
    assert document.is_valid_pattern(1)
    assert editor.history.undo() == 0
    assert _grid(document, 0) == before


def test_batch_links_steps_into_one_undo(document, editor):
    before = (_grid(document, 0), _grid(document, 1))

    with editor.batch("Paste Across"):
        editor.write_cell(0, 0, 0, note=24)
        editor.write_cell(1, 5, 1, note=36)
        editor.clear_region(0, 8, 0, 2, 4)

    stack = editor.history.undo_stack
    assert [step.link_to_previous for step in stack] == [False, True, True]
    assert {step.label for step in stack} == {"Paste Across"}
    assert editor.history.get_undo_label() == "Paste Across (Multiple Patterns)"

    editor.history.undo()
    assert (_grid(document, 0), _grid(document, 1)) == before
    assert not editor.history.can_undo()


def test_batch_cannot_be_nested(editor):
    with editor.batch("Outer"):
        with pytest.raises(RuntimeError):
            with editor.batch("Inner"):
                pass


def test_steps_after_batch_are_not_linked(editor):
    with editor.batch():
        editor.write_cell(0, 0, 0, note=24)
    editor.write_cell(0, 1, 0, note=25)

    assert [step.link_to_previous for step in editor.history.undo_stack] == [False, False]
    assert editor.history.undo_stack[0].label == "Batch"


def test_remove_channel_round_trips_through_history(document, editor):
    document.channels[3].name = "Hats"
    before = (_grid(document, 0), _grid(document, 1))

    editor.remove_channel(1)

    assert document.num_channels == 3
    assert document.pattern(0).num_channels == 3
    assert document.channels[2].name == "Hats"
    assert all(step.channel_info is not None for step in editor.history.undo_stack)

    editor.history.undo()

    assert document.num_channels == 4
    assert document.channels[3].name == "Hats"
    assert (_grid(document, 0), _grid(document, 1)) == before

    editor.history.redo()
    assert document.num_channels == 3
    assert document.channels[2].name == "Hats"


def test_remove_channel_validates_index(document, editor):
    with pytest.raises(IndexError):
        editor.remove_channel(4)
    document.rearrange_channels([0])
    with pytest.raises(ValueError):
        editor.remove_channel(0)
