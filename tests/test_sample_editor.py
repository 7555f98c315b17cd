import numpy as np
import pytest

from tracker.sample_editor import SampleEditor


@pytest.fixture()
def editor(document, history) -> SampleEditor:
    return SampleEditor(document, history.samples)


def test_commands_default_to_whole_sample(document, history, editor):
    assert editor.reverse(1)

    step = history.samples.undo_steps(1)[-1]
    assert (step.start, step.end) == (0, 64)
    assert document.sample(1).data[0] == 63 * 100 - 3200


def test_selection_outside_sample_raises(editor, history):
    with pytest.raises(IndexError):
        editor.invert(1, 10, 65)
    with pytest.raises(IndexError):
        editor.insert_silence(1, 65, 4)
    assert not history.samples.can_undo(1)


def test_edits_still_apply_when_undo_is_refused(document, history, editor, settings):
    settings.sample_undo_buffer_bytes = 16

    recorded = editor.silence(1, 0, 32)

    assert recorded is False
    assert not document.sample(1).data[:32].any()


def test_replace_data_marks_sample_modified_and_loaded_from_memory(document, editor):
    sample = document.sample(2)
    sample.header.keep_on_disk = True

    editor.replace_data(2, np.ones(5, dtype=np.int16), name="Fresh")

    assert sample.name == "Fresh"
    assert sample.header.modified is True
    assert sample.header.keep_on_disk is False
    assert sample.header.channels == 1


def test_set_loop_validates_and_records(document, history, editor):
    with pytest.raises(ValueError):
        editor.set_loop(1, 10, 100)

    assert editor.set_loop(1, 10, 20, enabled=False)

    header = document.sample(1).header
    assert (header.loop_start, header.loop_end, header.loop_enabled) == (10, 20, False)
    assert history.samples.get_undo_label(1) == "Set Loop"


def test_edit_sequence_unwinds_completely(document, history, editor):
    original = document.sample(1).data.copy()
    editor.insert_silence(1, 0, 16)
    editor.reverse(1, 0, 80)
    editor.delete_range(1, 40, 60)
    editor.invert(1, 5, 30)
    editor.silence(1, 0, 10)

    while history.samples.can_undo(1):
        assert history.samples.undo(1)

    np.testing.assert_array_equal(document.sample(1).data, original)
    assert document.sample(1).header.length == 64
