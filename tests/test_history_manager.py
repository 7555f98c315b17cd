import pytest
from pydantic import ValidationError

from history import DocumentHistory, HistorySettings, SampleChange
from history.settings import DEFAULT_MAX_UNDO_LEVEL, DEFAULT_SAMPLE_UNDO_BUFFER_BYTES


def test_default_settings():
    settings = HistorySettings()

    assert settings.max_undo_level == DEFAULT_MAX_UNDO_LEVEL
    assert settings.sample_undo_buffer_bytes == DEFAULT_SAMPLE_UNDO_BUFFER_BYTES
    assert settings.sample_undo_enabled


@pytest.mark.parametrize(
    "field, value",
    [("max_undo_level", 0), ("max_undo_level", -5), ("sample_undo_buffer_bytes", -1)],
)
def test_settings_reject_invalid_values(field, value):
    settings = HistorySettings()
    with pytest.raises(ValidationError):
        setattr(settings, field, value)
    with pytest.raises(ValidationError):
        HistorySettings(**{field: value})


def test_settings_from_mapping_accepts_mebibytes_and_ignores_unknown_keys():
    settings = HistorySettings.from_mapping(
        {"max_undo_level": 12, "sample_undo_buffer_mib": 1.5, "theme": "dark"}
    )

    assert settings.max_undo_level == 12
    assert settings.sample_undo_buffer_bytes == 1536 * 1024


def test_settings_from_mapping_prefers_bytes():
    settings = HistorySettings.from_mapping({"sample_undo_buffer_bytes": 0, "sample_undo_buffer_mib": 8})

    assert settings.sample_undo_buffer_bytes == 0
    assert not settings.sample_undo_enabled


def test_document_history_shares_settings(document):
    settings = HistorySettings(max_undo_level=3)
    history = DocumentHistory(document, settings)

    settings.max_undo_level = 1
    for index in range(3):
        history.patterns.prepare_undo(0, 0, index, 1, 1, f"p{index}")
        history.samples.prepare_undo(1, SampleChange.NONE, f"s{index}")
        history.instruments.prepare_undo(1, f"i{index}")

    assert [step.label for step in history.patterns.undo_stack] == ["p2"]
    assert [step.label for step in history.samples.undo_steps(1)] == ["s2"]
    assert [step.label for step in history.instruments.undo_steps(1)] == ["i2"]


def test_clear_all_empties_every_history(history):
    history.patterns.prepare_undo(0, 0, 0, 1, 1, "Edit")
    history.samples.prepare_undo(1, SampleChange.UPDATE, "Silence", 0, 8)
    history.instruments.prepare_undo(1, "Rename")

    history.clear_all()

    assert not history.patterns.can_undo()
    assert not history.samples.can_undo(1)
    assert not history.instruments.can_undo(1)
    assert history.samples.buffer_bytes() == 0


def test_rearrange_samples_updates_sample_and_keyboard_history(history):
    history.instruments.prepare_undo(1, "Map Keyboard")
    history.samples.prepare_undo(1, SampleChange.NONE, "Rename")

    history.rearrange_samples([0, 2, 1])

    assert set(history.instruments.undo_steps(1)[-1].instrument.keyboard) == {2}
    assert [step.label for step in history.samples.undo_steps(2)] == ["Rename"]
    assert history.samples.undo_steps(1) == []


def test_rearrange_patterns_and_instruments_delegate(document, history):
    document.set_instrument(2, document.instrument(1).model_copy(deep=True))
    history.patterns.prepare_undo(1, 0, 0, 1, 1, "Edit")
    history.instruments.prepare_undo(1, "Rename")

    history.rearrange_patterns([0, 0])
    history.rearrange_instruments([0, 2, 1])

    assert history.patterns.undo_stack[-1].pattern == 0
    assert history.instruments.get_undo_label(2) == "Rename"
    assert not history.instruments.can_undo(1)
