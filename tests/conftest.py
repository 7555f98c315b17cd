import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from domain.document import ModuleDocument  # noqa: E402
from domain.models import Envelope, EnvelopePoint, Instrument, ModCommand, Sample  # noqa: E402
from history.manager import DocumentHistory  # noqa: E402
from history.settings import HistorySettings  # noqa: E402


@pytest.fixture()
def settings() -> HistorySettings:
    return HistorySettings(max_undo_level=100, sample_undo_buffer_bytes=1024 * 1024)


@pytest.fixture()
def document() -> ModuleDocument:
    document = ModuleDocument(num_channels=4)
    for index in range(2):
        pattern = document.insert_pattern(index, 16, name=f"Pattern {index}")
        for row in range(16):
            for channel in range(4):
                pattern.set_cell(row, channel, ModCommand(note=1 + (row + channel + index) % 96, instrument=1))
    waveform = (np.arange(64, dtype=np.int16) * 100 - 3200).astype(np.int16)
    document.set_sample(1, Sample.from_array(waveform, name="Kick"))
    stereo = np.stack([np.arange(32, dtype=np.int8), -np.arange(32, dtype=np.int8)], axis=1)
    document.set_sample(2, Sample.from_array(stereo, name="Pad"))
    instrument = Instrument(
        name="Lead",
        volume_envelope=Envelope(points=[EnvelopePoint(tick=0, value=64), EnvelopePoint(tick=10, value=0)]),
    )
    instrument.keyboard[:] = [1] * len(instrument.keyboard)
    document.set_instrument(1, instrument)
    return document


@pytest.fixture()
def history(document: ModuleDocument, settings: HistorySettings) -> DocumentHistory:
    return DocumentHistory(document, settings)
