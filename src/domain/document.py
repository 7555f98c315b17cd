"""In-memory module document owning the live patterns, samples and instruments."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .models import (
    MAX_CHANNELS,
    MAX_INSTRUMENTS,
    MAX_PATTERNS,
    MAX_SAMPLES,
    ChannelSettings,
    Instrument,
    Pattern,
    Sample,
)


@dataclass(frozen=True)
class UpdateHint:
    """Notification payload sent to views after a document change."""

    kind: str
    object_id: int | None = None


ViewListener = Callable[[UpdateHint], None]


class ModuleDocument:
    """Tracker module with a fixed channel layout and slot-addressed tables.

    Patterns are addressed 0-based; samples and instruments 1-based with slot
    ``0`` reserved for "nothing". Every sample slot below :data:`MAX_SAMPLES`
    is addressable and reads as an empty sample until data is loaded.
    """

    def __init__(self, *, num_channels: int = 4) -> None:
        if not 1 <= num_channels <= MAX_CHANNELS:
            raise ValueError(f"num_channels must be between 1 and {MAX_CHANNELS}")
        self.channels: List[ChannelSettings] = [ChannelSettings() for _ in range(num_channels)]
        self.channel_mute_state: List[bool] = [False] * num_channels
        self._patterns: Dict[int, Pattern] = {}
        self._samples: Dict[int, Sample] = {}
        self._instruments: Dict[int, Instrument] = {}
        self._listeners: List[ViewListener] = []
        self.modified = False

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------
    @property
    def num_channels(self) -> int:
        return len(self.channels)

    def rearrange_channels(self, order: Sequence[Optional[int]]) -> None:
        """Reorder, drop or add channels.

        ``order[i]`` names the old channel that becomes channel ``i``; ``None``
        creates a fresh channel with default settings and empty cells.
        """

        if not 1 <= len(order) <= MAX_CHANNELS:
            raise ValueError(f"Channel count must be between 1 and {MAX_CHANNELS}")
        old_channels = self.channels
        for source in order:
            if source is not None and not 0 <= source < len(old_channels):
                raise IndexError(f"Channel {source} out of range")
        self.channels = [
            old_channels[source].model_copy() if source is not None else ChannelSettings() for source in order
        ]
        self.channel_mute_state = [settings.muted for settings in self.channels]
        for pattern in self._patterns.values():
            pattern.rearrange_channels(list(order))

    def update_channel_mute_status(self, channel: int) -> None:
        """Refresh the derived playback mute flag from the channel header."""

        self.channel_mute_state[channel] = self.channels[channel].muted

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------
    @property
    def patterns(self) -> Dict[int, Pattern]:
        return dict(self._patterns)

    def is_valid_pattern(self, index: int | None) -> bool:
        return index is not None and index in self._patterns

    def pattern(self, index: int) -> Pattern:
        try:
            return self._patterns[index]
        except KeyError as exc:
            raise KeyError(f"Pattern {index} does not exist") from exc

    def insert_pattern(self, index: int, num_rows: int, *, name: str = "") -> Pattern:
        """Create an empty pattern in a free slot."""

        if not 0 <= index < MAX_PATTERNS:
            raise IndexError(f"Pattern index {index} out of range")
        if index in self._patterns:
            raise ValueError(f"Pattern {index} already exists")
        pattern = Pattern.empty(num_rows, self.num_channels, name=name)
        self._patterns[index] = pattern
        return pattern

    def remove_pattern(self, index: int) -> None:
        self._patterns.pop(index, None)

    def resize_pattern(self, index: int, num_rows: int) -> None:
        self.pattern(index).resize(num_rows)

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------
    @property
    def num_samples(self) -> int:
        """Highest slot holding a named or non-empty sample."""

        used = [slot for slot, sample in self._samples.items() if sample.name or sample.header.length]
        return max(used, default=0)

    def sample(self, slot: int) -> Sample:
        if not 0 < slot < MAX_SAMPLES:
            raise IndexError(f"Sample slot {slot} out of range")
        if slot not in self._samples:
            self._samples[slot] = Sample()
        return self._samples[slot]

    def set_sample(self, slot: int, sample: Sample) -> None:
        if not 0 < slot < MAX_SAMPLES:
            raise IndexError(f"Sample slot {slot} out of range")
        self._samples[slot] = sample

    def replace_sample_data(self, slot: int, data: np.ndarray | None, length: int) -> None:
        """Swap in a new waveform buffer and keep the header length in sync."""

        sample = self.sample(slot)
        if data is not None and int(data.shape[0]) != length:
            raise ValueError(f"Buffer holds {data.shape[0]} frames, expected {length}")
        sample.data = data
        sample.header.length = length if data is not None else 0

    # ------------------------------------------------------------------
    # Instruments
    # ------------------------------------------------------------------
    @property
    def num_instruments(self) -> int:
        return max(self._instruments, default=0)

    def instrument(self, slot: int) -> Instrument | None:
        return self._instruments.get(slot)

    def set_instrument(self, slot: int, instrument: Instrument | None) -> None:
        if not 0 < slot < MAX_INSTRUMENTS:
            raise IndexError(f"Instrument slot {slot} out of range")
        if instrument is None:
            self._instruments.pop(slot, None)
        else:
            self._instruments[slot] = instrument

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def update_all_views(self, hint: UpdateHint) -> None:
        for listener in list(self._listeners):
            listener(hint)

    def set_modified(self) -> None:
        self.modified = True
