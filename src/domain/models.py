"""Pydantic-powered domain models for tracker module documents.

These models describe the live objects an editor mutates: pattern grids made
of :class:`ModCommand` cells, per-channel mixing headers, sample headers with
their numpy waveforms, and instruments with envelopes and a keyboard map.
The history package snapshots and restores them, so every model here is cheap
to copy and compares by value.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_PATTERNS = 4000
MAX_SAMPLES = 4000
MAX_INSTRUMENTS = 256
MAX_CHANNELS = 127
NOTE_MAX = 120


class ModCommand(BaseModel):
    """Single tracker grid cell. Immutable, so snapshots may share instances."""

    model_config = ConfigDict(frozen=True)

    note: int = Field(0, ge=0, le=255, description="0 = empty, 1..120 notes, >120 special")
    instrument: int = Field(0, ge=0, le=MAX_INSTRUMENTS)
    volume_command: int = Field(0, ge=0)
    volume: int = Field(0, ge=0)
    command: int = Field(0, ge=0)
    param: int = Field(0, ge=0, le=255)

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_CELL


EMPTY_CELL = ModCommand()


class ChannelSettings(BaseModel):
    """Per-channel mixing header (initial volume, pan and mute state)."""

    name: str = ""
    volume: int = Field(64, ge=0, le=64)
    panning: int = Field(128, ge=0, le=256)
    muted: bool = False
    surround: bool = False


class Pattern(BaseModel):
    """Row-major grid of cells; every row is as wide as the document's channel count."""

    name: str = ""
    rows: List[List[ModCommand]] = Field(default_factory=list)

    @classmethod
    def empty(cls, num_rows: int, num_channels: int, *, name: str = "") -> Pattern:
        if num_rows <= 0:
            raise ValueError("Pattern must have at least one row")
        return cls(name=name, rows=[[EMPTY_CELL] * num_channels for _ in range(num_rows)])

    @model_validator(mode="after")
    def validate_row_widths(self) -> Pattern:  # type: ignore[override]
        widths = {len(row) for row in self.rows}
        if len(widths) > 1:
            raise ValueError("Pattern rows must all have the same channel count")
        return self

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_channels(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def cell(self, row: int, channel: int) -> ModCommand:
        return self.rows[row][channel]

    def set_cell(self, row: int, channel: int, cell: ModCommand) -> None:
        self.rows[row][channel] = cell

    def resize(self, num_rows: int) -> None:
        """Grow with empty rows or truncate from the end."""

        if num_rows <= 0:
            raise ValueError("Pattern must have at least one row")
        width = self.num_channels
        if num_rows < self.num_rows:
            del self.rows[num_rows:]
        while self.num_rows < num_rows:
            self.rows.append([EMPTY_CELL] * width)

    def rearrange_channels(self, order: List[Optional[int]]) -> None:
        """Rebuild every row so new column ``i`` holds old column ``order[i]``."""

        self.rows = [
            [row[source] if source is not None and source < len(row) else EMPTY_CELL for source in order]
            for row in self.rows
        ]


class SampleHeader(BaseModel):
    """Everything about a sample except its name and waveform."""

    length: int = Field(0, ge=0, description="Length in sample frames")
    bits_per_sample: int = Field(16, description="8 or 16 bit signed PCM")
    channels: int = Field(1, ge=1, le=2)
    c5_speed: int = Field(8363, gt=0)
    volume: int = Field(256, ge=0, le=256)
    global_volume: int = Field(64, ge=0, le=64)
    panning: int = Field(128, ge=0, le=256)
    loop_start: int = Field(0, ge=0)
    loop_end: int = Field(0, ge=0)
    loop_enabled: bool = False
    sustain_start: int = Field(0, ge=0)
    sustain_end: int = Field(0, ge=0)
    sustain_enabled: bool = False
    modified: bool = False
    keep_on_disk: bool = False

    @model_validator(mode="after")
    def validate_bit_depth(self) -> SampleHeader:  # type: ignore[override]
        if self.bits_per_sample not in (8, 16):
            raise ValueError("bits_per_sample must be 8 or 16")
        return self

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8

    @property
    def bytes_per_frame(self) -> int:
        return self.bytes_per_sample * self.channels

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.int8 if self.bits_per_sample == 8 else np.int16)


class Sample(BaseModel):
    """A sample slot: header, display name and (optionally) waveform data.

    ``data`` has shape ``(length,)`` for mono and ``(length, 2)`` for stereo.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = ""
    header: SampleHeader = Field(default_factory=SampleHeader)
    data: Optional[np.ndarray] = None

    @classmethod
    def from_array(cls, data: np.ndarray, *, name: str = "", **header_fields) -> Sample:
        """Build a sample whose header matches the shape and dtype of *data*."""

        array = np.ascontiguousarray(data)
        if array.dtype not in (np.int8, np.int16):
            raise ValueError("Sample data must be int8 or int16")
        channels = 1 if array.ndim == 1 else int(array.shape[1])
        header = SampleHeader(
            length=int(array.shape[0]),
            bits_per_sample=array.dtype.itemsize * 8,
            channels=channels,
            **header_fields,
        )
        return cls(name=name, header=header, data=array)

    @property
    def has_data(self) -> bool:
        return self.data is not None and self.header.length > 0

    def precompute_loops(self) -> None:
        """Clamp loop and sustain points to the current length."""

        header = self.header
        length = header.length
        header.loop_end = min(header.loop_end, length)
        header.loop_start = min(header.loop_start, header.loop_end)
        if header.loop_start >= header.loop_end:
            header.loop_enabled = False
        header.sustain_end = min(header.sustain_end, length)
        header.sustain_start = min(header.sustain_start, header.sustain_end)
        if header.sustain_start >= header.sustain_end:
            header.sustain_enabled = False


class EnvelopeType(Enum):
    VOLUME = "volume"
    PANNING = "panning"
    PITCH = "pitch"


class EnvelopePoint(BaseModel):
    tick: int = Field(..., ge=0)
    value: int = Field(..., ge=0, le=64)


class Envelope(BaseModel):
    """Breakpoint envelope with optional loop and sustain ranges."""

    points: List[EnvelopePoint] = Field(default_factory=list)
    enabled: bool = False
    loop_enabled: bool = False
    loop_start: int = 0
    loop_end: int = 0
    sustain_enabled: bool = False
    sustain_start: int = 0
    sustain_end: int = 0
    release_node: Optional[int] = None


def _default_keyboard() -> List[int]:
    return [0] * NOTE_MAX


def _default_note_map() -> List[int]:
    return list(range(1, NOTE_MAX + 1))


class Instrument(BaseModel):
    """Instrument header: envelopes plus the note-to-sample keyboard map."""

    name: str = ""
    fadeout: int = Field(256, ge=0)
    global_volume: int = Field(64, ge=0, le=64)
    panning: int = Field(128, ge=0, le=256)
    volume_envelope: Envelope = Field(default_factory=Envelope)
    panning_envelope: Envelope = Field(default_factory=Envelope)
    pitch_envelope: Envelope = Field(default_factory=Envelope)
    keyboard: List[int] = Field(default_factory=_default_keyboard, description="Sample slot per note")
    note_map: List[int] = Field(default_factory=_default_note_map)

    @model_validator(mode="after")
    def validate_keyboard(self) -> Instrument:  # type: ignore[override]
        if len(self.keyboard) != NOTE_MAX or len(self.note_map) != NOTE_MAX:
            raise ValueError(f"Keyboard and note map must have {NOTE_MAX} entries")
        return self

    def envelope(self, kind: EnvelopeType) -> Envelope:
        return getattr(self, f"{kind.value}_envelope")

    def set_envelope(self, kind: EnvelopeType, envelope: Envelope) -> None:
        setattr(self, f"{kind.value}_envelope", envelope)

    def assign_from(self, other: Instrument) -> None:
        """Overwrite every field in place so existing references stay valid."""

        snapshot = other.model_copy(deep=True)
        for name in type(self).model_fields:
            setattr(self, name, getattr(snapshot, name))

    def referenced_samples(self) -> List[int]:
        return sorted({slot for slot in self.keyboard if slot})
