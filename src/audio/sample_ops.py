"""Numpy sample-processing primitives used by editors and the sample history.

``invert``, ``reverse`` and ``unsign`` are their own inverse: applying one
twice over the same frame range reproduces the original data bit for bit.
"""
from __future__ import annotations

import numpy as np

from domain.models import Sample


def _checked_range(sample: Sample, start: int, end: int) -> tuple[int, int]:
    length = sample.header.length
    if start < 0 or end < start or end > length:
        raise ValueError(f"Frame range [{start}, {end}) outside sample of length {length}")
    return start, end


def _frames(sample: Sample) -> np.ndarray:
    if sample.data is None:
        raise ValueError("Sample has no waveform data")
    return sample.data


def invert(sample: Sample, start: int, end: int) -> None:
    """Flip every bit in the range (``~x``), which mirrors the waveform."""

    start, end = _checked_range(sample, start, end)
    if start == end:
        return
    segment = _frames(sample)[start:end]
    np.invert(segment, out=segment)


def reverse(sample: Sample, start: int, end: int) -> None:
    """Play the range backwards, keeping stereo channels paired."""

    start, end = _checked_range(sample, start, end)
    if start == end:
        return
    data = _frames(sample)
    data[start:end] = data[start:end][::-1].copy()


def unsign(sample: Sample, start: int, end: int) -> None:
    """Toggle between signed and unsigned PCM by flipping the sign bit."""

    start, end = _checked_range(sample, start, end)
    if start == end:
        return
    segment = _frames(sample)[start:end]
    sign_bit = np.iinfo(segment.dtype).min
    np.bitwise_xor(segment, segment.dtype.type(sign_bit), out=segment)


def silence(sample: Sample, start: int, end: int) -> None:
    start, end = _checked_range(sample, start, end)
    _frames(sample)[start:end] = 0


def insert_silence(sample: Sample, position: int, frames: int) -> None:
    """Insert *frames* zero frames before *position*."""

    header = sample.header
    if not 0 <= position <= header.length:
        raise ValueError(f"Insert position {position} outside sample of length {header.length}")
    if frames <= 0:
        return
    shape = (frames,) if header.channels == 1 else (frames, header.channels)
    gap = np.zeros(shape, dtype=header.dtype)
    if sample.data is None:
        sample.data = gap
    else:
        sample.data = np.concatenate([sample.data[:position], gap, sample.data[position:]])
    header.length = int(sample.data.shape[0])


def remove_range(sample: Sample, start: int, end: int) -> None:
    """Cut ``[start, end)`` out of the waveform, shortening the sample."""

    start, end = _checked_range(sample, start, end)
    if start == end:
        return
    data = _frames(sample)
    sample.data = np.concatenate([data[:start], data[end:]])
    sample.header.length = int(sample.data.shape[0])
    sample.precompute_loops()


def replace(sample: Sample, data: np.ndarray) -> None:
    """Swap the whole waveform, adopting the new buffer's format."""

    array = np.ascontiguousarray(data)
    if array.dtype not in (np.int8, np.int16):
        raise ValueError("Sample data must be int8 or int16")
    header = sample.header
    header.bits_per_sample = array.dtype.itemsize * 8
    header.channels = 1 if array.ndim == 1 else int(array.shape[1])
    header.length = int(array.shape[0])
    sample.data = array
    sample.precompute_loops()


__all__ = ["insert_silence", "invert", "remove_range", "replace", "reverse", "silence", "unsign"]
