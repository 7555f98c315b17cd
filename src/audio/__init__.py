"""Sample-processing primitives shared by editors and the sample history."""
from .sample_ops import insert_silence, invert, remove_range, replace, reverse, silence, unsign

__all__ = [
    "insert_silence",
    "invert",
    "remove_range",
    "replace",
    "reverse",
    "silence",
    "unsign",
]
