"""Runtime-adjustable limits shared by the history managers."""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_UNDO_LEVEL = 100
DEFAULT_SAMPLE_UNDO_BUFFER_BYTES = 64 * 1024 * 1024


class HistorySettings(BaseModel):
    """Depth and memory limits read by the managers at every decision point.

    Managers keep a reference rather than a copy, so assigning a new value
    (validated on assignment) changes behaviour for the next capture.
    """

    model_config = ConfigDict(validate_assignment=True)

    max_undo_level: int = Field(DEFAULT_MAX_UNDO_LEVEL, ge=1, description="Steps kept per object and direction")
    sample_undo_buffer_bytes: int = Field(
        DEFAULT_SAMPLE_UNDO_BUFFER_BYTES,
        ge=0,
        description="Byte budget shared by all sample undo/redo payloads; 0 disables sample undo",
    )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> HistorySettings:
        """Build settings from a persisted dictionary, ignoring unknown keys."""

        values = {key: payload[key] for key in cls.model_fields if key in payload}
        if "sample_undo_buffer_bytes" not in values and "sample_undo_buffer_mib" in payload:
            values["sample_undo_buffer_bytes"] = int(float(payload["sample_undo_buffer_mib"]) * 1024 * 1024)
        return cls.model_validate(values)

    @property
    def sample_undo_enabled(self) -> bool:
        return self.sample_undo_buffer_bytes > 0
