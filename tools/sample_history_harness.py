"""Drive a synthetic sample-editing workload against the sample undo budget."""
from __future__ import annotations

import argparse
import json
import logging
from typing import Sequence

import numpy as np

from domain.document import ModuleDocument
from domain.models import Sample
from history.sample_history import SampleHistory
from history.settings import HistorySettings
from tracker.sample_editor import SampleEditor

_OPERATIONS = ("silence", "reverse", "invert", "delete", "insert", "replace", "undo", "redo")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run random sample edits and report undo buffer usage and evictions.",
    )
    parser.add_argument("--slots", type=int, default=4, help="Number of sample slots to edit.")
    parser.add_argument("--frames", type=int, default=4096, help="Initial length of every sample in frames.")
    parser.add_argument("--iterations", type=int, default=200, help="Number of random operations to run.")
    parser.add_argument(
        "--budget-bytes",
        type=int,
        default=256 * 1024,
        help="Byte budget shared by all sample undo/redo payloads (0 disables sample undo).",
    )
    parser.add_argument("--max-undo-level", type=int, default=100, help="Maximum steps kept per sample.")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for a reproducible workload.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity for history diagnostics.",
    )
    return parser.parse_args(argv)


def _random_range(rng: np.random.Generator, length: int) -> tuple[int, int]:
    start = int(rng.integers(0, length))
    end = int(rng.integers(start + 1, length + 1))
    return start, end


def run_harness(args: argparse.Namespace) -> dict[str, object]:
    if args.slots < 1 or args.frames < 2:
        raise SystemExit("--slots must be >= 1 and --frames >= 2")
    rng = np.random.default_rng(args.seed)
    settings = HistorySettings(
        max_undo_level=args.max_undo_level,
        sample_undo_buffer_bytes=args.budget_bytes,
    )
    document = ModuleDocument()
    history = SampleHistory(document, settings)
    editor = SampleEditor(document, history)
    for slot in range(1, args.slots + 1):
        waveform = rng.integers(-32768, 32767, size=args.frames, dtype=np.int16)
        document.set_sample(slot, Sample.from_array(waveform, name=f"Sample {slot}"))

    counts = {operation: 0 for operation in _OPERATIONS}
    peak = 0
    budget_respected = True
    for _ in range(int(args.iterations)):
        slot = int(rng.integers(1, args.slots + 1))
        operation = _OPERATIONS[int(rng.integers(0, len(_OPERATIONS)))]
        length = document.sample(slot).header.length
        if operation == "undo":
            history.undo(slot)
        elif operation == "redo":
            history.redo(slot)
        elif operation == "insert":
            editor.insert_silence(slot, int(rng.integers(0, length + 1)), int(rng.integers(1, 512)))
        elif operation == "replace":
            frames = int(rng.integers(2, 2 * args.frames))
            editor.replace_data(slot, rng.integers(-32768, 32767, size=frames, dtype=np.int16))
        elif length < 2:
            continue
        elif operation == "delete":
            start, end = _random_range(rng, length)
            if end - start == length:
                end -= 1
            editor.delete_range(slot, start, end)
        else:
            start, end = _random_range(rng, length)
            getattr(editor, operation)(slot, start, end)
        counts[operation] += 1
        held = history.buffer_bytes()
        peak = max(peak, held)
        if held > settings.sample_undo_buffer_bytes:
            budget_respected = False

    return {
        "iterations": int(args.iterations),
        "budget_bytes": settings.sample_undo_buffer_bytes,
        "held_bytes": history.buffer_bytes(),
        "peak_held_bytes": peak,
        "budget_respected": budget_respected,
        "evicted_steps": history.budget.evicted_steps,
        "evicted_bytes": history.budget.evicted_bytes,
        "operations": counts,
        "slots": {
            str(slot): {
                "undo_depth": len(history.undo_steps(slot)),
                "redo_depth": len(history.redo_steps(slot)),
                "length": document.sample(slot).header.length,
            }
            for slot in range(1, args.slots + 1)
        },
    }


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="[%(levelname)s] %(message)s")
    summary = run_harness(args)
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
