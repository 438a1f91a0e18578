"""Mutable per-process session state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bici.workout.model import EMPTY_TIMELINE, WorkoutTimeline


@dataclass(frozen=True)
class TelemetrySnapshot:
    payload: Any
    received_at: float


@dataclass
class SessionContext:
    ftp_watts: int | None = None
    timeline: WorkoutTimeline = EMPTY_TIMELINE
    snapshot: TelemetrySnapshot | None = None
    generation: int = 0
    next_generation: int = 0
    loaded_file: str | None = None

    def reset(self) -> None:
        """Drop the timeline and telemetry; the rider's FTP is kept."""
        self.timeline = EMPTY_TIMELINE
        self.snapshot = None
        self.generation = 0
        self.next_generation = 0
        self.loaded_file = None
