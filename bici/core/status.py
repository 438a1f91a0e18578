"""Session status service: latest telemetry plus the active workout timeline."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable

from bici.core.state import SessionContext, TelemetrySnapshot
from bici.workout.model import WorkoutTimeline, Zone
from bici.workout.zones import round_half_up

logger = logging.getLogger(__name__)

ELAPSED_FIELD = "time"


@dataclass(frozen=True)
class ActiveStep:
    index: int
    label: str
    zone: Zone
    remaining_sec: int
    target_lo: int
    target_hi: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "label": self.label,
            "zone": self.zone,
            "remaining_sec": self.remaining_sec,
            "target_lo": self.target_lo,
            "target_hi": self.target_hi,
        }


@dataclass(frozen=True)
class SessionStatus:
    has_snapshot: bool
    timeline: WorkoutTimeline
    age_sec: float | None = None
    payload: Any = None
    elapsed_sec: float | None = None
    step: ActiveStep | None = None

    @property
    def step_index(self) -> int | None:
        return self.step.index if self.step is not None else None

    def to_dict(self) -> dict[str, Any]:
        steps = [step.to_dict() for step in self.timeline.steps]
        if not self.has_snapshot:
            return {
                "ok": False,
                "payload": None,
                "step": None,
                "step_index": None,
                "steps": steps,
            }
        return {
            "ok": True,
            "age_sec": self.age_sec,
            "payload": self.payload,
            "step": self.step.to_dict() if self.step is not None else None,
            "step_index": self.step_index,
            "steps": steps,
        }


def lookup_step(timeline: WorkoutTimeline, elapsed_sec: float) -> ActiveStep | None:
    """Return the step covering ``elapsed_sec`` (``start <= e < end``), if any."""
    for index, step in enumerate(timeline.steps):
        if step.start <= elapsed_sec < step.end:
            return ActiveStep(
                index=index,
                label=step.label,
                zone=step.zone,
                remaining_sec=int(math.floor(step.end - elapsed_sec)),
                target_lo=step.target_lo,
                target_hi=step.target_hi,
            )
    return None


def extract_elapsed(payload: Any) -> float:
    """Read the elapsed session time from a telemetry payload, 0 when unusable."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, dict):
        return 0.0
    raw = payload.get(ELAPSED_FIELD)
    if isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return value if math.isfinite(value) else 0.0


class SessionStatusService:
    def __init__(
        self,
        context: SessionContext | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._context = context or SessionContext()
        self._clock = clock

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def timeline(self) -> WorkoutTimeline:
        return self._context.timeline

    @property
    def ftp_watts(self) -> int | None:
        return self._context.ftp_watts

    @ftp_watts.setter
    def ftp_watts(self, value: int | None) -> None:
        self._context.ftp_watts = value

    def report_telemetry(self, payload: Any) -> None:
        self._context.snapshot = TelemetrySnapshot(payload=payload, received_at=self._clock())

    def begin_reload(self) -> int:
        """Reserve the generation number for a reload that is about to parse."""
        self._context.next_generation += 1
        return self._context.next_generation

    def replace_timeline(
        self,
        timeline: WorkoutTimeline,
        generation: int | None = None,
        source: str | None = None,
    ) -> bool:
        """Swap in a new timeline. A reload older than the last applied one is dropped."""
        if generation is None:
            generation = self.begin_reload()
        if generation < self._context.generation:
            logger.debug(
                "Discarding stale workout reload %d (current %d)",
                generation,
                self._context.generation,
            )
            return False
        self._context.generation = generation
        self._context.timeline = timeline
        self._context.loaded_file = source
        return True

    def reset(self) -> None:
        self._context.reset()

    def get_status(self) -> SessionStatus:
        timeline = self._context.timeline
        snapshot = self._context.snapshot
        if snapshot is None:
            return SessionStatus(has_snapshot=False, timeline=timeline)

        elapsed = extract_elapsed(snapshot.payload)
        age = round_half_up((self._clock() - snapshot.received_at) * 10) / 10
        return SessionStatus(
            has_snapshot=True,
            timeline=timeline,
            age_sec=age,
            payload=snapshot.payload,
            elapsed_sec=elapsed,
            step=lookup_step(timeline, elapsed),
        )
