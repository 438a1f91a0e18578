"""Workout domain models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

Zone = Literal[
    "warmup",
    "cooldown",
    "recovery",
    "tempo",
    "endurance",
    "sweetspot",
    "threshold",
    "activation",
    "sprint",
]


@dataclass(frozen=True)
class WorkoutStep:
    label: str
    start: int
    end: int
    target_lo: int
    target_hi: int
    zone: Zone

    @property
    def duration(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["duration"] = self.duration
        return data


@dataclass(frozen=True)
class WorkoutTimeline:
    name: str
    steps: tuple[WorkoutStep, ...] = ()

    @property
    def total_duration_sec(self) -> int:
        return self.steps[-1].end if self.steps else 0

    def __len__(self) -> int:
        return len(self.steps)

    def __bool__(self) -> bool:
        return bool(self.steps)


EMPTY_TIMELINE = WorkoutTimeline(name="")
