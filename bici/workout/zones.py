"""Training zone classification relative to FTP."""

from __future__ import annotations

import math
from dataclasses import dataclass

from bici.workout.model import Zone

WARMUP_DEFAULT_RANGE = (0.50, 0.75)
COOLDOWN_DEFAULT_RANGE = (0.40, 0.60)


@dataclass(frozen=True)
class ZoneLabel:
    zone: Zone
    label_prefix: str


# Highest tier first; the first lower bound reached wins.
ZONE_TIERS: tuple[tuple[int, ZoneLabel], ...] = (
    (130, ZoneLabel("sprint", "Sprint")),
    (105, ZoneLabel("activation", "Activation")),
    (95, ZoneLabel("threshold", "Threshold")),
    (85, ZoneLabel("sweetspot", "Sweet Spot")),
    (75, ZoneLabel("endurance", "Endurance")),
    (60, ZoneLabel("tempo", "Tempo")),
)
RECOVERY = ZoneLabel("recovery", "Recovery")
WARMUP = ZoneLabel("warmup", "Warmup")
COOLDOWN = ZoneLabel("cooldown", "Cooldown")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def classify_zone(pct_ftp: int) -> ZoneLabel:
    for lower_bound, zone in ZONE_TIERS:
        if pct_ftp >= lower_bound:
            return zone
    return RECOVERY


def classify_power(power_fraction: float) -> ZoneLabel:
    return classify_zone(round_half_up(power_fraction * 100))
