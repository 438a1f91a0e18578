"""Workout file parser (Zwift .zwo XML)."""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path

from bici.workout.model import EMPTY_TIMELINE, WorkoutStep, WorkoutTimeline
from bici.workout.zones import (
    COOLDOWN,
    COOLDOWN_DEFAULT_RANGE,
    WARMUP,
    WARMUP_DEFAULT_RANGE,
    ZoneLabel,
    classify_power,
    round_half_up,
)

logger = logging.getLogger(__name__)

DEFAULT_FTP_WATTS = 300

RANGE_KINDS: dict[str, tuple[ZoneLabel, tuple[float, float]]] = {
    "Warmup": (WARMUP, WARMUP_DEFAULT_RANGE),
    "Cooldown": (COOLDOWN, COOLDOWN_DEFAULT_RANGE),
}
WORK_KINDS = frozenset({"SteadyState", "IntervalsT", "FreeRide", "Ramp"})


class WorkoutParseError(ValueError):
    """Raised when a workout document is invalid."""


def load_workout(path: str | Path, ftp_watts: int | None) -> WorkoutTimeline:
    """Read and parse a workout file. Never raises; failures yield an empty timeline."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read workout %s: %s", file_path.name, exc)
        return EMPTY_TIMELINE
    timeline = parse_workout(text, ftp_watts, name=file_path.stem)
    if timeline:
        logger.info(
            "Loaded: %s - %d steps, %dm",
            file_path.name,
            len(timeline),
            round_half_up(timeline.total_duration_sec / 60),
        )
    return timeline


def parse_workout(text: str, ftp_watts: int | None, name: str = "") -> WorkoutTimeline:
    if not ftp_watts or ftp_watts <= 0:
        logger.warning("No FTP configured, scaling targets with %dW", DEFAULT_FTP_WATTS)
        ftp_watts = DEFAULT_FTP_WATTS
    try:
        body = _find_workout_body(text)
        if body is None:
            logger.warning("Workout %r has no <workout> section", name)
            return EMPTY_TIMELINE
        steps = _build_steps(body, ftp_watts)
    except WorkoutParseError as exc:
        logger.warning("Workout parse error in %r: %s", name, exc)
        return EMPTY_TIMELINE
    return WorkoutTimeline(name=name, steps=tuple(steps))


def _find_workout_body(text: str) -> ET.Element | None:
    try:
        root = ET.fromstring(text)
    except (ET.ParseError, ValueError) as exc:
        raise WorkoutParseError(f"Invalid XML: {exc}") from exc
    for node in root.iter():
        if isinstance(node.tag, str) and node.tag.lower() == "workout":
            return node
    return None


def _build_steps(body: ET.Element, ftp_watts: int) -> list[WorkoutStep]:
    steps: list[WorkoutStep] = []
    cursor = 0
    for node in body:
        kind = node.tag
        if kind not in RANGE_KINDS and kind not in WORK_KINDS:
            continue

        duration = round_half_up(_read_float(node, "Duration") or 0.0)
        if duration <= 0:
            continue

        if kind in RANGE_KINDS:
            zone, (default_low, default_high) = RANGE_KINDS[kind]
            low = _read_float(node, "PowerLow")
            high = _read_float(node, "PowerHigh")
            target_lo = _to_watts(default_low if low is None else low, ftp_watts)
            target_hi = _to_watts(default_high if high is None else high, ftp_watts)
            label = f"{zone.label_prefix} {target_lo}–{target_hi}W"
        else:
            power = _read_float(node, "Power") or 0.0
            target_lo = target_hi = _to_watts(power, ftp_watts)
            zone = classify_power(power)
            label = f"{zone.label_prefix} · {target_lo}W"

        steps.append(
            WorkoutStep(
                label=f"{label}  ({format_duration(duration)})",
                start=cursor,
                end=cursor + duration,
                target_lo=target_lo,
                target_hi=target_hi,
                zone=zone.zone,
            )
        )
        cursor += duration
    return steps


def _to_watts(fraction: float, ftp_watts: int) -> int:
    watts = fraction * ftp_watts
    if not (math.isfinite(watts) and math.isfinite(fraction * 100)):
        raise WorkoutParseError(f"Power fraction {fraction!r} is out of range")
    return round_half_up(watts)


def format_duration(total_seconds: int) -> str:
    minutes, seconds = divmod(total_seconds, 60)
    if seconds == 0:
        return f"{minutes}m"
    return f"{minutes}m {seconds}s"


def _read_float(node: ET.Element, attr: str) -> float | None:
    wanted = attr.lower()
    for key, raw in node.attrib.items():
        if key.lower() != wanted:
            continue
        try:
            value = float(raw.strip())
        except ValueError:
            return None
        return value if math.isfinite(value) else None
    return None
