"""Locate the authoritative workout file in the workout directory."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

WORKOUT_SUFFIX = ".zwo"


def default_workouts_dir() -> Path:
    return Path.home() / ".bici-hud" / "workouts"


def find_newest_workout(directory: str | Path) -> Path | None:
    """Return the most recently modified workout file, or None.

    Files sharing a modification time are ordered by name, so the pick is
    stable across calls.
    """
    root = Path(directory)
    candidates: list[tuple[float, str, Path]] = []
    try:
        for entry in root.iterdir():
            if entry.suffix.lower() != WORKOUT_SUFFIX:
                continue
            try:
                stat = entry.stat()
            except OSError:
                # Removed between listing and stat.
                continue
            if not entry.is_file():
                continue
            candidates.append((stat.st_mtime, entry.name, entry))
    except OSError as exc:
        logger.info("Workout directory %s is unreadable: %s", root, exc)
        return None

    if not candidates:
        logger.info("No %s workout found in %s", WORKOUT_SUFFIX, root)
        return None
    candidates.sort(key=lambda item: (-item[0], item[1]))
    return candidates[0][2]
