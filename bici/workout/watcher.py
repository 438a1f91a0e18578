"""Watch the workout directory and reload the newest workout on change."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from watchfiles import Change, awatch

from bici.core.status import SessionStatusService
from bici.workout.parser import load_workout
from bici.workout.source import find_newest_workout

logger = logging.getLogger(__name__)

LoadedCallback = Callable[[str], None]

RELOAD_CHANGES = frozenset({Change.added, Change.modified})


class WorkoutWatcher:
    def __init__(
        self,
        directory: Path,
        service: SessionStatusService,
        on_loaded: LoadedCallback | None = None,
        force_polling: bool | None = None,
    ) -> None:
        self.directory = directory
        self._force_polling = force_polling
        self._service = service
        self._listeners: list[LoadedCallback] = []
        if on_loaded is not None:
            self._listeners.append(on_loaded)
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, callback: LoadedCallback) -> None:
        self._listeners.append(callback)

    def reload(self) -> Path | None:
        """Parse the newest workout file and swap it into the session.

        Returns the file that was loaded, or None when the directory holds no
        workout (the current timeline is then left untouched).
        """
        newest = find_newest_workout(self.directory)
        if newest is None:
            return None

        generation = self._service.begin_reload()
        timeline = load_workout(newest, self._service.ftp_watts)
        if not self._service.replace_timeline(timeline, generation, source=newest.name):
            return None

        for callback in list(self._listeners):
            try:
                callback(newest.name)
            except Exception:
                logger.exception("Workout loaded listener failed for %s", newest.name)
        return newest

    async def start(self) -> None:
        if self.is_running:
            raise RuntimeError("Workout watcher already running")
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(self._stop_event))

    async def stop(self) -> None:
        if not self.is_running:
            return
        self._stop_event.set()
        assert self._task is not None
        await self._task
        self._task = None

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._reload_logged()
        logger.info("Watching %s for workouts", self.directory)
        async for changes in awatch(
            self.directory,
            stop_event=stop_event,
            force_polling=self._force_polling,
        ):
            if any(change in RELOAD_CHANGES for change, _path in changes):
                self._reload_logged()

    def _reload_logged(self) -> None:
        # The watch loop must outlive a failed reload.
        try:
            self.reload()
        except Exception:
            logger.exception("Workout reload from %s failed", self.directory)
