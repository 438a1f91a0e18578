from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from bici.core.state import SessionContext
from bici.core.status import SessionStatusService
from bici.workout.model import WorkoutStep, WorkoutTimeline
from bici.workout import watcher as watcher_module
from bici.workout.watcher import WorkoutWatcher

ZWO = (
    "<workout_file><name>{name}</name><workout>"
    '<Warmup Duration="600"/><SteadyState Duration="{steady}" Power="1.0"/>'
    "</workout></workout_file>"
)


def _write(path: Path, steady: int = 300, mtime: float | None = None) -> Path:
    path.write_text(ZWO.format(name=path.stem, steady=steady), encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def test_reload_loads_newest_and_notifies(tmp_path: Path) -> None:
    _write(tmp_path / "old.zwo", steady=60, mtime=1_000)
    _write(tmp_path / "new.zwo", steady=120, mtime=2_000)
    service = SessionStatusService(SessionContext(ftp_watts=200))
    loaded: list[str] = []
    watcher = WorkoutWatcher(tmp_path, service, on_loaded=loaded.append)

    assert watcher.reload() == tmp_path / "new.zwo"

    assert loaded == ["new.zwo"]
    assert service.timeline.name == "new"
    assert service.timeline.total_duration_sec == 720
    assert service.timeline.steps[1].target_lo == 200


def test_reload_without_workout_keeps_timeline(tmp_path: Path) -> None:
    service = SessionStatusService()
    current = WorkoutTimeline(
        name="kept", steps=(WorkoutStep("Tempo · 150W  (1m)", 0, 60, 150, 150, "tempo"),)
    )
    service.replace_timeline(current)
    loaded: list[str] = []
    watcher = WorkoutWatcher(tmp_path, service, on_loaded=loaded.append)

    assert watcher.reload() is None

    assert service.timeline is current
    assert loaded == []


def test_reload_replaces_with_empty_timeline_on_parse_failure(tmp_path: Path) -> None:
    _write(tmp_path / "good.zwo", mtime=1_000)
    service = SessionStatusService(SessionContext(ftp_watts=250))
    watcher = WorkoutWatcher(tmp_path, service)
    watcher.reload()
    assert service.timeline

    broken = tmp_path / "broken.zwo"
    broken.write_text("<workout_file><workout>", encoding="utf-8")
    os.utime(broken, (2_000, 2_000))
    watcher.reload()

    assert not service.timeline


def test_ftp_change_rescales_on_reload(tmp_path: Path) -> None:
    _write(tmp_path / "w.zwo")
    service = SessionStatusService(SessionContext(ftp_watts=200))
    watcher = WorkoutWatcher(tmp_path, service)
    watcher.reload()

    service.ftp_watts = 300
    watcher.reload()

    assert service.timeline.steps[1].target_lo == 300


def test_watch_loop_loads_initial_and_changed_files(tmp_path: Path) -> None:
    async def _wait_for(predicate, timeout: float = 15.0) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if predicate():
                return True
            await asyncio.sleep(0.1)
        return predicate()

    async def _run() -> None:
        _write(tmp_path / "first.zwo")
        service = SessionStatusService(SessionContext(ftp_watts=250))
        loaded: list[str] = []
        watcher = WorkoutWatcher(
            tmp_path, service, on_loaded=loaded.append, force_polling=True
        )

        await watcher.start()
        assert watcher.is_running
        assert await _wait_for(lambda: loaded == ["first.zwo"])

        await asyncio.sleep(0.5)
        _write(tmp_path / "second.zwo", steady=900)
        assert await _wait_for(lambda: service.timeline.name == "second")
        assert service.timeline.total_duration_sec == 1500

        await watcher.stop()
        assert not watcher.is_running

    asyncio.run(_run())


async def _wait_until(predicate, timeout: float = 15.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.1)
    return predicate()


def test_watch_loop_survives_failed_reload(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    real_load = watcher_module.load_workout
    attempts: list[str] = []

    def flaky_load(path: Path, ftp_watts: int | None) -> WorkoutTimeline:
        attempts.append(path.name)
        if path.name == "bad.zwo":
            raise RuntimeError("disk hiccup")
        return real_load(path, ftp_watts)

    monkeypatch.setattr(watcher_module, "load_workout", flaky_load)

    async def _run() -> None:
        _write(tmp_path / "bad.zwo")
        service = SessionStatusService(SessionContext(ftp_watts=250))
        loaded: list[str] = []
        watcher = WorkoutWatcher(
            tmp_path, service, on_loaded=loaded.append, force_polling=True
        )

        await watcher.start()
        assert await _wait_until(lambda: attempts == ["bad.zwo"])
        await asyncio.sleep(0.5)
        assert watcher.is_running
        assert loaded == []

        _write(tmp_path / "good.zwo", steady=120)
        assert await _wait_until(lambda: "good.zwo" in loaded)
        assert watcher.is_running
        assert service.timeline.name == "good"

        await watcher.stop()

    asyncio.run(_run())
