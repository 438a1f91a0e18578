"""NiceGUI heads-up display for Bici HUD."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

from nicegui import app, ui

from bici.core.settings import RiderSettings
from bici.core.status import SessionStatus, SessionStatusService
from bici.ui.api import build_router
from bici.workout.model import WorkoutTimeline
from bici.workout.watcher import WorkoutWatcher

logger = logging.getLogger(__name__)

REFRESH_SEC = 0.5

ZONE_COLORS = {
    "warmup": "#60a5fa",
    "cooldown": "#818cf8",
    "recovery": "#94a3b8",
    "tempo": "#22c55e",
    "endurance": "#84cc16",
    "sweetspot": "#eab308",
    "threshold": "#f97316",
    "activation": "#ef4444",
    "sprint": "#d946ef",
}

HEAD_HTML = """
<style>
  body {
    background: #0a0c12;
    color: #e5e7eb;
    font-family: Arial, "Segoe UI", sans-serif;
  }
  .hud-card {
    background: #0f1220;
    border: 1px solid rgba(148, 163, 184, 0.22);
    border-radius: 12px;
  }
  .hud-muted { color: #9caecf; }
  .hud-number { font-size: 2.2rem; font-weight: 700; }
  .hud-row { padding: 2px 8px; border-radius: 6px; }
  .hud-row-active { background: rgba(56, 189, 248, 0.18); font-weight: 700; }
</style>
"""


@dataclass
class WebState:
    loaded_file: str | None = None
    loaded_seq: int = 0


def _fmt_duration(total_seconds: float) -> str:
    minutes, seconds = divmod(max(0, int(total_seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def _fmt_target(lo: int, hi: int) -> str:
    return f"{lo} W" if lo == hi else f"{lo}-{hi} W"


def run_web_ui(
    *,
    service: SessionStatusService,
    settings: RiderSettings,
    workout_dir: Path,
    host: str = "127.0.0.1",
    port: int = 8787,
) -> int:
    state = WebState()
    watcher = WorkoutWatcher(workout_dir, service)

    def on_workout_loaded(file_name: str) -> None:
        state.loaded_file = file_name
        state.loaded_seq += 1

    watcher.add_listener(on_workout_loaded)
    app.include_router(build_router(service, workout_dir))
    app.on_startup(watcher.start)
    app.on_shutdown(watcher.stop)

    def apply_ftp(raw: object) -> bool:
        try:
            ftp = settings.set_ftp(raw)
        except ValueError as exc:
            ui.notify(str(exc), type="warning")
            return False
        service.ftp_watts = ftp
        watcher.reload()
        ui.notify(f"FTP set to {ftp} W")
        return True

    def build_setup() -> None:
        with ui.card().classes("hud-card w-[400px] mx-auto mt-16"):
            ui.label("Welcome to Bici HUD").classes("text-lg font-semibold")
            ui.label("Enter your FTP to scale workout targets.").classes("hud-muted")
            ftp_input = ui.number("FTP (W)", value=200, min=1, max=2000, format="%d")
            ui.label(f"Workouts folder: {workout_dir}").classes("text-xs hud-muted")

            def on_save() -> None:
                if apply_ftp(ftp_input.value):
                    ui.navigate.to("/")

            ui.button("Start", on_click=on_save).props("color=primary")

    def build_hud() -> None:
        seen_seq = state.loaded_seq
        rendered: WorkoutTimeline | None = None
        row_labels: list[ui.label] = []

        with ui.column().classes("w-full max-w-[420px] mx-auto gap-2 p-2"):
            with ui.card().classes("hud-card w-full"):
                workout_label = ui.label("No workout loaded").classes("text-sm hud-muted")
                zone_label = ui.label("-").classes("text-xs font-semibold uppercase")
                step_label = ui.label("Waiting for telemetry").classes("text-lg font-semibold")
                target_label = ui.label("-- W").classes("hud-number")
                with ui.row().classes("w-full justify-between"):
                    remaining_label = ui.label("Step: --:--")
                    elapsed_label = ui.label("Elapsed: --:--")
                age_label = ui.label("No data yet").classes("text-xs hud-muted")
            with ui.card().classes("hud-card w-full"):
                ui.label("Timeline").classes("text-sm hud-muted")
                timeline_box = ui.column().classes("w-full gap-0")
            with ui.expansion("Settings").classes("w-full hud-card"):
                ftp_input = ui.number(
                    "FTP (W)", value=service.ftp_watts, min=1, max=2000, format="%d"
                )
                ui.button(
                    "Update FTP",
                    on_click=lambda: apply_ftp(ftp_input.value),
                )
                ui.label(f"Workouts folder: {workout_dir}").classes("text-xs hud-muted")

        def render_timeline(timeline: WorkoutTimeline) -> None:
            row_labels.clear()
            timeline_box.clear()
            with timeline_box:
                if not timeline:
                    ui.label("Drop a .zwo file into the workouts folder").classes("hud-muted")
                for step in timeline.steps:
                    row = ui.label(f"{_fmt_duration(step.start)}  {step.label}").classes("hud-row")
                    row.style(f"border-left: 4px solid {ZONE_COLORS.get(step.zone, '#94a3b8')};")
                    row_labels.append(row)

        def refresh_hud() -> None:
            nonlocal seen_seq, rendered
            if state.loaded_seq != seen_seq:
                seen_seq = state.loaded_seq
                ui.notify(f"Workout loaded: {state.loaded_file}")

            status: SessionStatus = service.get_status()
            if status.timeline is not rendered:
                rendered = status.timeline
                render_timeline(status.timeline)
            workout_label.text = status.timeline.name or "No workout loaded"

            for index, row in enumerate(row_labels):
                if index == status.step_index:
                    row.classes(add="hud-row-active")
                else:
                    row.classes(remove="hud-row-active")

            if not status.has_snapshot:
                age_label.text = "No data yet"
                elapsed_label.text = "Elapsed: --:--"
            else:
                age_label.text = f"Telemetry age: {status.age_sec:.1f}s"
                elapsed_label.text = f"Elapsed: {_fmt_duration(status.elapsed_sec or 0)}"

            step = status.step
            if step is None:
                zone_label.text = "-"
                zone_label.style("color: #94a3b8;")
                step_label.text = "Waiting for telemetry" if not status.has_snapshot else "No active step"
                target_label.text = "-- W"
                remaining_label.text = "Step: --:--"
                return
            color = ZONE_COLORS.get(step.zone, "#94a3b8")
            zone_label.text = step.zone
            zone_label.style(f"color: {color};")
            step_label.text = step.label
            target_label.text = _fmt_target(step.target_lo, step.target_hi)
            target_label.style(f"color: {color};")
            remaining_label.text = f"Step: {_fmt_duration(step.remaining_sec)}"

        refresh_hud()
        ui.timer(REFRESH_SEC, refresh_hud)

    @ui.page("/")
    def index() -> None:
        ui.add_head_html(HEAD_HTML)
        if service.ftp_watts is None:
            build_setup()
        else:
            build_hud()

    logger.info("Bici server: http://%s:%d", host, port)
    ui.run(host=host, port=port, reload=False, show=False, title="Bici HUD")
    return 0
