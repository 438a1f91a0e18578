"""Terminal CLI entrypoint for Bici HUD."""

from __future__ import annotations

import argparse
import ipaddress
import logging
from pathlib import Path

from bici.core.settings import RiderSettings
from bici.core.state import SessionContext
from bici.core.status import SessionStatusService
from bici.workout.parser import format_duration, load_workout
from bici.workout.source import default_workouts_dir

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bici HUD: live workout targets next to trainer telemetry"
    )
    parser.add_argument(
        "--workout-dir",
        type=Path,
        default=None,
        help="Folder watched for .zwo workouts (default ~/.bici-hud/workouts)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (default ~/.bici-hud/settings.json)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Loopback host to bind")
    parser.add_argument("--port", type=int, default=8787, help="HTTP port")
    parser.add_argument("--ftp", default=None, help="Store a new FTP in watts")
    parser.add_argument(
        "--show",
        type=Path,
        default=None,
        metavar="FILE",
        help="Print the parsed timeline of a workout file and exit",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def show_timeline(path: Path, ftp_watts: int | None) -> int:
    timeline = load_workout(path, ftp_watts)
    if not timeline:
        print(f"No steps parsed from {path}")
        return 1
    for index, step in enumerate(timeline.steps):
        print(
            f"{index:>3} {step.start:>6}-{step.end:<6} {step.zone:<10} "
            f"{step.target_lo:>4}-{step.target_hi:<4}W {step.label}"
        )
    print(f"Total: {format_duration(timeline.total_duration_sec)}")
    return 0


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = RiderSettings(args.settings)
    if args.ftp is not None:
        try:
            ftp = settings.set_ftp(args.ftp)
        except ValueError as exc:
            parser.error(str(exc))
        print(f"FTP set to {ftp} W")

    if args.show is not None:
        return show_timeline(args.show, settings.get_ftp())

    if not is_loopback_host(args.host):
        parser.error(f"--host must be a loopback address, got {args.host!r}")

    workout_dir = args.workout_dir or default_workouts_dir()
    workout_dir.mkdir(parents=True, exist_ok=True)
    service = SessionStatusService(SessionContext(ftp_watts=settings.get_ftp()))
    if service.ftp_watts is None:
        logger.info("No FTP stored yet, the HUD will ask for one")

    from bici.ui.web_app import run_web_ui

    return run_web_ui(
        service=service,
        settings=settings,
        workout_dir=workout_dir,
        host=args.host,
        port=args.port,
    )


if __name__ == "__main__":
    raise SystemExit(main())
