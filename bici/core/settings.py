"""Local persistence for rider settings (FTP)."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _default_settings_path() -> Path:
    return Path.home() / ".bici-hud" / "settings.json"


def parse_ftp(raw: object) -> int:
    if isinstance(raw, bool):
        raise ValueError("FTP must be a positive integer")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    try:
        value = int(str(raw).strip())
    except ValueError as exc:
        raise ValueError("FTP must be a positive integer") from exc
    if value <= 0:
        raise ValueError("FTP must be a positive integer")
    return value


class RiderSettings:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or _default_settings_path()

    def get_ftp(self) -> int | None:
        """Stored FTP in watts, or None on first run."""
        raw = self._read().get("ftp")
        if raw is None:
            return None
        try:
            return parse_ftp(raw)
        except ValueError:
            logger.warning("Ignoring invalid stored FTP %r in %s", raw, self.path)
            return None

    def set_ftp(self, value: object) -> int:
        ftp = parse_ftp(value)
        data = self._read()
        data["ftp"] = ftp
        self._write(data)
        return ftp

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Cannot read settings %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=True, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
