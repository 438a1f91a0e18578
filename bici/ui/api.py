"""HTTP endpoints for telemetry ingress and status egress."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from bici.core.status import SessionStatusService

logger = logging.getLogger(__name__)

TELEMETRY_PATHS = ("/tp", "/tpv")
MAX_BODY_BYTES = 1024 * 1024


def _reject_constant(name: str) -> Any:
    # NaN and Infinity cannot be echoed back by /status.
    raise ValueError(f"Unsupported JSON constant {name}")


def decode_telemetry(body: bytes) -> Any:
    """Decode a telemetry body; non-JSON input is kept as ``{"raw": text}``."""
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        logger.debug("Telemetry body is not JSON, storing %d chars as raw text", len(text))
        return {"raw": text}


def build_router(service: SessionStatusService, workout_dir: Path) -> APIRouter:
    router = APIRouter()

    async def receive_telemetry(request: Request) -> dict[str, Any]:
        body = await request.body()
        if len(body) > MAX_BODY_BYTES:
            logger.debug("Rejecting %d byte telemetry body", len(body))
            raise HTTPException(status_code=413, detail="Telemetry body too large")
        service.report_telemetry(decode_telemetry(body))
        return {"ok": True}

    for path in TELEMETRY_PATHS:
        router.add_api_route(path, receive_telemetry, methods=["POST"])

    @router.get("/status")
    def status() -> dict[str, Any]:
        return service.get_status().to_dict()

    @router.get("/workout-dir")
    def workout_directory() -> dict[str, Any]:
        return {"path": str(workout_dir)}

    return router
