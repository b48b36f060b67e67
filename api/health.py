"""
Health endpoint for the course assistant.

Returns a small JSON payload for curl checks and container probes: a constant
"ok" status, the running assistant mode, how many catalog courses were loaded,
how many conversations are currently tracked, the process uptime and a UTC
timestamp. An empty catalog is reported but does not make the check fail.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from .messages import get_orchestrator

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/health")
def health() -> Dict[str, Any]:
    """
    Return the health status payload.

    Returns:
        Dict[str, Any]: status, mode, catalog_courses, sessions, uptime_s and timestamp.
    """
    payload: Dict[str, Any] = {"status": "ok"}
    payload.update(get_orchestrator().get_status())
    payload["uptime_s"] = round(time.monotonic() - _STARTED_AT, 1)
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    return payload
