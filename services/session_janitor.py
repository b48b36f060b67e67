"""
APScheduler-based periodic eviction of idle conversation sessions.

The session store keeps every conversation in memory. This module wires a small
interval job that asks the store to drop sessions idle for longer than the
configured TTL. The asyncio scheduler runs the job on FastAPI's event loop, the
same loop that owns the store's locks. Failures are logged and never stop the
scheduler.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from monitoring.metrics import ACTIVE_SESSIONS, ERROR_COUNT

from .session_store import SessionStore

logger = logging.getLogger(__name__)


def run_eviction_job(store: SessionStore) -> int:
    """
    Evict idle sessions once.

    Returns:
        int: Number of evicted sessions (0 when the run failed).
    """
    try:
        evicted = store.evict_idle()
    except Exception as exc:
        ERROR_COUNT.labels(type="janitor", location="evict_idle").inc()
        logger.warning("Session eviction failed: %s", exc, exc_info=True)
        return 0
    ACTIVE_SESSIONS.set(len(store))
    if evicted:
        logger.debug("Eviction run removed %d sessions (%d tracked)", evicted, len(store))
    return evicted


def start_session_janitor(app, store: SessionStore, interval_seconds: float) -> None:
    """
    Start the eviction job and keep the scheduler on `app.state.session_janitor`.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_eviction_job,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[store],
        id="session_eviction",
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    app.state.session_janitor = scheduler
    logger.info("Session janitor started (interval=%ss)", interval_seconds)


def shutdown_session_janitor(app) -> None:
    """
    Stop the eviction scheduler if it was started.
    """
    scheduler = getattr(app.state, "session_janitor", None)
    if scheduler is None or not scheduler.running:
        return
    scheduler.shutdown(wait=False)
    app.state.session_janitor = None
    logger.info("Session janitor stopped")
