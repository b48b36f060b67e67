""" main.py: FastAPI application entry point and runtime configuration.

This module builds the ASGI app, mounts the API routers, configures CORS (Cross-Origin Resource Sharing)
and exposes a Prometheus metrics endpoint. On startup it builds the conversation orchestrator (loading
the course catalog once) and starts the periodic eviction of idle sessions; on shutdown it stops that job.
When executed directly, it starts a Uvicorn server using host/port values from configuration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
import logging
from config import CONFIG
from version import __version__

# --- Router Imports ---
from api import health as health_router
from api import messages as messages_router
from services.session_janitor import start_session_janitor, shutdown_session_janitor

# Get a logger instance for this module
logger = logging.getLogger(__name__)

app = FastAPI(title="Course Assistant", version=__version__)

# Include routers
app.include_router(health_router.router, tags=["Health"])
app.include_router(messages_router.router, prefix="/api", tags=["Messages"])

# Add Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Configure CORS
allow_origins = CONFIG.get('cors', {}).get('allow_origins', ["*"])
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def _on_startup() -> None:
    """
    Build the orchestrator and start the idle-session janitor.
    """
    orchestrator = messages_router.get_orchestrator()
    interval = CONFIG.get('sessions', {}).get('eviction_interval_seconds', 600)
    if orchestrator.mode == "grounded" and interval:
        start_session_janitor(app, orchestrator.store, float(interval))
    logger.info("[startup] Course assistant %s ready (mode=%s)", __version__, orchestrator.mode)


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    """
    Stop the idle-session janitor.
    """
    shutdown_session_janitor(app)


# The uvicorn server is used to run the FastAPI application.
if __name__ == '__main__':
    import uvicorn
    logger.info("[__main__] Starting Uvicorn server for main.py\n")
    uvicorn.run(
        app,
        host=CONFIG.get('server', {}).get('host', '0.0.0.0'),
        port=CONFIG.get('server', {}).get('port', 8080)
    )
