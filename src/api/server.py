"""FastAPI server exposing the connectivity monitor."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.status_routes import status_router
from src.config import settings
from src.connectivity.monitor import ConnectivityMonitor
from src.connectivity.registry import ProbeRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared monitor on startup (unless one was injected)."""
    if getattr(app.state, "monitor", None) is None:
        registry = ProbeRegistry(
            settings.probes_path, default_timeout=settings.probe_timeout_seconds,
        )
        app.state.monitor = ConnectivityMonitor.from_settings(settings, registry)
        logger.info(
            "Connectivity monitor ready: %d probes via %s prober",
            len(app.state.monitor.config.probes), settings.default_prober,
        )

    yield

    # Shutdown
    app.state.monitor.close()


def create_app(monitor: ConnectivityMonitor | None = None) -> FastAPI:
    app = FastAPI(
        title="Connectivity Watch",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.monitor = monitor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(status_router, prefix="/api")

    return app


app = create_app()
