"""API routes for the connectivity monitor.

Endpoints:
  GET  /api/connectivity/status    — last known verdict + scheduler diagnostics
  POST /api/connectivity/check     — run every probe once (not published)
  PUT  /api/connectivity/interval  — change the poll interval, re-arm the timer
  GET  /api/connectivity/stream    — SSE stream of verdict changes
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from src.config import settings
from src.connectivity.models import Verdict

logger = logging.getLogger(__name__)

status_router = APIRouter()


class IntervalRequest(BaseModel):
    seconds: float = Field(gt=0)


class CheckResponse(BaseModel):
    status: str
    connected: bool


# ── Status endpoints ─────────────────────────────────────────────────────────


@status_router.get("/connectivity/status")
def connectivity_status(request: Request) -> dict[str, Any]:
    """Last known verdict (null while nobody is streaming) and diagnostics."""
    return request.app.state.monitor.status()


@status_router.post("/connectivity/check", response_model=CheckResponse)
async def connectivity_check(request: Request) -> CheckResponse:
    """Run all probes once without touching the stream or the scheduler."""
    verdict = await request.app.state.monitor.check_once()
    return CheckResponse(status=verdict.value, connected=verdict is Verdict.CONNECTED)


@status_router.put("/connectivity/interval")
async def set_interval(body: IntervalRequest, request: Request) -> dict[str, Any]:
    """Change the poll interval; a pending timer restarts with the new value."""
    monitor = request.app.state.monitor
    monitor.set_poll_interval(body.seconds)
    return {"poll_interval": monitor.config.poll_interval}


# ── SSE stream ───────────────────────────────────────────────────────────────


@status_router.get("/connectivity/stream")
async def connectivity_stream(request: Request) -> StreamingResponse:
    """Server-Sent Events stream of connectivity changes.

    Each connected client is one subscriber: the first one starts background
    probing, the last one to disconnect stops it.
    """
    monitor = request.app.state.monitor
    keepalive = settings.stream_keepalive_seconds

    async def event_generator():
        subscription = monitor.status_changes()
        try:
            while True:
                if await request.is_disconnected():
                    break

                try:
                    verdict = await subscription.get(timeout=keepalive)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                except StopAsyncIteration:
                    break

                data = {"status": verdict.value}
                yield f"event: status\ndata: {json.dumps(data)}\n\n"
        finally:
            subscription.close()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
