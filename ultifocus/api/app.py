"""
FastAPI application — local UltiFocus lock engine API.
Runs on http://127.0.0.1:8765 by default.

The controller lives on app.state so that each call to create_app() produces
a fully independent instance with no shared module-level globals. This makes
test isolation straightforward.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..clock import Clock
from ..config import config
from ..service import FocusController

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Countdown loop
# ---------------------------------------------------------------------------

async def _countdown_loop(controller: FocusController, interval_ms: int) -> None:
    while True:
        await asyncio.sleep(interval_ms / 1000.0)
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, controller.tick)
        except Exception:
            logger.exception("Countdown tick failed")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(clock: Optional[Clock] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        controller = FocusController(clock=clock)
        controller.on_outcome(
            lambda o: logger.info(
                "Session %s ended (%s): +%d xp, +%d coins", o.session_id, o.reason, o.xp_earned, o.coins_earned
            )
        )
        app.state.controller = controller

        countdown_task = asyncio.create_task(
            _countdown_loop(controller, config.tick_interval_ms)
        )

        yield

        countdown_task.cancel()
        try:
            await countdown_task
        except asyncio.CancelledError:
            pass
        if controller.snapshot()["active"]:
            controller.end("user-ended")

    app = FastAPI(
        title="UltiFocus Lock Engine",
        description="Local focus-lock state machine for the student productivity client",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import device, lock, settings

    app.include_router(device.router)
    app.include_router(lock.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        controller = getattr(request.app.state, "controller", None)
        return {
            "status": "ok",
            "version": "0.1.0",
            "attached": bool(controller and controller.attached),
        }

    return app


app = create_app()
