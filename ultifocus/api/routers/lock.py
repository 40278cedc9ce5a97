"""
/lock — start and end lock sessions, forward page events, run the emergency
exit, drain environment commands, and stream lock state.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket, WebSocketDisconnect

from ...api.schemas import (
    EmergencyExitOut,
    EmergencyExitRequest,
    HostCommandOut,
    LockEndRequest,
    LockStartRequest,
    LockStateOut,
    PageEventIn,
    PageEventOut,
    RewardPreviewOut,
    SessionOut,
    SessionOutcomeOut,
)
from ...errors import LockedSessionError, UltiFocusError
from ...host.base import PageEvent
from ...rewards import SessionMode, reward_preview

router = APIRouter(prefix="/lock", tags=["lock"])


def _get_controller(request: Request):
    return request.app.state.controller


@contextmanager
def _usage_errors():
    try:
        yield
    except UltiFocusError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ── State ───────────────────────────────────────────────────────────────────

@router.get("", response_model=LockStateOut)
def get_lock(controller=Depends(_get_controller)):
    """Current lock state, re-derived from the wall clock on every call."""
    return controller.snapshot()


@router.get("/preview", response_model=RewardPreviewOut)
def get_preview(mode: SessionMode = Query(SessionMode.LOCK)):
    p = reward_preview(mode)
    return RewardPreviewOut(xp=p.xp, coins=p.coins, multiplier_badge=p.multiplier_badge)


@router.get("/outcome", response_model=SessionOutcomeOut)
def get_outcome(controller=Depends(_get_controller)):
    if controller.last_outcome is None:
        raise HTTPException(status_code=404, detail="No session has ended yet")
    return controller.last_outcome.to_dict()


# ── Lifecycle ───────────────────────────────────────────────────────────────

@router.post("/start", response_model=SessionOut)
def start_lock(req: LockStartRequest, controller=Depends(_get_controller)):
    with _usage_errors():
        session = controller.start(req.duration_seconds)
    return SessionOut(**session.__dict__)


@router.post("/end", response_model=Optional[SessionOutcomeOut])
def end_lock(req: LockEndRequest, controller=Depends(_get_controller)):
    """End the session; returns null when nothing was running."""
    with _usage_errors():
        outcome = controller.end(req.reason)
    return outcome.to_dict() if outcome else None


@router.post("/emergency-exit", response_model=EmergencyExitOut)
def emergency_exit(req: EmergencyExitRequest, controller=Depends(_get_controller)):
    with _usage_errors():
        exited, prompts = controller.request_emergency_exit(req.answers)
    return EmergencyExitOut(
        exited=exited,
        prompts=prompts,
        exit_attempts=controller.snapshot()["exit_attempts"],
    )


@router.post("/exit-attempts")
def add_exit_attempt(controller=Depends(_get_controller)):
    with _usage_errors():
        count = controller.increment_exit_attempts()
    return {"exit_attempts": count}


@router.post("/pause")
def pause_lock(controller=Depends(_get_controller)):
    try:
        controller.pause()
    except LockedSessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"status": "idle"}


@router.post("/reset")
def reset_lock(controller=Depends(_get_controller)):
    try:
        controller.reset()
    except LockedSessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"status": "idle"}


# ── Page events / commands ──────────────────────────────────────────────────

@router.post("/events", response_model=PageEventOut)
def page_event(evt: PageEventIn, controller=Depends(_get_controller)):
    """Dispatch a page event the client observed; the reply says whether to block it."""
    with _usage_errors():
        event = controller.dispatch(PageEvent(**evt.model_dump()))
    return PageEventOut(
        default_prevented=event.default_prevented,
        propagation_stopped=event.propagation_stopped,
        return_value=event.return_value,
        exit_attempts=controller.snapshot()["exit_attempts"],
    )


@router.get("/commands", response_model=List[HostCommandOut])
def drain_commands(controller=Depends(_get_controller)):
    """Environment changes for the client to apply, oldest first. Draining clears them."""
    return [
        HostCommandOut(action=c.action, params=c.params, timestamp=c.timestamp)
        for c in controller.drain_commands()
    ]


@router.websocket("/ws")
async def lock_websocket(websocket: WebSocket):
    """
    WebSocket stream — pushes the lock state every second.
    The focus overlay subscribes to this to render the countdown.
    """
    controller = websocket.app.state.controller
    await websocket.accept()
    loop = asyncio.get_running_loop()
    try:
        while True:
            # snapshot() takes the controller lock; keep it off the event loop
            state = await loop.run_in_executor(None, controller.snapshot)
            await websocket.send_json(state)
            await asyncio.sleep(1)
    except WebSocketDisconnect:
        pass
