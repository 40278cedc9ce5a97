"""
Integration tests for the FastAPI application.
Uses httpx.AsyncClient with the ASGI transport (no running server needed).
Fixtures are provided by tests/conftest.py.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from user_agents import ALL_FEATURES, ANDROID_PHONE_CHROME, DESKTOP_CHROME, IPHONE_SAFARI


async def _attach(client, user_agent=DESKTOP_CHROME, features=ALL_FEATURES, **extra):
    r = await client.post("/device/attach", json={
        "user_agent": user_agent,
        "features": list(features),
        **extra,
    })
    assert r.status_code == 200
    return r.json()


async def _start(client, duration=1500):
    r = await client.post("/lock/start", json={"duration_seconds": duration})
    assert r.status_code == 200
    return r.json()


class TestHealth:
    async def test_health_ok(self, client):
        r = await client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["attached"] is False

    async def test_health_reports_attachment(self, client):
        await _attach(client)
        r = await client.get("/health")
        assert r.json()["attached"] is True


class TestDeviceEndpoint:
    async def test_attach_desktop(self, client):
        info = await _attach(client)
        assert info["is_desktop"] is True
        assert info["browser_name"] == "Chrome"
        assert info["has_fullscreen_support"] is True

    async def test_attach_iphone(self, client):
        info = await _attach(client, IPHONE_SAFARI, features=["vibration"])
        assert info["is_mobile"] is True
        assert info["is_ios"] is True
        assert info["has_reliable_unload_warning_support"] is False

    async def test_device_report(self, client):
        await _attach(client, IPHONE_SAFARI, features=["vibration"])
        r = await client.get("/device")
        assert r.status_code == 200
        body = r.json()
        assert body["effectiveness"] == {"score": 40, "label": "Low", "color": "orange"}
        assert "iOS: Home button and app switching cannot be blocked" in body["limitations"]

    async def test_device_report_requires_client(self, client):
        r = await client.get("/device")
        assert r.status_code == 409

    async def test_unknown_feature_returns_422(self, client):
        r = await client.post("/device/attach", json={
            "user_agent": DESKTOP_CHROME,
            "features": ["teleport"],
        })
        assert r.status_code == 422

    async def test_reattach_refused_while_locked(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/device/attach", json={"user_agent": IPHONE_SAFARI})
        assert r.status_code == 409


class TestLockLifecycle:
    async def test_start_requires_client(self, client):
        r = await client.post("/lock/start", json={"duration_seconds": 60})
        assert r.status_code == 409

    async def test_start_returns_session(self, client):
        await _attach(client)
        session = await _start(client, 1500)
        assert session["is_active"] is True
        assert session["is_mobile_platform"] is False
        assert session["duration_seconds"] == 1500
        assert session["id"].startswith("ultifocus-")

    async def test_second_start_returns_409(self, client):
        await _attach(client)
        first = await _start(client)
        r = await client.post("/lock/start", json={"duration_seconds": 60})
        assert r.status_code == 409
        state = (await client.get("/lock")).json()
        assert state["session"]["id"] == first["id"]

    async def test_non_positive_duration_returns_422(self, client):
        await _attach(client)
        r = await client.post("/lock/start", json={"duration_seconds": 0})
        assert r.status_code == 422

    async def test_state_while_active(self, client, clock):
        await _attach(client)
        await _start(client, 120)
        clock.advance_seconds(30)

        state = (await client.get("/lock")).json()
        assert state["active"] is True
        assert state["lock_mode_flag"] is True
        assert state["time_remaining"] == 90
        assert state["timer"]["display"] == "01:30"
        assert state["timer"]["reward_preview"]["multiplier_badge"] == "2x"

    async def test_state_when_idle(self, client):
        state = (await client.get("/lock")).json()
        assert state["attached"] is False
        assert state["active"] is False
        assert state["session"] is None
        assert state["timer"] is None

    async def test_end_user_ended_pays_nothing(self, client, clock):
        await _attach(client)
        await _start(client, 1500)
        clock.advance_seconds(10 * 60 + 5)

        r = await client.post("/lock/end", json={"reason": "user-ended"})
        assert r.status_code == 200
        outcome = r.json()
        assert outcome["reason"] == "user-ended"
        assert outcome["xp_earned"] == 0
        assert outcome["completed_minutes"] == 10

        state = (await client.get("/lock")).json()
        assert state["active"] is False
        assert state["exit_attempts"] == 0

    async def test_end_when_idle_returns_null(self, client):
        await _attach(client)
        r = await client.post("/lock/end", json={"reason": "completed"})
        assert r.status_code == 200
        assert r.json() is None

    async def test_invalid_end_reason_returns_422(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/lock/end", json={"reason": "bored"})
        assert r.status_code == 422

    async def test_countdown_completion_pays_lock_rewards(self, client, app, clock):
        await _attach(client)
        await _start(client, 60)
        clock.advance_seconds(61)

        # the background countdown may get there first; either way it completes
        app.state.controller.tick()
        assert (await client.get("/lock")).json()["active"] is False

        r = await client.get("/lock/outcome")
        assert r.status_code == 200
        body = r.json()
        assert body["reason"] == "completed"
        assert body["xp_earned"] == 100
        assert body["coins_earned"] == 100
        assert body["completed_minutes"] == 1

    async def test_outcome_404_before_any_session(self, client):
        r = await client.get("/lock/outcome")
        assert r.status_code == 404


class TestPauseAndReset:
    @pytest.mark.parametrize("path", ["/lock/pause", "/lock/reset"])
    async def test_refused_while_locked(self, client, path):
        await _attach(client)
        await _start(client)
        r = await client.post(path)
        assert r.status_code == 409
        assert "emergency exit" in r.json()["detail"]
        assert (await client.get("/lock")).json()["active"] is True

    @pytest.mark.parametrize("path", ["/lock/pause", "/lock/reset"])
    async def test_allowed_when_idle(self, client, path):
        r = await client.post(path)
        assert r.status_code == 200
        assert r.json() == {"status": "idle"}


class TestPageEvents:
    async def test_blocked_shortcut(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/lock/events", json={"type": "keydown", "key": "w", "ctrl_key": True})
        assert r.status_code == 200
        body = r.json()
        assert body["default_prevented"] is True
        assert body["propagation_stopped"] is True
        assert body["exit_attempts"] == 1

    async def test_unload_warning(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/lock/events", json={"type": "beforeunload"})
        body = r.json()
        assert body["default_prevented"] is True
        assert "UltiFocus is active" in body["return_value"]

    async def test_tab_hide_schedules_alert(self, client, clock):
        await _attach(client)
        await _start(client)
        await client.get("/lock/commands")

        await client.post("/lock/events", json={"type": "visibilitychange", "hidden": True})
        clock.advance(500)

        commands = (await client.get("/lock/commands")).json()
        alerts = [c for c in commands if c["action"] == "alert"]
        assert len(alerts) == 1
        assert "Stay Focused" in alerts[0]["params"]["message"]

    async def test_unknown_event_type_returns_422(self, client):
        await _attach(client)
        r = await client.post("/lock/events", json={"type": "scroll"})
        assert r.status_code == 422

    async def test_events_require_client(self, client):
        r = await client.post("/lock/events", json={"type": "contextmenu"})
        assert r.status_code == 409

    async def test_manual_exit_attempt(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/lock/exit-attempts")
        assert r.json() == {"exit_attempts": 1}


class TestCommands:
    async def test_mobile_start_emits_commands(self, client):
        await _attach(client, ANDROID_PHONE_CHROME)
        await _start(client, 600)
        actions = [c["action"] for c in (await client.get("/lock/commands")).json()]
        assert "wake_lock.request" in actions
        assert "orientation.lock" in actions
        assert "vibrate" in actions
        assert "fullscreen.request" in actions

    async def test_drain_clears_outbox(self, client):
        await _attach(client)
        await _start(client)
        assert (await client.get("/lock/commands")).json()
        assert (await client.get("/lock/commands")).json() == []

    async def test_vibration_setting_applies_to_next_client(self, client):
        await client.put("/settings", json={"vibration_enabled": False})
        await _attach(client, ANDROID_PHONE_CHROME)
        await _start(client, 600)
        actions = [c["action"] for c in (await client.get("/lock/commands")).json()]
        assert "vibrate" not in actions


class TestEmergencyExit:
    async def test_declined_final_warning(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/lock/emergency-exit", json={"answers": [True, False]})
        assert r.status_code == 200
        body = r.json()
        assert body["exited"] is False
        assert len(body["prompts"]) == 2
        assert body["exit_attempts"] == 1
        assert (await client.get("/lock")).json()["active"] is True

    async def test_confirmed_twice_ends_session(self, client):
        await _attach(client)
        await _start(client)
        r = await client.post("/lock/emergency-exit", json={"answers": [True, True]})
        body = r.json()
        assert body["exited"] is True
        assert body["prompts"][1].startswith("🚨 FINAL WARNING!")

        outcome = (await client.get("/lock/outcome")).json()
        assert outcome["reason"] == "emergency"
        assert outcome["xp_earned"] == 0
        assert outcome["exit_attempts"] == 1

    async def test_no_answers_declines(self, client):
        await _attach(client)
        await _start(client)
        body = (await client.post("/lock/emergency-exit", json={})).json()
        assert body["exited"] is False
        assert len(body["prompts"]) == 1


class TestRewardPreviewEndpoint:
    async def test_lock_preview(self, client):
        r = await client.get("/lock/preview")
        assert r.json() == {"xp": 100, "coins": 100, "multiplier_badge": "2x"}

    async def test_standard_preview(self, client):
        r = await client.get("/lock/preview", params={"mode": "standard"})
        assert r.json() == {"xp": 50, "coins": 50, "multiplier_badge": None}


class TestLockWebSocket:
    def test_streams_lock_state(self, app):
        with TestClient(app) as tc:
            tc.post("/device/attach", json={"user_agent": DESKTOP_CHROME, "features": ["fullscreen"]})
            tc.post("/lock/start", json={"duration_seconds": 90})
            with tc.websocket_connect("/lock/ws") as ws:
                state = ws.receive_json()
        assert state["active"] is True
        assert state["timer"]["display"] == "01:30"
