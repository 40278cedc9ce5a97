"""Tests for the focus controller that owns the attached client's lock engine."""

import pytest

from ultifocus.errors import AlreadyActiveError, LockedSessionError, NoClientAttachedError
from ultifocus.host.base import PageEvent
from ultifocus.service import FocusController
from ultifocus.settings import update_settings

from user_agents import ALL_FEATURES, ANDROID_PHONE_CHROME, DESKTOP_CHROME, IPHONE_SAFARI


@pytest.fixture
def controller(clock):
    ctl = FocusController(clock=clock, alert_delay_ms=500)
    ctl.attach(DESKTOP_CHROME, ALL_FEATURES)
    return ctl


class TestAttach:
    def test_operations_need_a_client(self, clock):
        ctl = FocusController(clock=clock)
        assert not ctl.attached
        with pytest.raises(NoClientAttachedError):
            ctl.start(60)
        with pytest.raises(NoClientAttachedError):
            ctl.device_report()
        assert ctl.drain_commands() == []

    def test_attach_returns_classification(self, clock):
        info = FocusController(clock=clock).attach(IPHONE_SAFARI, ["vibration"])
        assert info.is_ios
        assert info.is_mobile

    def test_reattach_refused_while_active(self, controller):
        controller.start(60)
        with pytest.raises(AlreadyActiveError):
            controller.attach(ANDROID_PHONE_CHROME, ALL_FEATURES)

    def test_reattach_when_idle_replaces_client(self, controller):
        controller.attach(ANDROID_PHONE_CHROME, ALL_FEATURES)
        assert controller.device_report()["info"]["os_name"] == "Android"

    def test_orientation_setting_is_used(self, clock):
        update_settings({"lock_orientation": "landscape"})
        ctl = FocusController(clock=clock)
        ctl.attach(ANDROID_PHONE_CHROME, ALL_FEATURES)
        ctl.start(60)
        locks = [c for c in ctl.drain_commands() if c.action == "orientation.lock"]
        assert locks[0].params["orientation"] == "landscape"


class TestCountdown:
    def test_tick_before_expiry_does_nothing(self, controller, clock):
        controller.start(60)
        clock.advance_seconds(59)
        assert controller.tick() is None
        assert controller.snapshot()["active"]

    def test_tick_completes_session(self, controller, clock):
        controller.start(60)
        clock.advance_seconds(60)

        outcome = controller.tick()

        assert outcome.completed
        assert outcome.xp_earned == 100
        assert outcome.coins_earned == 100
        assert outcome.mode.value == "lock"
        assert controller.last_outcome is outcome
        assert not controller.snapshot()["active"]

    def test_tick_when_idle(self, controller):
        assert controller.tick() is None

    def test_delayed_poll_still_sees_zero(self, controller, clock):
        controller.start(60)
        clock.advance_seconds(3600)
        assert controller.snapshot()["time_remaining"] == 0


class TestEmergencyExit:
    def test_confirmed_exit_pays_nothing(self, controller, clock):
        controller.start(1500)
        clock.advance_seconds(5 * 60)

        exited, prompts = controller.request_emergency_exit([True, True])

        assert exited
        assert len(prompts) == 2
        outcome = controller.last_outcome
        assert outcome.reason == "emergency"
        assert outcome.xp_earned == 0
        assert outcome.completed_minutes == 5

    def test_declined_exit_keeps_session(self, controller):
        controller.start(1500)
        exited, prompts = controller.request_emergency_exit([True, False])
        assert not exited
        assert controller.snapshot()["active"]
        assert controller.snapshot()["exit_attempts"] == 1
        assert controller.last_outcome is None


class TestLockedActions:
    @pytest.mark.parametrize("action", ["pause", "reset"])
    def test_refused_while_active(self, controller, action):
        controller.start(60)
        with pytest.raises(LockedSessionError) as exc:
            getattr(controller, action)()
        assert exc.value.action == action
        assert controller.snapshot()["active"]

    @pytest.mark.parametrize("action", ["pause", "reset"])
    def test_allowed_when_idle(self, controller, action):
        getattr(controller, action)()


class TestSubscriptions:
    def test_outcome_callback(self, controller):
        outcomes = []
        controller.on_outcome(outcomes.append)
        controller.start(60)
        controller.end("user-ended")
        assert [o.reason for o in outcomes] == ["user-ended"]

    def test_failing_outcome_callback_is_contained(self, controller):
        def broken(outcome):
            raise RuntimeError("storage offline")

        controller.on_outcome(broken)
        controller.start(60)
        outcome = controller.end("completed")
        assert outcome.completed

    def test_change_fan_out(self, controller):
        seen = []
        unsubscribe = controller.on_change(seen.append)
        controller.start(60)
        controller.end("completed")
        unsubscribe()
        controller.start(60)
        assert seen == [True, False]

    def test_duplicate_change_subscription_notified_once(self, controller):
        seen = []
        controller.on_change(seen.append)
        controller.on_change(seen.append)
        controller.start(60)
        assert seen == [True]

    def test_change_subscriber_can_restart(self, controller):
        def restart(active):
            if not active:
                controller.start(120)

        controller.on_change(restart)
        controller.start(60)
        outcome = controller.end("completed")

        assert outcome.duration_seconds == 60
        snap = controller.snapshot()
        assert snap["active"]
        assert snap["session"]["duration_seconds"] == 120

    def test_flag_tracks_session(self, controller):
        controller.start(60)
        assert controller.flag.should_suppress_notifications()
        controller.end("completed")
        assert not controller.flag.should_suppress_notifications()


class TestSnapshot:
    def test_idle_snapshot(self, clock):
        snap = FocusController(clock=clock).snapshot()
        assert snap == {
            "attached": False,
            "active": False,
            "session": None,
            "exit_attempts": 0,
            "time_remaining": 0,
            "lock_mode_flag": False,
            "timer": None,
        }

    def test_active_snapshot(self, controller, clock):
        controller.start(300)
        controller.dispatch(PageEvent(type="keydown", key="t", ctrl_key=True))
        clock.advance_seconds(60)

        snap = controller.snapshot()
        assert snap["exit_attempts"] == 1
        assert snap["time_remaining"] == 240
        assert snap["timer"]["display"] == "04:00"
        assert snap["timer"]["progress_percent"] == 20.0

    def test_stay_focused_alert_runs_through_controller_clock(self, controller, clock):
        controller.start(300)
        controller.drain_commands()
        controller.dispatch(PageEvent(type="visibilitychange", hidden=True))
        clock.advance(500)
        assert [c.action for c in controller.drain_commands()] == ["alert"]
