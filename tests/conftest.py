"""
Shared pytest fixtures and configuration.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import ultifocus.settings as settings_mod
from ultifocus.api.app import create_app
from ultifocus.clock import ManualClock
from ultifocus.device.capabilities import DeviceCapabilities
from ultifocus.host.mirror import MirroredBrowserHost
from ultifocus.lock.optimizer import MobileOptimizer
from ultifocus.lock.prompts import ScriptedPrompter
from ultifocus.lock.session import FocusLockManager

from user_agents import ALL_FEATURES, DESKTOP_CHROME


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings store at a temp file so no test touches data/settings.json."""
    fake_file = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "_FILE", fake_file)
    monkeypatch.setattr(settings_mod, "_current", {})
    yield fake_file


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def make_lock(clock):
    """
    Build a lock manager wired to a mirrored browser host.

        rig = make_lock(IPHONE_SAFARI, features=("vibration",), answers=[True, True])
        rig.manager.start(600)
        rig.host.commands("vibrate")
    """

    def build(
        user_agent: str = DESKTOP_CHROME,
        features=ALL_FEATURES,
        rejections=(),
        answers=(),
        notification_permission: str = "granted",
        alert_delay_ms: int = 500,
    ) -> SimpleNamespace:
        host = MirroredBrowserHost(
            user_agent=user_agent,
            features=features,
            rejections=rejections,
            notification_permission=notification_permission,
        )
        caps = DeviceCapabilities(host)
        optimizer = MobileOptimizer(host)
        prompter = ScriptedPrompter(answers)
        manager = FocusLockManager(
            host, clock, caps, optimizer, prompter, alert_delay_ms=alert_delay_ms
        )
        return SimpleNamespace(
            host=host,
            caps=caps,
            optimizer=optimizer,
            prompter=prompter,
            manager=manager,
            clock=clock,
        )

    return build


@pytest.fixture
def app(clock):
    """Create a fresh app instance per test, driven by the manual clock."""
    return create_app(clock=clock)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
