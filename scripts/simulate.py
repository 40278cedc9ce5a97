"""
Client Simulator — plays the browser side of an UltiFocus session against a
running engine so you can watch the lock work (commands, exit attempts,
countdown, rewards) without the real web client.

Usage:
    # Make sure the engine is running first:
    #   python start.py
    # Then in a separate terminal:
    python scripts/simulate.py                      # default: run all scenarios
    python scripts/simulate.py --scenario desktop   # specific scenario
    python scripts/simulate.py --duration 5         # seconds per session
"""

from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request
from typing import Callable, Dict

API = "http://127.0.0.1:8765"

DESKTOP_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
ANDROID_CHROME = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)


# ---------------------------------------------------------------------------
# Low-level HTTP helpers
# ---------------------------------------------------------------------------

def _request(method: str, path: str, body: dict | None = None) -> dict | list | None:
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        f"{API}{path}",
        data=data,
        headers={"Content-Type": "application/json"},
        method=method,
    )
    try:
        with urllib.request.urlopen(req, timeout=3) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        print(f"  [!] {method} {path} → {e.code}: {e.read().decode()}")
        return None
    except (urllib.error.URLError, OSError) as e:
        print(f"  [!] Engine unreachable: {e}")
        return None


def _post(path: str, body: dict | None = None):
    return _request("POST", path, body or {})


def _get(path: str):
    return _request("GET", path)


def _show_commands() -> None:
    for cmd in _get("/lock/commands") or []:
        print(f"    ← {cmd['action']} {cmd['params'] or ''}")


def _key(key: str, **mods) -> dict:
    return {"type": "keydown", "key": key, **mods}


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

def scenario_desktop(duration: int) -> None:
    """Desktop Chrome: shortcuts blocked, tab switch, session completes."""
    _post("/device/attach", {
        "user_agent": DESKTOP_CHROME,
        "features": ["fullscreen", "notifications"],
    })
    print(f"  start {duration}s → {_post('/lock/start', {'duration_seconds': duration})}")
    _show_commands()

    for evt in (_key("w", ctrl_key=True), _key("t", ctrl_key=True), _key("F11")):
        r = _post("/lock/events", evt)
        print(f"  {evt['key']:>4} blocked={r and r['default_prevented']} attempts={r and r['exit_attempts']}")

    _post("/lock/events", {"type": "visibilitychange", "hidden": True})
    time.sleep(0.7)
    _post("/lock/events", {"type": "visibilitychange", "hidden": False})
    _show_commands()

    _wait_for_completion(duration)


def scenario_ios(duration: int) -> None:
    """iPhone Safari: mobile optimizations, unload warnings unreliable."""
    _post("/device/attach", {
        "user_agent": IPHONE_SAFARI,
        "features": ["vibration"],
    })
    report = _get("/device") or {}
    print(f"  effectiveness: {report.get('effectiveness')}")
    for line in report.get("limitations", []):
        print(f"    - {line}")
    _post("/lock/start", {"duration_seconds": duration})
    _show_commands()
    _wait_for_completion(duration)


def scenario_emergency(duration: int) -> None:
    """Android Chrome: emergency exit declined once, then accepted twice."""
    _post("/device/attach", {
        "user_agent": ANDROID_CHROME,
        "features": ["fullscreen", "wake_lock", "vibration", "orientation_lock"],
    })
    _post("/lock/start", {"duration_seconds": max(duration, 60)})
    r = _post("/lock/emergency-exit", {"answers": [True, False]})
    print(f"  first try (declined final warning): exited={r and r['exited']}")
    r = _post("/lock/emergency-exit", {"answers": [True, True]})
    print(f"  second try: exited={r and r['exited']} attempts={r and r['exit_attempts']}")
    _show_commands()
    print(f"  outcome: {_get('/lock/outcome')}")


def _wait_for_completion(duration: int) -> None:
    deadline = time.time() + duration + 3
    while time.time() < deadline:
        state = _get("/lock") or {}
        if not state.get("active"):
            break
        timer = state.get("timer") or {}
        print(f"  {timer.get('display')}  {timer.get('progress_percent')}%")
        time.sleep(1)
    _show_commands()
    print(f"  outcome: {_get('/lock/outcome')}")


SCENARIOS: Dict[str, Callable[[int], None]] = {
    "desktop": scenario_desktop,
    "ios": scenario_ios,
    "emergency": scenario_emergency,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate an UltiFocus client")
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), help="Run a single scenario")
    parser.add_argument("--duration", type=int, default=5, help="Session length in seconds")
    args = parser.parse_args()

    if _get("/health") is None:
        print("Engine is not running — start it with: python start.py")
        return

    names = [args.scenario] if args.scenario else list(SCENARIOS)
    for name in names:
        print(f"\n▶ {name}: {SCENARIOS[name].__doc__}")
        SCENARIOS[name](args.duration)


if __name__ == "__main__":
    main()
