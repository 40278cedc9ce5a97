"""
Device Capabilities — classifies the client runtime from its user agent and
the feature set reported by the host, and rates how well the lock can be
enforced there.

The classification is computed once per instance and memoized.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import List, Optional

from ..host.base import Feature, HostEnvironment

_MOBILE = re.compile(r"iPhone|iPod|Android.*Mobile", re.IGNORECASE)
_TABLET = re.compile(r"iPad|Android(?!.*Mobile)", re.IGNORECASE)
_IOS = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)
_ANDROID = re.compile(r"Android", re.IGNORECASE)

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DeviceInfo:
    is_mobile: bool
    is_tablet: bool
    is_desktop: bool
    is_ios: bool
    is_android: bool
    is_safari: bool
    is_chrome: bool
    browser_name: str
    os_name: str
    has_fullscreen_support: bool
    has_wake_lock_support: bool
    has_vibration_support: bool
    has_reliable_unload_warning_support: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class EffectivenessRating:
    score: int
    label: str
    color: str


def _has(pattern: str, ua: str) -> bool:
    return re.search(pattern, ua, re.IGNORECASE) is not None


def classify(user_agent: str, host: Optional[HostEnvironment] = None) -> DeviceInfo:
    """Pure classification of *user_agent*; feature flags come from *host*."""
    ua = user_agent or ""

    is_mobile = _MOBILE.search(ua) is not None
    is_tablet = _TABLET.search(ua) is not None
    is_ios = _IOS.search(ua) is not None
    is_android = _ANDROID.search(ua) is not None

    is_safari = _has("Safari", ua) and not _has("Chrome", ua)
    is_chrome = _has("Chrome", ua) and not _has("Edge", ua)

    if is_chrome:
        browser_name = "Chrome"
    elif is_safari:
        browser_name = "Safari"
    elif _has("Firefox", ua):
        browser_name = "Firefox"
    elif _has("Edge", ua):
        browser_name = "Edge"
    else:
        browser_name = UNKNOWN

    if is_ios:
        os_name = "iOS"
    elif is_android:
        os_name = "Android"
    elif _has("Windows", ua):
        os_name = "Windows"
    elif _has("Mac", ua):
        os_name = "macOS"
    elif _has("Linux", ua):
        os_name = "Linux"
    else:
        os_name = UNKNOWN

    def supported(feature: Feature) -> bool:
        return host.supports(feature) if host is not None else False

    return DeviceInfo(
        is_mobile=is_mobile,
        is_tablet=is_tablet,
        is_desktop=not is_mobile and not is_tablet,
        is_ios=is_ios,
        is_android=is_android,
        is_safari=is_safari,
        is_chrome=is_chrome,
        browser_name=browser_name,
        os_name=os_name,
        has_fullscreen_support=supported(Feature.FULLSCREEN),
        has_wake_lock_support=supported(Feature.WAKE_LOCK),
        has_vibration_support=supported(Feature.VIBRATION),
        # Safari on iOS does not reliably honour beforeunload
        has_reliable_unload_warning_support=not is_ios,
    )


class DeviceCapabilities:
    """
    Usage:
        caps = DeviceCapabilities(host)
        if caps.is_mobile_or_tablet(): ...
        caps.get_mobile_limitations()
    """

    def __init__(self, host: HostEnvironment):
        self._host = host
        self._info: Optional[DeviceInfo] = None

    def detect(self) -> DeviceInfo:
        if self._info is None:
            self._info = classify(self._host.user_agent, self._host)
        return self._info

    get_info = detect

    # ------------------------------------------------------------------
    # Quick checks
    # ------------------------------------------------------------------

    def is_mobile(self) -> bool:
        return self.detect().is_mobile

    def is_tablet(self) -> bool:
        return self.detect().is_tablet

    def is_desktop(self) -> bool:
        return self.detect().is_desktop

    def is_mobile_or_tablet(self) -> bool:
        info = self.detect()
        return info.is_mobile or info.is_tablet

    def is_ios(self) -> bool:
        return self.detect().is_ios

    def is_android(self) -> bool:
        return self.detect().is_android

    def supports_fullscreen(self) -> bool:
        return self.detect().has_fullscreen_support

    def supports_wake_lock(self) -> bool:
        return self.detect().has_wake_lock_support

    def supports_vibration(self) -> bool:
        return self.detect().has_vibration_support

    def supports_unload_warning(self) -> bool:
        return self.detect().has_reliable_unload_warning_support

    # ------------------------------------------------------------------
    # Advisory text
    # ------------------------------------------------------------------

    def get_mobile_limitations(self) -> List[str]:
        info = self.detect()
        limitations: List[str] = []

        if not info.has_fullscreen_support:
            limitations.append("Fullscreen mode not available")
        if not info.has_reliable_unload_warning_support:
            limitations.append("Exit warnings may not appear")
        if info.is_ios:
            limitations.append("iOS: Home button and app switching cannot be blocked")
        if info.is_android:
            limitations.append("Android: Back button and notification panel cannot be blocked")
        if info.is_mobile:
            limitations.append("Native app notifications cannot be blocked")

        return limitations

    def get_effectiveness_rating(self) -> EffectivenessRating:
        info = self.detect()

        if info.is_desktop:
            return EffectivenessRating(90, "High", "green")
        if info.is_android and info.is_chrome:
            return EffectivenessRating(60, "Medium", "yellow")
        if info.is_ios:
            return EffectivenessRating(40, "Low", "orange")
        if info.is_mobile:
            return EffectivenessRating(50, "Medium-Low", "yellow")
        return EffectivenessRating(70, "Good", "green")
