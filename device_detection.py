#!/usr/bin/env python3
"""Decide from the user agent whether the page offers the "View in AR" button."""

import re
from dataclasses import dataclass

_ANDROID = re.compile(r'android', re.IGNORECASE)
_IOS = re.compile(r'iPad|iPhone|iPod')
_MACINTOSH = re.compile(r'Macintosh', re.IGNORECASE)


@dataclass(frozen=True)
class DeviceProfile:
    is_android: bool
    is_ios: bool
    is_mobile: bool

    @property
    def show_ar_button(self) -> bool:
        # Desktop gets the fallback panel instead
        return self.is_mobile


def detect_device(user_agent: str, max_touch_points: int = 0) -> DeviceProfile:
    """
    Classify a browser from its user agent and touch support.

    Modern iPads report themselves as Macintosh, so a Mac with more than one
    touch point counts as iOS.
    """
    user_agent = user_agent or ''
    is_android = bool(_ANDROID.search(user_agent))
    is_ios = bool(_IOS.search(user_agent)) or (
        bool(_MACINTOSH.search(user_agent)) and max_touch_points > 1)
    is_mobile = is_android or is_ios or max_touch_points > 0
    return DeviceProfile(is_android=is_android, is_ios=is_ios, is_mobile=is_mobile)
