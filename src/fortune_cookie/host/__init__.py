"""Host capability interfaces and the adapter the core talks to."""

from fortune_cookie.host.base import (
    AdController,
    AdOutcome,
    Clipboard,
    HapticFeedback,
    HapticIntensity,
    HostLifecycle,
    ShareOutcome,
    SharePayload,
    SoundCues,
    StoryShare,
    ThemeSource,
)
from fortune_cookie.host.adapter import CapabilityState, HostCapabilities, HostCapabilityAdapter

__all__ = [
    "AdController",
    "AdOutcome",
    "Clipboard",
    "HapticFeedback",
    "HapticIntensity",
    "HostLifecycle",
    "ShareOutcome",
    "SharePayload",
    "SoundCues",
    "StoryShare",
    "ThemeSource",
    "CapabilityState",
    "HostCapabilities",
    "HostCapabilityAdapter",
]
