"""
Simulated host capabilities for the desktop simulator.

Each class stands in for one host API and keeps just enough state for the
window to draw what the host would have done (shake, toast, ad overlay).
"""

import asyncio
import logging
import time
from typing import Mapping, Optional

from fortune_cookie.host.adapter import HostCapabilities
from fortune_cookie.host.base import (
    AdController,
    Clipboard,
    HapticFeedback,
    HapticIntensity,
    HostLifecycle,
    SharePayload,
    StoryShare,
    ThemeSource,
)

logger = logging.getLogger(__name__)

# Shake amplitude in pixels per haptic intensity
SHAKE_AMPLITUDE = {
    HapticIntensity.LIGHT: 2,
    HapticIntensity.MEDIUM: 5,
    HapticIntensity.HEAVY: 12,
}


class SimulatedLifecycle(HostLifecycle):
    """Records the startup calls."""

    def __init__(self) -> None:
        self.is_ready = False
        self.is_expanded = False

    def ready(self) -> None:
        self.is_ready = True
        logger.debug("Host: ready()")

    def expand(self) -> None:
        self.is_expanded = True
        logger.debug("Host: expand()")


class SimulatedHaptics(HapticFeedback):
    """Renders haptic impacts as a short decaying window shake."""

    def __init__(self, duration: float = 0.25) -> None:
        self.duration = duration
        self._amplitude = 0
        self._started = 0.0

    def impact(self, intensity: HapticIntensity) -> None:
        self._amplitude = SHAKE_AMPLITUDE.get(intensity, 0)
        self._started = time.monotonic()
        logger.debug(f"Haptic impact: {intensity.value}")

    def offset(self, now: Optional[float] = None) -> tuple[int, int]:
        """Current (dx, dy) shake offset for drawing."""
        now = time.monotonic() if now is None else now
        elapsed = now - self._started
        if self._amplitude == 0 or elapsed >= self.duration:
            return (0, 0)
        remaining = 1.0 - elapsed / self.duration
        # Alternate direction every ~30ms
        sign = 1 if int(elapsed * 33) % 2 == 0 else -1
        return (int(sign * self._amplitude * remaining), 0)


class SimulatedThemeSource(ThemeSource):
    """Fixed host theme parameters."""

    def __init__(self, params: Mapping[str, str] | None = None) -> None:
        self._params = dict(params or {})

    def theme_params(self) -> Mapping[str, str]:
        return self._params


class SimulatedClipboard(Clipboard):
    """In-memory clipboard."""

    def __init__(self) -> None:
        self.text: Optional[str] = None

    async def write_text(self, text: str) -> None:
        self.text = text
        logger.info(f"Clipboard: {text}")


class SimulatedStoryShare(StoryShare):
    """Story share that just remembers the last payload."""

    def __init__(self, supported: bool = True) -> None:
        self.supported = supported
        self.shared: list[SharePayload] = []

    def is_supported(self) -> bool:
        return self.supported

    async def share(self, payload: SharePayload) -> None:
        self.shared.append(payload)
        logger.info(f"Shared to story: {payload.text} ({payload.link or 'no link'})")


class SimulatedAds(AdController):
    """Full-screen ad placeholder shown for a fixed duration."""

    def __init__(self, block_id: str = "", duration: float = 2.0) -> None:
        self.block_id = block_id
        self.duration = duration
        self.showing = False

    async def show(self) -> bool:
        self.showing = True
        logger.info(f"Showing ad block '{self.block_id}'")
        try:
            await asyncio.sleep(self.duration)
        finally:
            self.showing = False
        return True


def create_simulated_capabilities(
    share_supported: bool = True,
    ad_block_id: str = "",
    theme_params: Mapping[str, str] | None = None,
) -> HostCapabilities:
    """Create the full set of simulated capabilities."""
    return HostCapabilities(
        lifecycle=SimulatedLifecycle(),
        haptics=SimulatedHaptics(),
        theme=SimulatedThemeSource(theme_params),
        story_share=SimulatedStoryShare(supported=share_supported),
        clipboard=SimulatedClipboard(),
        ads=SimulatedAds(block_id=ad_block_id),
    )
