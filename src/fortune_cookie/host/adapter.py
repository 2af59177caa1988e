"""Host capability adapter.

Wraps the optional host capabilities behind methods that never raise.
Each capability is isolated: a failure in one has no effect on the others,
and every failure becomes a no-op or an explicit outcome value.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from fortune_cookie.host.base import (
    AdController,
    AdOutcome,
    Clipboard,
    HapticFeedback,
    HapticIntensity,
    HostLifecycle,
    ShareOutcome,
    SharePayload,
    StoryShare,
    ThemeSource,
)

logger = logging.getLogger(__name__)


@dataclass
class HostCapabilities:
    """The capabilities a host binding provides. Any may be None."""
    lifecycle: Optional[HostLifecycle] = None
    haptics: Optional[HapticFeedback] = None
    theme: Optional[ThemeSource] = None
    story_share: Optional[StoryShare] = None
    clipboard: Optional[Clipboard] = None
    ads: Optional[AdController] = None


@dataclass(frozen=True)
class CapabilityState:
    """What the host turned out to support. Detected once per session."""
    haptics_available: bool = False
    share_available: bool = False
    ad_available: bool = False
    image_asset_available: bool = False
    clipboard_available: bool = False
    theme_available: bool = False


class HostCapabilityAdapter:
    """Best-effort access to host capabilities.

    None of the public methods lets an exception escape.
    """

    def __init__(
        self,
        capabilities: HostCapabilities | None = None,
        ads_enabled: bool = True,
        ad_timeout: float = 15.0,
    ):
        self.capabilities = capabilities or HostCapabilities()
        self.ads_enabled = ads_enabled
        self.ad_timeout = ad_timeout

    @property
    def ads_available(self) -> bool:
        return self.ads_enabled and self.capabilities.ads is not None

    def ready(self) -> None:
        """Run the host startup lifecycle (ready, then expand)."""
        lifecycle = self.capabilities.lifecycle
        if lifecycle is None:
            return
        try:
            lifecycle.ready()
            lifecycle.expand()
        except Exception as e:
            logger.warning(f"Host lifecycle call failed: {e}")

    def detect(self, image_asset_available: bool = False) -> CapabilityState:
        """Snapshot which capabilities are usable."""
        caps = self.capabilities
        share_available = False
        if caps.story_share is not None:
            try:
                share_available = bool(caps.story_share.is_supported())
            except Exception as e:
                logger.debug(f"Share support check failed: {e}")

        state = CapabilityState(
            haptics_available=caps.haptics is not None,
            share_available=share_available,
            ad_available=self.ads_available,
            image_asset_available=image_asset_available,
            clipboard_available=caps.clipboard is not None,
            theme_available=caps.theme is not None,
        )
        logger.info(f"Host capabilities: {state}")
        return state

    def pulse(self, intensity: HapticIntensity) -> None:
        """Haptic impact; silently skipped when unsupported or failing."""
        haptics = self.capabilities.haptics
        if haptics is None:
            return
        try:
            haptics.impact(intensity)
        except Exception as e:
            logger.debug(f"Haptic feedback not available: {e}")

    async def share(self, payload: SharePayload) -> ShareOutcome:
        """Share natively, falling back to a clipboard copy of the text."""
        story_share = self.capabilities.story_share
        if story_share is not None:
            try:
                if story_share.is_supported():
                    await story_share.share(payload)
                    logger.info("Fortune shared to story")
                    return ShareOutcome.DELIVERED
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Share to story not available: {e}")

        clipboard = self.capabilities.clipboard
        if clipboard is None:
            logger.warning("Share failed: no story share and no clipboard")
            return ShareOutcome.FAILED
        try:
            await clipboard.write_text(payload.text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Clipboard copy failed: {e}")
            return ShareOutcome.FAILED

        logger.info("Fortune copied to clipboard")
        return ShareOutcome.FALLBACK_COPIED

    async def show_ad(self) -> AdOutcome:
        """Show an ad if possible. Never gates the caller."""
        ads = self.capabilities.ads
        if not self.ads_enabled or ads is None:
            return AdOutcome.SKIPPED
        try:
            shown = await asyncio.wait_for(ads.show(), timeout=self.ad_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Ad timed out after {self.ad_timeout}s")
            return AdOutcome.SKIPPED
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Ad display failed: {e}")
            return AdOutcome.SKIPPED
        return AdOutcome.SHOWN if shown else AdOutcome.SKIPPED

    def apply_theme(self, defaults: Mapping[str, str]) -> dict[str, str]:
        """Merge host theme parameters over ``defaults``.

        Only keys already present in ``defaults`` are taken; absent or
        empty host values keep the default.
        """
        variables = dict(defaults)
        source = self.capabilities.theme
        if source is None:
            return variables
        try:
            params = source.theme_params() or {}
        except Exception as e:
            logger.debug(f"Theme params not available: {e}")
            return variables

        for key in variables:
            value = params.get(key)
            if value:
                variables[key] = value
        return variables
