"""
Abstract base classes for host capabilities.

These interfaces define the contract that both real host bindings
and simulator implementations must follow. Every capability is
optional: the adapter treats a missing one as unavailable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class HapticIntensity(str, Enum):
    """Impact strengths a host can render."""
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class ShareOutcome(str, Enum):
    """Result of a share request."""
    DELIVERED = "delivered"
    FALLBACK_COPIED = "fallback-copied"
    FAILED = "failed"


class AdOutcome(str, Enum):
    """Result of an ad display request."""
    SHOWN = "shown"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SharePayload:
    """What gets shared: the fortune text and an optional link back."""
    text: str
    link: Optional[str] = None


class HostLifecycle(ABC):
    """Startup calls made once the host has loaded the app."""

    @abstractmethod
    def ready(self) -> None:
        """Tell the host the app is ready to be shown."""
        ...

    @abstractmethod
    def expand(self) -> None:
        """Ask the host to give the app its full height."""
        ...


class HapticFeedback(ABC):
    """Impact feedback."""

    @abstractmethod
    def impact(self, intensity: HapticIntensity) -> None:
        ...


class ThemeSource(ABC):
    """Host-provided theme parameters."""

    @abstractmethod
    def theme_params(self) -> Mapping[str, str]:
        """
        Get host theme parameters.

        Returns:
            Mapping of parameter name (e.g. ``bg_color``) to value.
            Missing keys mean "keep the default".
        """
        ...


class StoryShare(ABC):
    """Native share of a text/link payload."""

    @abstractmethod
    def is_supported(self) -> bool:
        ...

    @abstractmethod
    async def share(self, payload: SharePayload) -> None:
        """Share the payload. Raises on failure."""
        ...


class Clipboard(ABC):
    """Plain text copy, used as the share fallback."""

    @abstractmethod
    async def write_text(self, text: str) -> None:
        """Copy text. Raises on failure."""
        ...


class AdController(ABC):
    """Interstitial ad display, keyed by a block identifier."""

    @abstractmethod
    async def show(self) -> bool:
        """
        Show an ad.

        Returns:
            True if the ad was shown to the end
        """
        ...


class SoundCues(ABC):
    """Audible feedback for taps and the break."""

    @abstractmethod
    def play_tap(self) -> None:
        """Soft cue for a priming tap."""
        ...

    @abstractmethod
    def play_crunch(self) -> None:
        """Loud cue for the break."""
        ...
