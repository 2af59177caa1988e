"""Session controller - screen-level lifecycle around reveal cycles.

    IDLE -> AWAITING_REVEAL -> SHOWING_FORTUNE -> IDLE (open another)

The controller owns the current RevealCycle and its machine, receives the
reveal completion, and exposes the share and reset actions.
"""

import asyncio
import logging
from typing import Optional

from fortune_cookie.assets.resolver import AssetHandle, AssetResolver, FALLBACK
from fortune_cookie.config.themes.base import Theme
from fortune_cookie.core.events import Event, EventBus, EventType
from fortune_cookie.core.state import State, StateMachine
from fortune_cookie.fortunes.store import FortuneStore
from fortune_cookie.host.adapter import CapabilityState, HostCapabilityAdapter
from fortune_cookie.host.base import ShareOutcome, SharePayload, SoundCues
from fortune_cookie.reveal.machine import (
    DEFAULT_SETTLE_DELAY,
    DEFAULT_TAP_THRESHOLD,
    RevealCycle,
    RevealMachine,
    RevealPhase,
)

logger = logging.getLogger(__name__)


class SessionController:
    """Runs fortune cookie cycles for one user session."""

    def __init__(
        self,
        store: FortuneStore,
        adapter: HostCapabilityAdapter,
        resolver: Optional[AssetResolver] = None,
        sounds: Optional[SoundCues] = None,
        event_bus: Optional[EventBus] = None,
        theme: Optional[Theme] = None,
        tap_threshold: int = DEFAULT_TAP_THRESHOLD,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        share_url: str = "",
    ):
        self.store = store
        self.adapter = adapter
        self.resolver = resolver
        self.sounds = sounds
        self.event_bus = event_bus or EventBus()
        self.theme = theme or Theme()
        self.tap_threshold = tap_threshold
        self.settle_delay = settle_delay
        self.share_url = share_url

        self.state_machine = StateMachine()
        self.capabilities: Optional[CapabilityState] = None
        self.theme_variables: dict[str, str] = self.theme.variables()

        self._cycle: Optional[RevealCycle] = None
        self._machine: Optional[RevealMachine] = None
        self._ad_task: Optional[asyncio.Task] = None

    # Read-only views
    @property
    def state(self) -> State:
        return self.state_machine.state

    @property
    def cycle(self) -> Optional[RevealCycle]:
        return self._cycle

    @property
    def fortune(self) -> Optional[str]:
        """Fortune currently displayed (only in SHOWING_FORTUNE)."""
        return self.state_machine.context.fortune

    @property
    def asset(self) -> AssetHandle:
        """What to draw for the cookie right now."""
        return self.resolver.current if self.resolver else FALLBACK

    @property
    def hint(self) -> str:
        """Prompt under the unbroken cookie."""
        if self._cycle is None:
            return self.theme.messages.hint_for(0)
        if self._cycle.phase in (RevealPhase.IDLE, RevealPhase.PRIMING):
            return self.theme.messages.hint_for(self._cycle.tap_count)
        if self._cycle.phase == RevealPhase.BREAKING:
            return self.theme.messages.opening
        return ""

    # Lifecycle
    async def initialize(self) -> CapabilityState:
        """Host startup, theme, asset probing and capability detection.

        Taps are accepted while this runs.
        """
        self.adapter.ready()
        self.theme_variables = self.adapter.apply_theme(self.theme.variables())

        handle = FALLBACK
        if self.resolver is not None:
            handle = await self.resolver.resolve()
            self._emit(EventType.ASSET_RESOLVED, locator=handle.locator, fallback=handle.is_fallback)

        self.capabilities = self.adapter.detect(image_asset_available=not handle.is_fallback)
        self._emit(EventType.SESSION_READY, capabilities=self.capabilities)
        return self.capabilities

    def start_cycle(self) -> bool:
        """Show a fresh unbroken cookie. No-op while a cycle is active."""
        if self._cycle is not None:
            logger.debug("start_cycle ignored: cycle already active")
            return False
        if not self.state_machine.can_transition(State.AWAITING_REVEAL):
            logger.warning(f"start_cycle not allowed in {self.state.name}")
            return False

        self._cycle = RevealCycle()
        self._machine = RevealMachine(
            self._cycle,
            self.store,
            self.adapter,
            sounds=self.sounds,
            tap_threshold=self.tap_threshold,
            settle_delay=self.settle_delay,
        )
        self._machine.set_on_complete(self.on_reveal_complete)
        self._machine.set_on_phase_change(self._on_phase_change)

        cycle_number = self.state_machine.context.cycle_number + 1
        self.state_machine.transition(State.AWAITING_REVEAL, fortune=None, cycle_number=cycle_number)
        self._emit(EventType.CYCLE_STARTED, cycle=cycle_number)
        return True

    def tap(self) -> bool:
        """Deliver a tap to the active cycle, starting one if the screen is idle.

        Returns:
            True if the tap was counted
        """
        if self.state == State.IDLE and self._cycle is None:
            self.start_cycle()
        if self._machine is None or self.state != State.AWAITING_REVEAL:
            logger.debug(f"Tap ignored in {self.state.name}")
            return False

        counted = self._machine.tap()
        if counted:
            self._emit(EventType.TAP, tap_count=self._cycle.tap_count)
        return counted

    def on_reveal_complete(self, fortune: str) -> None:
        """Completion callback from the reveal machine."""
        if self.state != State.AWAITING_REVEAL:
            logger.warning(f"Reveal completion ignored in {self.state.name}")
            return

        self.state_machine.transition(State.SHOWING_FORTUNE, fortune=fortune)
        self._emit(EventType.REVEAL_COMPLETE, fortune=fortune)
        self._schedule_ad()

    async def request_share(self) -> Optional[ShareOutcome]:
        """Share the displayed fortune. Returns None outside SHOWING_FORTUNE.

        The outcome is user feedback only; session state is unchanged.
        """
        if self.state != State.SHOWING_FORTUNE:
            logger.warning(f"Share requested in {self.state.name}, ignoring")
            return None

        payload = SharePayload(text=self.fortune, link=self.share_url or None)
        outcome = await self.adapter.share(payload)
        self._emit(EventType.SHARE_RESULT, outcome=outcome, message=self.feedback_for(outcome))
        return outcome

    def feedback_for(self, outcome: ShareOutcome) -> str:
        """User-facing confirmation for a share outcome."""
        messages = self.theme.messages
        if outcome == ShareOutcome.DELIVERED:
            return messages.shared
        if outcome == ShareOutcome.FALLBACK_COPIED:
            return messages.copied
        return messages.share_failed

    def request_reset(self) -> bool:
        """Discard the revealed cycle and return to IDLE ("open another")."""
        if self.state != State.SHOWING_FORTUNE:
            logger.warning(f"Reset requested in {self.state.name}, ignoring")
            return False

        self._discard_cycle()
        self.state_machine.transition(State.IDLE, fortune=None)
        self._emit(EventType.SESSION_RESET)
        return True

    def report_asset_load_failure(self) -> AssetHandle:
        """The resolved image failed to load at runtime; switch to the glyph."""
        if self.resolver is None:
            return FALLBACK
        handle = self.resolver.mark_load_failed()
        self._emit(EventType.ASSET_DOWNGRADED)
        return handle

    def teardown(self) -> None:
        """Stop everything pending; safe to call in any state."""
        self._discard_cycle()
        if self._ad_task is not None and not self._ad_task.done():
            self._ad_task.cancel()
        self._ad_task = None
        if self.state != State.IDLE:
            self.state_machine.transition(State.IDLE, fortune=None)
        logger.info("Session torn down")

    # Internals
    def _discard_cycle(self) -> None:
        if self._machine is not None:
            self._machine.teardown()
        self._machine = None
        self._cycle = None

    def _schedule_ad(self) -> None:
        if not self.adapter.ads_available:
            return
        if self._ad_task is not None and not self._ad_task.done():
            return
        self._ad_task = asyncio.get_running_loop().create_task(self._run_ad())

    async def _run_ad(self) -> None:
        outcome = await self.adapter.show_ad()
        logger.debug(f"Ad outcome: {outcome.value}")
        self._emit(EventType.AD_RESULT, outcome=outcome)

    def _on_phase_change(self, phase: RevealPhase, cycle: RevealCycle) -> None:
        self._emit(EventType.PHASE_CHANGED, phase=phase, tap_count=cycle.tap_count)

    def _emit(self, event_type: EventType, **data) -> None:
        self.event_bus.emit(Event(event_type, data=data, source="session"))
