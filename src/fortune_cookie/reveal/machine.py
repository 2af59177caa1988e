"""Tap-to-reveal state machine.

Turns a run of taps into the break/reveal sequence:

    IDLE (0 taps) -> PRIMING (1..threshold-1) -> BREAKING (threshold) -> REVEALED

Side effects per tap, in this order:
    priming tap:  pulse(medium), soft tap cue
    breaking tap: pulse(heavy), crunch cue, fortune selected once,
                  then after the settle delay REVEALED and the completion callback

Taps during BREAKING or REVEALED are ignored.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

from fortune_cookie.fortunes.store import FortuneStore
from fortune_cookie.host.adapter import HostCapabilityAdapter
from fortune_cookie.host.base import HapticIntensity, SoundCues

logger = logging.getLogger(__name__)

DEFAULT_TAP_THRESHOLD = 3
DEFAULT_SETTLE_DELAY = 0.5


class RevealPhase(Enum):
    """Phases of one reveal cycle."""

    IDLE = auto()       # Unbroken cookie, no taps yet
    PRIMING = auto()    # Tapped, not yet broken
    BREAKING = auto()   # Broken, fortune chosen, settle delay running
    REVEALED = auto()   # Fortune handed to the session


@dataclass
class RevealCycle:
    """One tap-to-reveal interaction."""

    tap_count: int = 0
    phase: RevealPhase = RevealPhase.IDLE
    selected_fortune: Optional[str] = None
    completed: bool = False
    settle_task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def accepts_taps(self) -> bool:
        return self.phase in (RevealPhase.IDLE, RevealPhase.PRIMING)


class RevealMachine:
    """Drives a single RevealCycle.

    The machine never waits on host initialization: taps are counted the
    moment they arrive. It owns the cycle's settle task and cancels it on
    ``teardown()``.
    """

    def __init__(
        self,
        cycle: RevealCycle,
        store: FortuneStore,
        adapter: HostCapabilityAdapter,
        sounds: Optional[SoundCues] = None,
        tap_threshold: int = DEFAULT_TAP_THRESHOLD,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ):
        if tap_threshold < 1:
            raise ValueError("tap_threshold must be at least 1")
        self.cycle = cycle
        self.store = store
        self.adapter = adapter
        self.sounds = sounds
        self.tap_threshold = tap_threshold
        self.settle_delay = settle_delay

        # Callbacks
        self._on_complete: Optional[Callable[[str], None]] = None
        self._on_phase_change: Optional[Callable[[RevealPhase, RevealCycle], None]] = None

    @property
    def phase(self) -> RevealPhase:
        return self.cycle.phase

    def set_on_complete(self, callback: Callable[[str], None]) -> None:
        """Set callback invoked once with the fortune when the cycle is revealed."""
        self._on_complete = callback

    def set_on_phase_change(self, callback: Callable[[RevealPhase, RevealCycle], None]) -> None:
        """Set callback for phase changes (also fired on every priming tap)."""
        self._on_phase_change = callback

    def tap(self) -> bool:
        """Process one tap.

        Returns:
            True if the tap was counted, False if it was ignored
        """
        cycle = self.cycle
        if not cycle.accepts_taps:
            logger.debug(f"Tap ignored in phase {cycle.phase.name}")
            return False

        cycle.tap_count += 1

        if cycle.tap_count < self.tap_threshold:
            self._change_phase(RevealPhase.PRIMING)
            self.adapter.pulse(HapticIntensity.MEDIUM)
            self._play_cue("tap")
            return True

        self._break()
        return True

    def _break(self) -> None:
        cycle = self.cycle
        self._change_phase(RevealPhase.BREAKING)
        self.adapter.pulse(HapticIntensity.HEAVY)
        self._play_cue("crunch")

        cycle.selected_fortune = self.store.pick()
        logger.info(f"Cookie broken after {cycle.tap_count} taps")

        cycle.settle_task = asyncio.get_running_loop().create_task(self._settle())

    async def _settle(self) -> None:
        """Wait out the break animation, then reveal."""
        try:
            if self.settle_delay > 0:
                await asyncio.sleep(self.settle_delay)
        except asyncio.CancelledError:
            logger.debug("Settle delay cancelled")
            raise
        self._reveal()

    def _reveal(self) -> None:
        cycle = self.cycle
        if cycle.completed:
            return
        cycle.completed = True
        self._change_phase(RevealPhase.REVEALED)

        if self._on_complete:
            try:
                self._on_complete(cycle.selected_fortune)
            except Exception as e:
                logger.exception(f"Error in reveal completion callback: {e}")

    def _change_phase(self, new_phase: RevealPhase) -> None:
        old_phase = self.cycle.phase
        self.cycle.phase = new_phase
        if old_phase != new_phase:
            logger.debug(f"Reveal phase: {old_phase.name} -> {new_phase.name}")

        if self._on_phase_change:
            try:
                self._on_phase_change(new_phase, self.cycle)
            except Exception as e:
                logger.error(f"Error in phase listener: {e}")

    def _play_cue(self, name: str) -> None:
        if self.sounds is None:
            return
        try:
            if name == "crunch":
                self.sounds.play_crunch()
            else:
                self.sounds.play_tap()
        except Exception as e:
            logger.debug(f"Audio cue '{name}' failed: {e}")

    def teardown(self) -> None:
        """Cancel a pending settle delay so it cannot fire on a discarded cycle."""
        task = self.cycle.settle_task
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Pending reveal cancelled")
        self._on_complete = None
        self._on_phase_change = None
