"""Tap-to-reveal state machine."""

from fortune_cookie.reveal.machine import (
    RevealCycle,
    RevealMachine,
    RevealPhase,
    DEFAULT_TAP_THRESHOLD,
    DEFAULT_SETTLE_DELAY,
)

__all__ = [
    "RevealCycle",
    "RevealMachine",
    "RevealPhase",
    "DEFAULT_TAP_THRESHOLD",
    "DEFAULT_SETTLE_DELAY",
]
