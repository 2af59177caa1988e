"""Core framework components for the fortune cookie session."""

from .state import State, StateContext, StateMachine
from .events import EventBus, Event, EventType

__all__ = ["State", "StateContext", "StateMachine", "EventBus", "Event", "EventType"]
