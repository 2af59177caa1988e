from fortune_cookie.core.events import Event, EventBus, EventType
from fortune_cookie.core.state import State, StateMachine


def test_valid_transitions():
    sm = StateMachine()

    assert sm.transition(State.AWAITING_REVEAL, cycle_number=1)
    assert sm.transition(State.SHOWING_FORTUNE, fortune="A")
    assert sm.context.fortune == "A"
    assert sm.transition(State.IDLE, fortune=None)
    assert sm.context.cycle_number == 1


def test_invalid_transitions_are_rejected():
    sm = StateMachine()

    assert sm.transition(State.SHOWING_FORTUNE) is False
    assert sm.state == State.IDLE
    sm.transition(State.AWAITING_REVEAL)
    assert sm.transition(State.AWAITING_REVEAL) is False


def test_unknown_context_keys_are_ignored():
    sm = StateMachine()
    sm.transition(State.AWAITING_REVEAL, bogus=1)
    assert not hasattr(sm.context, "bogus")


def test_event_bus_subscribe_and_unsubscribe():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(EventType.TAP, lambda e: seen.append(e.source))

    bus.emit(Event(EventType.TAP, source="pointer"))
    unsubscribe()
    bus.emit(Event(EventType.TAP, source="keyboard"))

    assert seen == ["pointer"]


def test_event_bus_only_delivers_matching_type():
    bus = EventBus()
    seen = []
    bus.subscribe(EventType.REVEAL_COMPLETE, lambda e: seen.append(e.data["fortune"]))

    bus.emit(Event(EventType.TAP))
    bus.emit(Event(EventType.REVEAL_COMPLETE, data={"fortune": "A"}))

    assert seen == ["A"]


def test_event_bus_handler_error_does_not_stop_others():
    bus = EventBus()
    seen = []

    def broken(event):
        raise ValueError("boom")

    bus.subscribe(EventType.SESSION_RESET, broken)
    bus.subscribe(EventType.SESSION_RESET, lambda e: seen.append(e.type))
    bus.emit(Event(EventType.SESSION_RESET))

    assert seen == [EventType.SESSION_RESET]


def test_handler_may_unsubscribe_during_emit():
    bus = EventBus()
    seen = []
    unsubscribe = None

    def once(event):
        seen.append("once")
        unsubscribe()

    unsubscribe = bus.subscribe(EventType.TAP, once)
    bus.subscribe(EventType.TAP, lambda e: seen.append("always"))
    bus.emit(Event(EventType.TAP))
    bus.emit(Event(EventType.TAP))

    assert seen == ["once", "always", "always"]
