import asyncio
import random
from unittest.mock import MagicMock

import pytest

from fortune_cookie.fortunes.store import FortuneStore
from fortune_cookie.host.adapter import HostCapabilities, HostCapabilityAdapter
from fortune_cookie.reveal.machine import RevealCycle, RevealMachine, RevealPhase

from conftest import RecordingHaptics, RecordingSounds


def make_machine(call_log, store=None, settle_delay=0.0, fail=False, **kwargs):
    adapter = HostCapabilityAdapter(HostCapabilities(haptics=RecordingHaptics(call_log, fail=fail)))
    cycle = RevealCycle()
    machine = RevealMachine(
        cycle,
        store if store is not None else FortuneStore(["A", "B", "C"], rng=random.Random(3)),
        adapter,
        sounds=RecordingSounds(call_log, fail=fail),
        settle_delay=settle_delay,
        **kwargs,
    )
    return cycle, machine


def test_fewer_than_three_taps_stay_priming(call_log):
    cycle, machine = make_machine(call_log)

    assert cycle.phase == RevealPhase.IDLE
    machine.tap()
    assert (cycle.phase, cycle.tap_count) == (RevealPhase.PRIMING, 1)
    machine.tap()
    assert (cycle.phase, cycle.tap_count) == (RevealPhase.PRIMING, 2)

    assert cycle.selected_fortune is None
    assert ("pulse", "heavy") not in call_log


def test_third_tap_breaks_and_reveals_once(call_log):
    completions = []

    async def scenario():
        cycle, machine = make_machine(call_log)
        machine.set_on_complete(completions.append)
        for _ in range(3):
            machine.tap()
        assert cycle.phase == RevealPhase.BREAKING
        assert cycle.selected_fortune in ("A", "B", "C")
        await cycle.settle_task
        return cycle

    cycle = asyncio.run(scenario())

    assert cycle.phase == RevealPhase.REVEALED
    assert completions == [cycle.selected_fortune]
    assert call_log.count(("pulse", "heavy")) == 1


def test_side_effect_order(call_log):
    async def scenario():
        cycle, machine = make_machine(call_log)
        for _ in range(3):
            machine.tap()
        await cycle.settle_task

    asyncio.run(scenario())

    assert call_log == [
        ("pulse", "medium"), ("sound", "tap"),
        ("pulse", "medium"), ("sound", "tap"),
        ("pulse", "heavy"), ("sound", "crunch"),
    ]


def test_fortune_selected_exactly_once(call_log):
    store = MagicMock(spec=FortuneStore)
    store.pick.return_value = "B"

    async def scenario():
        cycle, machine = make_machine(call_log, store=store)
        for _ in range(6):
            machine.tap()
        await cycle.settle_task
        machine.tap()
        return cycle

    cycle = asyncio.run(scenario())

    store.pick.assert_called_once_with()
    assert cycle.selected_fortune == "B"


def test_over_tapping_after_break_has_no_effect(call_log):
    completions = []

    async def scenario():
        cycle, machine = make_machine(call_log, settle_delay=0.01)
        machine.set_on_complete(completions.append)
        for _ in range(3):
            assert machine.tap() is True
        log_at_break = list(call_log)
        task = cycle.settle_task

        assert machine.tap() is False
        assert machine.tap() is False
        assert cycle.tap_count == 3
        assert cycle.settle_task is task
        assert call_log == log_at_break

        await task
        assert machine.tap() is False
        return cycle

    cycle = asyncio.run(scenario())

    assert cycle.tap_count == 3
    assert len(completions) == 1


def test_failing_feedback_does_not_block_reveal(call_log):
    completions = []

    async def scenario():
        cycle, machine = make_machine(call_log, fail=True)
        machine.set_on_complete(completions.append)
        for _ in range(3):
            machine.tap()
        await cycle.settle_task
        return cycle

    cycle = asyncio.run(scenario())

    assert cycle.phase == RevealPhase.REVEALED
    assert completions == [cycle.selected_fortune]


def test_settle_delay_is_waited(call_log):
    async def scenario():
        cycle, machine = make_machine(call_log, settle_delay=0.05)
        for _ in range(3):
            machine.tap()
        await asyncio.sleep(0.01)
        mid = cycle.phase
        await cycle.settle_task
        return mid, cycle.phase

    assert asyncio.run(scenario()) == (RevealPhase.BREAKING, RevealPhase.REVEALED)


def test_teardown_cancels_pending_reveal(call_log):
    completions = []

    async def scenario():
        cycle, machine = make_machine(call_log, settle_delay=0.05)
        machine.set_on_complete(completions.append)
        for _ in range(3):
            machine.tap()
        machine.teardown()
        await asyncio.sleep(0.1)
        return cycle

    cycle = asyncio.run(scenario())

    assert cycle.settle_task.cancelled()
    assert cycle.phase == RevealPhase.BREAKING
    assert completions == []


def test_completion_callback_error_is_contained(call_log):
    def explode(fortune):
        raise RuntimeError("renderer gone")

    async def scenario():
        cycle, machine = make_machine(call_log)
        machine.set_on_complete(explode)
        for _ in range(3):
            machine.tap()
        await cycle.settle_task
        return cycle

    assert asyncio.run(scenario()).completed


def test_phase_listener_sees_every_tap(call_log):
    seen = []

    async def scenario():
        cycle, machine = make_machine(call_log)
        machine.set_on_phase_change(lambda phase, c: seen.append((phase, c.tap_count)))
        for _ in range(3):
            machine.tap()
        await cycle.settle_task

    asyncio.run(scenario())

    assert seen == [
        (RevealPhase.PRIMING, 1),
        (RevealPhase.PRIMING, 2),
        (RevealPhase.BREAKING, 3),
        (RevealPhase.REVEALED, 3),
    ]


def test_custom_threshold(call_log):
    async def scenario():
        cycle, machine = make_machine(call_log, tap_threshold=1)
        machine.tap()
        await cycle.settle_task
        return cycle

    cycle = asyncio.run(scenario())
    assert cycle.phase == RevealPhase.REVEALED
    assert call_log[0] == ("pulse", "heavy")


def test_threshold_must_be_positive(call_log):
    with pytest.raises(ValueError):
        make_machine(call_log, tap_threshold=0)
