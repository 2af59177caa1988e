import asyncio

from fortune_cookie.host.adapter import HostCapabilityAdapter
from fortune_cookie.host.base import AdOutcome, HapticIntensity, ShareOutcome, SharePayload
from fortune_cookie.simulator.host import (
    SimulatedAds,
    SimulatedHaptics,
    create_simulated_capabilities,
)


def test_haptic_shake_decays():
    haptics = SimulatedHaptics(duration=0.2)
    assert haptics.offset() == (0, 0)

    haptics.impact(HapticIntensity.HEAVY)
    start = haptics._started

    assert abs(haptics.offset(start)[0]) == 12
    assert abs(haptics.offset(start + 0.1)[0]) < 12
    assert haptics.offset(start + 0.2) == (0, 0)


def test_ad_overlay_visible_only_while_showing():
    ads = SimulatedAds(duration=0.02)

    async def scenario():
        task = asyncio.create_task(ads.show())
        await asyncio.sleep(0)
        during = ads.showing
        result = await task
        return during, result

    during, result = asyncio.run(scenario())

    assert during is True
    assert result is True
    assert ads.showing is False


def test_simulated_capabilities_through_adapter():
    caps = create_simulated_capabilities(share_supported=False, ad_block_id="block-1")
    caps.ads.duration = 0
    adapter = HostCapabilityAdapter(caps, ads_enabled=True)

    adapter.ready()
    state = adapter.detect()
    outcome = asyncio.run(adapter.share(SharePayload(text="A")))
    ad = asyncio.run(adapter.show_ad())

    assert caps.lifecycle.is_ready and caps.lifecycle.is_expanded
    assert state.haptics_available and not state.share_available
    assert outcome == ShareOutcome.FALLBACK_COPIED
    assert caps.clipboard.text == "A"
    assert ad == AdOutcome.SHOWN
