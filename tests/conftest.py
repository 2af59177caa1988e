import asyncio
import random

import pytest

from fortune_cookie.fortunes.store import FortuneStore
from fortune_cookie.host.adapter import HostCapabilities, HostCapabilityAdapter
from fortune_cookie.host.base import (
    AdController,
    Clipboard,
    HapticFeedback,
    HostLifecycle,
    StoryShare,
    SoundCues,
    ThemeSource,
)


class RecordingLifecycle(HostLifecycle):
    def __init__(self, log, fail=False):
        self.log = log
        self.fail = fail

    def ready(self):
        self.log.append(("ready",))
        if self.fail:
            raise RuntimeError("ready failed")

    def expand(self):
        self.log.append(("expand",))


class RecordingHaptics(HapticFeedback):
    def __init__(self, log, fail=False):
        self.log = log
        self.fail = fail

    def impact(self, intensity):
        self.log.append(("pulse", intensity.value))
        if self.fail:
            raise RuntimeError("no vibration motor")


class RecordingSounds(SoundCues):
    def __init__(self, log, fail=False):
        self.log = log
        self.fail = fail

    def play_tap(self):
        self.log.append(("sound", "tap"))
        if self.fail:
            raise RuntimeError("no audio device")

    def play_crunch(self):
        self.log.append(("sound", "crunch"))
        if self.fail:
            raise RuntimeError("no audio device")


class RecordingStoryShare(StoryShare):
    def __init__(self, log, supported=True, fail=False):
        self.log = log
        self.supported = supported
        self.fail = fail

    def is_supported(self):
        return self.supported

    async def share(self, payload):
        self.log.append(("share", payload.text, payload.link))
        if self.fail:
            raise RuntimeError("share sheet closed")


class RecordingClipboard(Clipboard):
    def __init__(self, log, fail=False):
        self.log = log
        self.fail = fail

    async def write_text(self, text):
        self.log.append(("clipboard", text))
        if self.fail:
            raise PermissionError("clipboard denied")


class RecordingAds(AdController):
    def __init__(self, log, result=True, fail=False, delay=0.0):
        self.log = log
        self.result = result
        self.fail = fail
        self.delay = delay

    async def show(self):
        self.log.append(("ad",))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("no fill")
        return self.result


class StaticTheme(ThemeSource):
    def __init__(self, params):
        self.params = params

    def theme_params(self):
        return self.params


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def store():
    return FortuneStore(["A", "B", "C"], rng=random.Random(7))


@pytest.fixture
def full_capabilities(call_log):
    return HostCapabilities(
        lifecycle=RecordingLifecycle(call_log),
        haptics=RecordingHaptics(call_log),
        theme=StaticTheme({"bg_color": "#000000"}),
        story_share=RecordingStoryShare(call_log),
        clipboard=RecordingClipboard(call_log),
        ads=RecordingAds(call_log),
    )


@pytest.fixture
def adapter(full_capabilities):
    return HostCapabilityAdapter(full_capabilities, ads_enabled=True, ad_timeout=1.0)
