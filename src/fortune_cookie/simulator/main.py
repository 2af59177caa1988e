"""
Simulator entry point.

Runs the fortune cookie session in a desktop pygame window with
simulated host capabilities.
"""

import asyncio
import logging

from fortune_cookie.assets.resolver import AssetResolver, FileProbe, HttpProbe, LocatorProbe
from fortune_cookie.audio.engine import get_audio_engine
from fortune_cookie.config.settings import Settings
from fortune_cookie.config.themes.base import load_theme
from fortune_cookie.core.events import Event, EventBus, EventType
from fortune_cookie.fortunes.store import FortuneStore
from fortune_cookie.host.adapter import HostCapabilityAdapter
from fortune_cookie.session.controller import SessionController
from fortune_cookie.simulator.window import SimulatorWindow, WindowConfig
from fortune_cookie.simulator.host import create_simulated_capabilities

logger = logging.getLogger(__name__)


class FortuneSimulator:
    """Main simulator application wiring the session to the window."""

    def __init__(self, settings: Settings, store: FortuneStore):
        self.settings = settings
        self.event_bus = EventBus()

        # Audio cues
        self.audio = None
        if settings.simulator.audio:
            self.audio = get_audio_engine(
                settings.simulator.crunch_sample or settings.assets_path / "crunch.mp3"
            )
            self.audio.init()

        # Host
        self.capabilities = create_simulated_capabilities(
            share_supported=settings.simulator.share_supported,
            ad_block_id=settings.host.ad_block_id,
        )
        self.adapter = HostCapabilityAdapter(
            self.capabilities,
            ads_enabled=settings.host.ads_enabled,
            ad_timeout=settings.host.ad_timeout,
        )

        # Cookie image
        self.file_probe = FileProbe(settings.assets_path, timeout=settings.host.probe_timeout)
        self.http_probe = HttpProbe(timeout=settings.host.probe_timeout)
        self.resolver = AssetResolver(
            settings.image_candidates,
            LocatorProbe(self.file_probe, self.http_probe),
        )

        self.session = SessionController(
            store,
            self.adapter,
            resolver=self.resolver,
            sounds=self.audio,
            event_bus=self.event_bus,
            theme=load_theme(settings.theme, settings.themes_path),
            tap_threshold=settings.reveal.tap_threshold,
            settle_delay=settings.reveal.settle_delay,
            share_url=settings.host.share_url,
        )

        self.window = SimulatorWindow(
            self.session,
            config=WindowConfig(
                width=settings.simulator.width,
                height=settings.simulator.height,
                fps=settings.simulator.fps,
                fullscreen=settings.simulator.fullscreen,
            ),
            haptics=self.capabilities.haptics,
            ads=self.capabilities.ads,
            file_probe=self.file_probe,
            audio=self.audio,
        )

        self.event_bus.subscribe(EventType.REVEAL_COMPLETE, self._on_reveal)
        self.event_bus.subscribe(EventType.AD_RESULT, self._on_ad_result)

        logger.info("FortuneSimulator initialized")

    def _on_reveal(self, event: Event) -> None:
        logger.info(f"Fortune: {event.data.get('fortune')}")

    def _on_ad_result(self, event: Event) -> None:
        logger.debug(f"Ad finished: {event.data.get('outcome')}")

    async def run(self) -> None:
        """Run the simulator until the window closes."""
        logger.info("Starting Fortune Cookie Simulator...")

        self.session.start_cycle()
        init_task = asyncio.create_task(self.session.initialize())

        try:
            await self.window.run()
        finally:
            if not init_task.done():
                init_task.cancel()
            self.session.teardown()
            await self.http_probe.close()
            if self.audio is not None:
                self.audio.cleanup()


async def run_simulator(settings: Settings, store: FortuneStore) -> None:
    """Create and run the simulator."""
    logger.info("Controls:")
    logger.info("  SPACE / click  - Tap the cookie")
    logger.info("  S              - Share to story")
    logger.info("  R              - Open another")
    logger.info("  F              - Toggle fullscreen")
    logger.info("  M              - Mute")
    logger.info("  ESC            - Quit")

    simulator = FortuneSimulator(settings, store)
    await simulator.run()
