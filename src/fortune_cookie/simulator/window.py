"""
Main simulator window using pygame.

Shows the cookie the way the mini-app would inside a chat client and
simulates the host around it: haptics shake the cookie, shares and
clipboard copies show a toast, ads cover the screen for a moment.
"""

import asyncio
import io
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiohttp
import pygame

from fortune_cookie.assets.resolver import FileProbe
from fortune_cookie.audio.engine import AudioEngine
from fortune_cookie.config.themes.base import hex_to_rgb
from fortune_cookie.core.events import Event, EventType
from fortune_cookie.core.state import State
from fortune_cookie.reveal.machine import RevealPhase
from fortune_cookie.session.controller import SessionController
from fortune_cookie.simulator.host import SimulatedAds, SimulatedHaptics

logger = logging.getLogger(__name__)

TOAST_SECONDS = 2.5


@dataclass
class WindowConfig:
    """Simulator window configuration."""
    width: int = 480
    height: int = 720
    title: str = "Fortune Cookie Simulator"
    fullscreen: bool = False
    fps: int = 60
    cookie_size: int = 240


class SimulatorWindow:
    """
    Desktop stand-in for the mini-app screen.

    Keyboard Mapping:
        SPACE / click on cookie: Tap
        S / share button: Share to story
        R / again button: Open another
        F: Toggle fullscreen
        M: Mute
        ESC: Exit simulator
    """

    def __init__(
        self,
        session: SessionController,
        config: WindowConfig | None = None,
        haptics: Optional[SimulatedHaptics] = None,
        ads: Optional[SimulatedAds] = None,
        file_probe: Optional[FileProbe] = None,
        audio: Optional[AudioEngine] = None,
    ) -> None:
        self.session = session
        self.config = config or WindowConfig()
        self.haptics = haptics
        self.ads = ads
        self.file_probe = file_probe or FileProbe()
        self.audio = audio

        # Pygame setup
        self._screen: pygame.Surface | None = None
        self._clock: pygame.time.Clock | None = None
        self._running = False

        self._layout: dict[str, pygame.Rect] = {}
        self._font: pygame.font.Font | None = None
        self._small_font: pygame.font.Font | None = None

        self._cookie_image: pygame.Surface | None = None
        self._loaded_locator: Optional[str] = None
        self._toast: Optional[tuple[str, float]] = None
        self._tasks: set[asyncio.Task] = set()

        self.session.event_bus.subscribe(EventType.SHARE_RESULT, self._on_share_result)
        self.session.event_bus.subscribe(EventType.SESSION_READY, self._on_session_ready)

        logger.info("SimulatorWindow created")

    def _init_pygame(self) -> None:
        """Initialize pygame and create window."""
        pygame.init()
        pygame.display.set_caption(self.config.title)

        flags = pygame.DOUBLEBUF
        if self.config.fullscreen:
            flags |= pygame.FULLSCREEN

        self._screen = pygame.display.set_mode(
            (self.config.width, self.config.height),
            flags
        )
        self._clock = pygame.time.Clock()

        pygame.font.init()
        self._font, self._small_font = self._load_fonts()
        self._calculate_layout()

        logger.info(f"Pygame initialized: {self.config.width}x{self.config.height}")

    def _load_fonts(self) -> tuple[pygame.font.Font, pygame.font.Font]:
        """Pick a font with Cyrillic coverage."""
        font_paths = [
            "/System/Library/Fonts/Supplemental/Arial Unicode.ttf",
            "/Library/Fonts/Arial Unicode.ttf",
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        ]
        for font_path in font_paths:
            if os.path.exists(font_path):
                try:
                    font = pygame.font.Font(font_path, 22)
                    small = pygame.font.Font(font_path, 16)
                    logger.info(f"Using font: {font_path}")
                    return font, small
                except (OSError, pygame.error) as e:
                    logger.debug(f"Font {font_path} failed: {e}")

        for font_name in ("DejaVu Sans", "Noto Sans", "Arial"):
            font_file = pygame.font.match_font(font_name)
            if font_file:
                logger.info(f"Using system font: {font_name}")
                return pygame.font.Font(font_file, 22), pygame.font.Font(font_file, 16)

        logger.warning("No Cyrillic font found, using default")
        return pygame.font.SysFont(None, 26), pygame.font.SysFont(None, 20)

    def _calculate_layout(self) -> None:
        """Calculate positions for all UI elements."""
        w, h = self.config.width, self.config.height
        size = self.config.cookie_size

        cookie = pygame.Rect((w - size) // 2, h // 2 - size // 2 - 60, size, size)
        button_w = w - 80
        button_h = 52

        self._layout = {
            "cookie": cookie,
            "hint": pygame.Rect(20, cookie.bottom + 20, w - 40, 40),
            "fortune": pygame.Rect(30, h // 2 - 150, w - 60, 200),
            "share": pygame.Rect(40, h - 2 * button_h - 50, button_w, button_h),
            "again": pygame.Rect(40, h - button_h - 30, button_w, button_h),
            "toast": pygame.Rect(30, 30, w - 60, 44),
        }

    # Input
    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                self._handle_keydown(event)

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._handle_click(event.pos)

    def _handle_keydown(self, event: pygame.event.Event) -> None:
        """Handle key press."""
        key = event.key

        if key == pygame.K_ESCAPE:
            self._running = False
        elif key == pygame.K_f:
            self._toggle_fullscreen()
        elif key in (pygame.K_SPACE, pygame.K_RETURN):
            self.session.tap()
        elif key == pygame.K_s:
            self._request_share()
        elif key == pygame.K_r:
            self.session.request_reset()
        elif key == pygame.K_m and self.audio is not None:
            muted = self.audio.toggle_mute()
            logger.info(f"Audio {'muted' if muted else 'unmuted'}")

    def _handle_click(self, pos: tuple[int, int]) -> None:
        if self.session.state == State.SHOWING_FORTUNE:
            if self._layout["share"].collidepoint(pos):
                self._request_share()
            elif self._layout["again"].collidepoint(pos):
                self.session.request_reset()
        elif self._layout["cookie"].collidepoint(pos):
            self.session.tap()

    def _request_share(self) -> None:
        if self.session.state != State.SHOWING_FORTUNE:
            return
        self._spawn(self.session.request_share())

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Session events
    def _on_share_result(self, event: Event) -> None:
        message = event.data.get("message")
        if message:
            self._toast = (message, time.monotonic() + TOAST_SECONDS)

    def _on_session_ready(self, event: Event) -> None:
        self._spawn(self._load_cookie_image())

    async def _load_cookie_image(self) -> None:
        """Load the resolved image; a failure downgrades to the glyph."""
        handle = self.session.asset
        if handle.is_fallback or handle.locator == self._loaded_locator:
            return

        locator = handle.locator
        try:
            if locator.startswith(("http://", "https://")):
                async with aiohttp.ClientSession() as http:
                    async with http.get(locator) as response:
                        response.raise_for_status()
                        data = await response.read()
            else:
                data = await asyncio.to_thread(self.file_probe.resolve_path(locator).read_bytes)
            image = pygame.image.load(io.BytesIO(data), Path(locator).name)
        except (aiohttp.ClientError, OSError, pygame.error) as e:
            logger.warning(f"Cookie image failed to load ({locator}): {e}")
            self.session.report_asset_load_failure()
            return

        size = self.config.cookie_size
        self._cookie_image = pygame.transform.smoothscale(image, (size, size))
        self._loaded_locator = locator
        logger.info(f"Cookie image loaded: {locator}")

    # Rendering
    def _render(self) -> None:
        """Render the screen."""
        if not self._screen:
            return

        colors = self.session.theme_variables
        self._screen.fill(hex_to_rgb(colors["bg_color"]))

        if self.session.state == State.SHOWING_FORTUNE:
            self._render_fortune()
        else:
            self._render_cookie()
            self._render_hint()

        self._render_toast()

        if self.ads is not None and self.ads.showing:
            self._render_ad_overlay()

        pygame.display.flip()

    def _render_cookie(self) -> None:
        rect = self._layout["cookie"].copy()
        if self.haptics is not None:
            dx, dy = self.haptics.offset()
            rect.move_ip(dx, dy)

        cycle = self.session.cycle
        broken = cycle is not None and cycle.phase in (RevealPhase.BREAKING, RevealPhase.REVEALED)

        if self._cookie_image is not None and not self.session.asset.is_fallback:
            if broken:
                half = rect.width // 2
                left = self._cookie_image.subsurface((0, 0, half, rect.height))
                right = self._cookie_image.subsurface((half, 0, rect.width - half, rect.height))
                self._screen.blit(pygame.transform.rotate(left, 12), (rect.x - 20, rect.y + 10))
                self._screen.blit(pygame.transform.rotate(right, -12), (rect.x + half + 20, rect.y + 10))
            else:
                self._screen.blit(self._cookie_image, rect)
            return

        self._draw_glyph_cookie(rect, broken)

    def _draw_glyph_cookie(self, rect: pygame.Rect, broken: bool) -> None:
        """Drawn stand-in for the cookie glyph."""
        shell = (222, 164, 84)
        edge = (176, 116, 48)
        body = rect.inflate(-rect.width // 5, -rect.height // 3)

        if broken:
            half = body.width // 2
            left = pygame.Rect(body.x - 24, body.y + 8, half, body.height)
            right = pygame.Rect(body.x + half + 24, body.y + 8, half, body.height)
            for part in (left, right):
                pygame.draw.ellipse(self._screen, shell, part)
                pygame.draw.ellipse(self._screen, edge, part, 4)
            return

        pygame.draw.ellipse(self._screen, shell, body)
        pygame.draw.ellipse(self._screen, edge, body, 4)
        pygame.draw.arc(self._screen, edge, body.inflate(-body.width // 3, 0), 0.3, 2.8, 4)

    def _render_hint(self) -> None:
        hint = self.session.hint
        if not hint:
            return
        color = hex_to_rgb(self.session.theme_variables["hint_color"])
        surf = self._font.render(hint, True, color)
        self._screen.blit(surf, surf.get_rect(center=self._layout["hint"].center))

    def _render_fortune(self) -> None:
        colors = self.session.theme_variables
        card = self._layout["fortune"]
        pygame.draw.rect(self._screen, (255, 252, 240), card, border_radius=16)
        pygame.draw.rect(self._screen, hex_to_rgb(colors["accent_color"]), card, 3, border_radius=16)

        lines = self._wrap(self.session.fortune or "", card.width - 40)
        line_h = self._font.get_linesize()
        y = card.centery - len(lines) * line_h // 2
        for line in lines:
            surf = self._font.render(line, True, hex_to_rgb(colors["text_color"]))
            self._screen.blit(surf, surf.get_rect(midtop=(card.centerx, y)))
            y += line_h

        messages = self.session.theme.messages
        self._render_button("share", messages.share, colors)
        self._render_button("again", messages.again, colors)

    def _render_button(self, name: str, label: str, colors: dict[str, str]) -> None:
        rect = self._layout[name]
        pygame.draw.rect(self._screen, hex_to_rgb(colors["button_color"]), rect, border_radius=12)
        surf = self._small_font.render(label, True, hex_to_rgb(colors["button_text_color"]))
        self._screen.blit(surf, surf.get_rect(center=rect.center))

    def _render_toast(self) -> None:
        if self._toast is None:
            return
        message, expires = self._toast
        if time.monotonic() >= expires:
            self._toast = None
            return
        rect = self._layout["toast"]
        pygame.draw.rect(self._screen, (30, 30, 30), rect, border_radius=10)
        surf = self._small_font.render(message, True, (255, 255, 255))
        self._screen.blit(surf, surf.get_rect(center=rect.center))

    def _render_ad_overlay(self) -> None:
        overlay = pygame.Surface((self.config.width, self.config.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 200))
        self._screen.blit(overlay, (0, 0))
        surf = self._font.render("Реклама", True, (255, 255, 255))
        self._screen.blit(surf, surf.get_rect(center=(self.config.width // 2, self.config.height // 2)))

    def _wrap(self, text: str, max_width: int) -> list[str]:
        """Greedy word wrap for the current font."""
        lines: list[str] = []
        current = ""
        for word in text.split():
            candidate = f"{current} {word}".strip()
            if self._font.size(candidate)[0] <= max_width or not current:
                current = candidate
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
        return lines

    def _toggle_fullscreen(self) -> None:
        """Toggle fullscreen mode."""
        self.config.fullscreen = not self.config.fullscreen
        flags = pygame.DOUBLEBUF | (pygame.FULLSCREEN if self.config.fullscreen else 0)
        self._screen = pygame.display.set_mode((self.config.width, self.config.height), flags)
        self._calculate_layout()
        logger.info(f"Fullscreen: {self.config.fullscreen}")

    async def run(self) -> None:
        """Main simulator loop."""
        self._init_pygame()
        self._running = True

        logger.info("Simulator started")

        while self._running:
            self._handle_events()
            self._render()

            # Frame timing
            if self._clock:
                self._clock.tick(self.config.fps)

            # Yield so the settle delay, probes and shares can run
            await asyncio.sleep(0)

        self._cleanup()

    def _cleanup(self) -> None:
        """Cancel pending work and close pygame."""
        for task in list(self._tasks):
            task.cancel()
        pygame.quit()
        logger.info("Simulator stopped")

    def stop(self) -> None:
        """Stop the simulator."""
        self._running = False
