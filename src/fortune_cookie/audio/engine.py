"""
Audio engine for cookie sound cues.

A soft tap for the priming taps and a loud crunch when the cookie breaks.
Both are synthesized at startup unless a crunch sample is found on disk.
"""

import pygame
import array
import math
import random
import logging
from pathlib import Path
from typing import Dict, Optional, List

from fortune_cookie.host.base import SoundCues

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100

TAP_VOLUME = 0.2
CRUNCH_VOLUME = 0.6


def sine(t: float, freq: float) -> float:
    """Sine wave oscillator."""
    return math.sin(2 * math.pi * freq * t)


def noise() -> float:
    """White noise generator."""
    return random.random() * 2 - 1


def lowpass(samples: List[float], cutoff: float = 0.1) -> List[float]:
    """Simple lowpass filter."""
    out = []
    prev = 0
    for s in samples:
        prev = prev + cutoff * (s - prev)
        out.append(prev)
    return out


class AudioEngine(SoundCues):
    """Plays the tap and crunch cues through the pygame mixer.

    Every play call is a no-op until ``init()`` has succeeded, so a machine
    without an audio device simply stays silent.
    """

    def __init__(self, sample_path: Optional[Path] = None):
        self._initialized = False
        self._sounds: Dict[str, pygame.mixer.Sound] = {}
        self._muted = False
        self._sample_path = sample_path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> bool:
        """Initialize the audio system."""
        try:
            pygame.mixer.pre_init(SAMPLE_RATE, -16, 2, 1024)
            pygame.mixer.init()
            pygame.mixer.set_num_channels(8)
            self._initialized = True
            logger.info("Audio engine initialized")
            self._load_sounds()
            return True
        except Exception as e:
            logger.error(f"Failed to initialize audio: {e}")
            return False

    def _create_sound(self, samples: array.array) -> pygame.mixer.Sound:
        """Create a pygame Sound from mono samples (auto-converted to stereo)."""
        stereo = array.array('h')
        for s in samples:
            stereo.append(s)
            stereo.append(s)
        return pygame.mixer.Sound(buffer=stereo)

    def _load_sounds(self) -> None:
        if self._sample_path and self._sample_path.is_file():
            try:
                sample = pygame.mixer.Sound(str(self._sample_path))
                self._sounds["crunch"] = sample
                self._sounds["tap"] = sample
                logger.info(f"Loaded crunch sample: {self._sample_path}")
                return
            except Exception as e:
                logger.warning(f"Could not load {self._sample_path}, synthesizing instead: {e}")

        self._gen_tap()
        self._gen_crunch()
        logger.info(f"Generated {len(self._sounds)} sounds")

    def _gen_tap(self) -> None:
        """Dull knock on a biscuit."""
        raw = []
        for i in range(int(SAMPLE_RATE * 0.07)):
            t = i / SAMPLE_RATE
            env = max(0, 1 - t * 15)
            raw.append((noise() * 0.5 + sine(t, 180) * 0.5) * env)
        samples = array.array('h', (int(v * 32767 * 0.7) for v in lowpass(raw, 0.25)))
        self._sounds["tap"] = self._create_sound(samples)

    def _gen_crunch(self) -> None:
        """Crackling break: a run of short noise bursts over a low thud."""
        length = int(SAMPLE_RATE * 0.45)
        raw = [0.0] * length
        # Thud
        for i in range(int(SAMPLE_RATE * 0.12)):
            t = i / SAMPLE_RATE
            raw[i] += sine(t, 90) * max(0, 1 - t * 8) * 0.6
        # Cracks
        for _ in range(14):
            start = random.randint(0, length - int(SAMPLE_RATE * 0.04))
            for j in range(int(SAMPLE_RATE * random.uniform(0.01, 0.035))):
                env = max(0, 1 - j / (SAMPLE_RATE * 0.035))
                raw[start + j] += noise() * env * random.uniform(0.3, 0.8)
        filtered = lowpass(raw, 0.55)
        samples = array.array('h', (int(max(-1.0, min(1.0, v)) * 32767 * 0.8) for v in filtered))
        self._sounds["crunch"] = self._create_sound(samples)

    # ===== PLAYBACK API =====

    def play(self, sound_name: str, volume: float = 1.0) -> Optional[pygame.mixer.Channel]:
        """Play a sound effect."""
        if not self._initialized or self._muted:
            return None

        sound = self._sounds.get(sound_name)
        if not sound:
            logger.warning(f"Sound not found: {sound_name}")
            return None

        sound.set_volume(volume)
        return sound.play()

    def play_tap(self) -> None:
        self.play("tap", TAP_VOLUME)

    def play_crunch(self) -> None:
        self.play("crunch", CRUNCH_VOLUME)

    def stop_all(self) -> None:
        """Stop all sounds."""
        if self._initialized:
            pygame.mixer.stop()

    def toggle_mute(self) -> bool:
        """Toggle mute state."""
        self._muted = not self._muted
        return self._muted

    def cleanup(self) -> None:
        """Shut the mixer down."""
        if self._initialized:
            self.stop_all()
            pygame.mixer.quit()
            self._initialized = False


_audio_engine: Optional[AudioEngine] = None


def get_audio_engine(sample_path: Optional[Path] = None) -> AudioEngine:
    """Get or create global audio engine instance."""
    global _audio_engine
    if _audio_engine is None:
        _audio_engine = AudioEngine(sample_path)
    return _audio_engine
