"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_IMAGE_CANDIDATES = [
    "fortune-cookie.gif",
    "fortune-cookie.png",
    "fortune-cookie.jpg",
    "fortune-cookie.jpeg",
    "fortune-cookie.webp",
    "cookie.png",
    "cookie.jpg",
]


class RevealSettings(BaseSettings):
    """Tap-to-reveal timing."""

    model_config = SettingsConfigDict(env_prefix="FORTUNE_REVEAL_", extra="ignore")

    tap_threshold: int = Field(default=3, ge=1)
    settle_delay: float = Field(default=0.5, ge=0.0)  # seconds between break and reveal


class HostSettings(BaseSettings):
    """Optional host capabilities."""

    model_config = SettingsConfigDict(env_prefix="FORTUNE_HOST_", extra="ignore")

    share_url: str = ""
    ads_enabled: bool = False
    ad_block_id: str = ""
    ad_timeout: float = Field(default=15.0, gt=0.0)
    probe_timeout: float = Field(default=3.0, gt=0.0)


class SimulatorSettings(BaseSettings):
    """Desktop simulator window."""

    model_config = SettingsConfigDict(env_prefix="FORTUNE_SIMULATOR_", extra="ignore")

    width: int = 480
    height: int = 720
    fps: int = 60
    fullscreen: bool = False
    audio: bool = True
    share_supported: bool = True  # False exercises the clipboard fallback
    crunch_sample: Path | None = None  # defaults to <assets_path>/crunch.mp3


class TelegramSettings(BaseSettings):
    """Telegram bot binding."""

    model_config = SettingsConfigDict(env_prefix="FORTUNE_TELEGRAM_", extra="ignore")

    bot_token: str = ""
    chat_ttl: float = Field(default=3600.0, gt=0.0)  # seconds before an idle chat session is dropped


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="FORTUNE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    env: Literal["simulator", "telegram"] = "simulator"
    debug: bool = False

    theme: str = "mint"

    # Paths
    corpus_path: Path | None = None
    assets_path: Path = Field(default_factory=lambda: Path.cwd() / "public")
    config_path: Path = Field(default_factory=lambda: Path(__file__).parent)

    # Ordered image probe list (relative to assets_path, or absolute http(s) URLs)
    image_candidates: list[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_CANDIDATES))

    # Nested settings
    reveal: RevealSettings = Field(default_factory=RevealSettings)
    host: HostSettings = Field(default_factory=HostSettings)
    simulator: SimulatorSettings = Field(default_factory=SimulatorSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)

    @property
    def is_simulator(self) -> bool:
        """Check if running as the desktop simulator."""
        return self.env == "simulator"

    @property
    def is_telegram(self) -> bool:
        """Check if running as the Telegram bot."""
        return self.env == "telegram"

    @property
    def themes_path(self) -> Path:
        """Path to themes configuration."""
        return self.config_path / "themes"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
