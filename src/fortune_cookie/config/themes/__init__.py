"""Theme definitions and loading."""

from .base import Theme, ThemeColors, ThemeMessages, hex_to_rgb, load_theme

__all__ = ["Theme", "ThemeColors", "ThemeMessages", "hex_to_rgb", "load_theme"]
