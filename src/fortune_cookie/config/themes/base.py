"""
Base theme class and theme loading utilities.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ThemeColors:
    """Theme color palette.

    Field names match the host theme parameters so host values can be
    merged straight over the defaults.
    """
    bg_color: str = "#a8e6cf"
    text_color: str = "#1a3d1a"
    hint_color: str = "#4a6b4a"
    button_color: str = "#8b5cf6"
    button_text_color: str = "#ffffff"
    accent_color: str = "#f59e0b"


@dataclass
class ThemeMessages:
    """User-facing strings."""
    tap_hints: list[str] = field(default_factory=lambda: [
        "Нажмите, чтобы узнать судьбу",
        "Ещё раз...",
        "Почти готово!",
    ])
    opening: str = "Открываю судьбу..."
    share: str = "Поделиться в историю"
    again: str = "Открыть ещё одно"
    copied: str = "Предсказание скопировано в буфер обмена!"
    share_failed: str = "Не удалось поделиться предсказанием"
    shared: str = "Готово!"

    def hint_for(self, tap_count: int) -> str:
        """Hint shown under an unbroken cookie after ``tap_count`` taps."""
        if 0 <= tap_count < len(self.tap_hints):
            return self.tap_hints[tap_count]
        return ""


@dataclass
class Theme:
    """Complete theme configuration."""
    name: str = "default"
    description: str = "Default theme"

    colors: ThemeColors = field(default_factory=ThemeColors)
    messages: ThemeMessages = field(default_factory=ThemeMessages)

    def variables(self) -> dict[str, str]:
        """Theme colors as a flat variable mapping."""
        return {f.name: getattr(self.colors, f.name) for f in fields(self.colors)}

    @classmethod
    def from_yaml(cls, data: dict[str, Any]) -> "Theme":
        """Create theme from YAML data."""
        theme = cls(
            name=data.get("name", "default"),
            description=data.get("description", ""),
        )

        if "colors" in data:
            theme.colors = ThemeColors(**data["colors"])

        if "messages" in data:
            theme.messages = ThemeMessages(**data["messages"])

        return theme


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Convert ``#rrggbb`` to an RGB tuple."""
    value = value.lstrip("#")
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    return tuple(int(value[i:i+2], 16) for i in (0, 2, 4))


def load_theme(theme_name: str, themes_path: Path | None = None) -> Theme:
    """
    Load a theme from YAML file.

    Args:
        theme_name: Name of the theme (without .yaml extension)
        themes_path: Path to themes directory

    Returns:
        Theme instance
    """
    if themes_path is None:
        themes_path = Path(__file__).parent

    theme_file = themes_path / f"{theme_name}.yaml"

    if not theme_file.exists():
        # Return default theme
        return Theme(name=theme_name)

    with open(theme_file, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return Theme.from_yaml(data)
