"""Configuration for the fortune cookie app."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
