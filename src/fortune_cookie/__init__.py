"""Fortune Cookie - tap a cookie three times, read your fortune."""

__version__ = "0.1.0"
