"""Screen-level session around reveal cycles."""

from fortune_cookie.session.controller import SessionController

__all__ = ["SessionController"]
