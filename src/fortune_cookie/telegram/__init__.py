"""Fortune Cookie Telegram Bot.

Handles:
- Cookie messages with an inline tap button
- Sharing the revealed fortune
- Opening another cookie
"""

from fortune_cookie.telegram.bot import FortuneBot, run_telegram

__all__ = ["FortuneBot", "run_telegram"]
