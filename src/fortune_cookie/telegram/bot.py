"""Fortune Cookie Telegram Bot.

Runs the cookie session inside a chat:
- /start sends an unbroken cookie with a tap button
- taps edit the message in place until the cookie breaks
- the revealed fortune can be shared or a new cookie opened

Haptics, ads and theme parameters do not exist in a bot chat, so they are
left out of the host capabilities and detected as unavailable.
"""

import asyncio
import html
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from telegram import Bot, BotCommand, InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.error import BadRequest, TelegramError
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, ContextTypes

from fortune_cookie.assets.resolver import AssetResolver, HttpProbe
from fortune_cookie.config.settings import Settings
from fortune_cookie.config.themes.base import Theme
from fortune_cookie.core.events import Event, EventBus, EventType
from fortune_cookie.core.state import State
from fortune_cookie.fortunes.store import FortuneStore
from fortune_cookie.host.adapter import HostCapabilities, HostCapabilityAdapter
from fortune_cookie.host.base import Clipboard, SharePayload, StoryShare
from fortune_cookie.session.controller import SessionController

logger = logging.getLogger(__name__)

CALLBACK_TAP = "cookie:tap"
CALLBACK_SHARE = "cookie:share"
CALLBACK_AGAIN = "cookie:again"


class TelegramStoryShare(StoryShare):
    """Posts the fortune with a button that forwards it to another chat."""

    def __init__(self, bot: Bot, chat_id: int, button_label: str = "Переслать"):
        self.bot = bot
        self.chat_id = chat_id
        self.button_label = button_label

    def is_supported(self) -> bool:
        return True

    async def share(self, payload: SharePayload) -> None:
        text = f"🥠 {html.escape(payload.text)}"
        if payload.link:
            text += f"\n\n{html.escape(payload.link)}"
        inline_query = payload.text if not payload.link else f"{payload.text} {payload.link}"
        keyboard = InlineKeyboardMarkup([[
            InlineKeyboardButton(self.button_label, switch_inline_query=inline_query)
        ]])
        await self.bot.send_message(self.chat_id, text, parse_mode="HTML", reply_markup=keyboard)


class TelegramClipboard(Clipboard):
    """Posts the text as monospace, which Telegram copies on tap."""

    def __init__(self, bot: Bot, chat_id: int):
        self.bot = bot
        self.chat_id = chat_id

    async def write_text(self, text: str) -> None:
        await self.bot.send_message(self.chat_id, f"<code>{html.escape(text)}</code>", parse_mode="HTML")


@dataclass
class ChatSession:
    """Cookie session bound to one chat and its cookie message."""
    chat_id: int
    session: SessionController
    message: Optional[Message] = None
    unsubscribe: list = field(default_factory=list)
    last_seen: float = field(default_factory=time.monotonic)

    @property
    def has_photo(self) -> bool:
        return bool(self.message and self.message.photo)


def render_text(session: SessionController) -> str:
    """Message text for the current session state."""
    if session.state == State.SHOWING_FORTUNE:
        return f"🥠 <b>{html.escape(session.fortune or '')}</b>"

    lines = []
    if session.asset.is_fallback:
        lines.append(session.asset.glyph)
    hint = session.hint
    if hint:
        lines.append(html.escape(hint))
    return "\n\n".join(lines)


def render_keyboard(session: SessionController) -> Optional[InlineKeyboardMarkup]:
    """Inline keyboard for the current session state."""
    messages = session.theme.messages
    if session.state == State.SHOWING_FORTUNE:
        return InlineKeyboardMarkup([
            [InlineKeyboardButton(messages.share, callback_data=CALLBACK_SHARE)],
            [InlineKeyboardButton(messages.again, callback_data=CALLBACK_AGAIN)],
        ])

    cycle = session.cycle
    if cycle is not None and not cycle.accepts_taps:
        return None
    return InlineKeyboardMarkup([[InlineKeyboardButton("🥠", callback_data=CALLBACK_TAP)]])


class FortuneBot:
    """Telegram bot serving one cookie session per chat."""

    def __init__(
        self,
        settings: Settings,
        store: FortuneStore,
        theme: Theme | None = None,
        resolver: Optional[AssetResolver] = None,
    ):
        self.settings = settings
        self.store = store
        self.theme = theme or Theme()
        self.resolver = resolver
        self.app: Optional[Application] = None
        self._chats: Dict[int, ChatSession] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._running = False

    async def start(self) -> None:
        """Start the bot."""
        token = self.settings.telegram.bot_token
        if not token:
            raise ValueError("FORTUNE_TELEGRAM_BOT_TOKEN is not set")

        logger.info("Starting Fortune Cookie Bot...")

        self.app = Application.builder().token(token).build()

        # Register handlers
        self.app.add_handler(CommandHandler("start", self._cmd_start))
        self.app.add_handler(CommandHandler("cookie", self._cmd_start))
        self.app.add_handler(CallbackQueryHandler(self._handle_callback, pattern=r"^cookie:"))

        # Start polling
        await self.app.initialize()
        await self.app.bot.set_my_commands([
            BotCommand("cookie", "Открыть печенье"),
        ])
        await self.app.start()
        await self.app.updater.start_polling(drop_pending_updates=True)

        self._running = True
        logger.info("Fortune Cookie Bot started!")

    async def stop(self) -> None:
        """Stop the bot."""
        for chat in list(self._chats.values()):
            self._close_chat(chat)
        for task in list(self._tasks):
            task.cancel()

        if self.app and self._running:
            logger.info("Stopping Fortune Cookie Bot...")
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()
            self._running = False
            logger.info("Fortune Cookie Bot stopped")

    # =========================================================================
    # SESSIONS
    # =========================================================================

    async def open_chat(self, chat_id: int, bot: Bot) -> ChatSession:
        """Create (or replace) the cookie session for a chat."""
        self.evict_idle()
        existing = self._chats.pop(chat_id, None)
        if existing is not None:
            self._close_chat(existing)

        capabilities = HostCapabilities(
            story_share=TelegramStoryShare(bot, chat_id),
            clipboard=TelegramClipboard(bot, chat_id),
        )
        adapter = HostCapabilityAdapter(capabilities, ads_enabled=False)
        session = SessionController(
            self.store,
            adapter,
            resolver=self.resolver,
            event_bus=EventBus(),
            theme=self.theme,
            tap_threshold=self.settings.reveal.tap_threshold,
            settle_delay=self.settings.reveal.settle_delay,
            share_url=self.settings.host.share_url,
        )
        chat = ChatSession(chat_id=chat_id, session=session)
        chat.unsubscribe.append(
            session.event_bus.subscribe(EventType.REVEAL_COMPLETE, lambda event: self._on_reveal(chat, event))
        )
        self._chats[chat_id] = chat

        await session.initialize()
        session.start_cycle()
        return chat

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Drop chat sessions untouched for longer than the chat TTL.

        Returns:
            Number of chats evicted
        """
        now = time.monotonic() if now is None else now
        cutoff = now - self.settings.telegram.chat_ttl
        stale = [chat for chat in self._chats.values() if chat.last_seen < cutoff]
        for chat in stale:
            del self._chats[chat.chat_id]
            self._close_chat(chat)
        if stale:
            logger.info(f"Evicted {len(stale)} idle chats, {len(self._chats)} active")
        return len(stale)

    def _close_chat(self, chat: ChatSession) -> None:
        for unsubscribe in chat.unsubscribe:
            unsubscribe()
        chat.unsubscribe.clear()
        chat.session.teardown()

    def _on_reveal(self, chat: ChatSession, event: Event) -> None:
        """Settle delay finished; show the fortune."""
        task = asyncio.get_running_loop().create_task(self._refresh(chat))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send_cookie(self, chat: ChatSession, bot: Bot) -> None:
        """Send the cookie message, as a photo when an image was resolved."""
        session = chat.session
        text = render_text(session)
        keyboard = render_keyboard(session)

        if not session.asset.is_fallback:
            try:
                chat.message = await bot.send_photo(
                    chat.chat_id,
                    session.asset.locator,
                    caption=text,
                    parse_mode="HTML",
                    reply_markup=keyboard,
                )
                return
            except TelegramError as e:
                logger.warning(f"Cookie photo failed to send: {e}")
                session.report_asset_load_failure()
                text = render_text(session)

        chat.message = await bot.send_message(
            chat.chat_id, text, parse_mode="HTML", reply_markup=keyboard
        )

    async def _refresh(self, chat: ChatSession) -> None:
        """Edit the cookie message to match the session."""
        if chat.message is None:
            return
        text = render_text(chat.session)
        keyboard = render_keyboard(chat.session)
        try:
            if chat.has_photo:
                await chat.message.edit_caption(caption=text, parse_mode="HTML", reply_markup=keyboard)
            else:
                await chat.message.edit_text(text, parse_mode="HTML", reply_markup=keyboard)
        except BadRequest as e:
            # "Message is not modified" and friends
            logger.debug(f"Cookie message not updated: {e}")

    # =========================================================================
    # HANDLERS
    # =========================================================================

    async def _cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start and /cookie: send a fresh cookie."""
        chat_id = update.effective_chat.id
        chat = await self.open_chat(chat_id, context.bot)
        await self._send_cookie(chat, context.bot)

    async def _handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle cookie inline buttons."""
        query = update.callback_query
        chat_id = query.message.chat_id
        chat = self._chats.get(chat_id)

        if chat is None or chat.message is None or chat.message.message_id != query.message.message_id:
            # Old cookie message (e.g. after a restart)
            await query.answer()
            chat = await self.open_chat(chat_id, context.bot)
            await self._send_cookie(chat, context.bot)
            return

        chat.last_seen = time.monotonic()
        session = chat.session
        data = query.data

        if data == CALLBACK_TAP:
            await query.answer()
            if session.tap():
                await self._refresh(chat)

        elif data == CALLBACK_SHARE:
            outcome = await session.request_share()
            await query.answer(session.feedback_for(outcome) if outcome else None)

        elif data == CALLBACK_AGAIN:
            await query.answer()
            if session.request_reset():
                session.start_cycle()
                await self._send_cookie(chat, context.bot)

        else:
            await query.answer()


async def run_telegram(settings: Settings, store: FortuneStore, theme: Theme | None = None) -> None:
    """Run the bot until cancelled."""
    resolver = None
    http_probe = None
    remote = [c for c in settings.image_candidates if c.startswith(("http://", "https://"))]
    if remote:
        http_probe = HttpProbe(timeout=settings.host.probe_timeout)
        resolver = AssetResolver(remote, http_probe)
        await resolver.resolve()

    bot = FortuneBot(settings, store, theme=theme, resolver=resolver)
    await bot.start()

    # Keep running
    try:
        while True:
            await asyncio.sleep(1)
            bot.evict_idle()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await bot.stop()
        if http_probe is not None:
            await http_probe.close()
