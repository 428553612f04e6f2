"""Help plugin: /start, /help and /settings."""
from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes
from plugins import Plugin
from plugins.group_guard import GroupGuard
import logging

logger = logging.getLogger(__name__)

START_TEXT = "👋 Hello! I am your assistant. How can I help you today?"

HELP_TEXT = """🤖 Available Commands:
/help - Show this help message
/settings - Manage your settings
/scan - Scan crypto market and sentiment, courtesy of irai.co and 8bitoracle.ai

/scan can be used once every few minutes per user."""

SETTINGS_TEXT = "⚙️ Settings functionality coming soon!"


class HelpPlugin(Plugin):
    def __init__(self, guard: GroupGuard):
        self.guard = guard

    @property
    def name(self) -> str:
        return "help"

    @property
    def commands(self):
        return [
            ("start", "Start the bot"),
            ("help", "Show help information"),
            ("settings", "Manage your settings"),
        ]

    def register(self, app: Application) -> None:
        app.add_handler(CommandHandler("start", self.start_command))
        app.add_handler(CommandHandler("help", self.help_command))
        app.add_handler(CommandHandler("settings", self.settings_command))

    async def _reply(self, update: Update, context: ContextTypes.DEFAULT_TYPE, text: str, command: str) -> None:
        if not update.message:
            return
        try:
            if not await self.guard.is_authorized(update, context):
                return
            await update.message.reply_text(text)
        except Exception as e:
            logger.error(f"❌ Error handling {command} command: {e}")

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, context, START_TEXT, "start")

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, context, HELP_TEXT, "help")
        logger.info(f"Help shown to user {update.effective_user.id if update.effective_user else 'unknown'}")

    async def settings_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, context, SETTINGS_TEXT, "settings")
