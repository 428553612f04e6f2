"""Bot orchestration."""
import logging
from telegram import BotCommand, Update
from telegram.ext import Application, ApplicationBuilder, ContextTypes
from typing import List, Callable, Awaitable, TYPE_CHECKING

if TYPE_CHECKING:
    from plugins import Plugin

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "An unexpected error occurred. Please try again later.\n\nError: {error}"


class DivinationBot:
    def __init__(self, token: str, api_root: str = "https://api.telegram.org"):
        self.token = token
        self.api_root = api_root.rstrip("/")
        self.application: Application | None = None
        self._plugins: List['Plugin'] = []
        self._post_init_callbacks: List[Callable[[Application], Awaitable[None]]] = []
        logger.info("📱 Constructing new DivinationBot...")

    def register_plugin(self, plugin: 'Plugin') -> None:
        self._plugins.append(plugin)
        logger.info(f"Registered plugin: {plugin.name}")

    def setup(self) -> Application:
        self.application = (
            ApplicationBuilder()
            .token(self.token)
            .base_url(f"{self.api_root}/bot")
            .base_file_url(f"{self.api_root}/file/bot")
            .build()
        )
        original_post_init = None

        for plugin in self._plugins:
            plugin.register(self.application)

            if self.application.post_init and self.application.post_init != original_post_init:
                self._post_init_callbacks.append(self.application.post_init)
                original_post_init = self.application.post_init
            logger.info(f"Plugin '{plugin.name}' handlers registered")

        self._post_init_callbacks.append(self._setup_commands)
        self.application.post_init = self._run_all_post_init
        self.application.add_error_handler(self._handle_error)

        return self.application

    async def _run_all_post_init(self, application: Application) -> None:
        for callback in self._post_init_callbacks:
            await callback(application)

    def bot_commands(self) -> List[BotCommand]:
        commands = []
        for plugin in self._plugins:
            for cmd, description in plugin.commands:
                commands.append(BotCommand(cmd, description))
        return commands

    async def _setup_commands(self, application: Application) -> None:
        commands = self.bot_commands()
        if not commands:
            return
        try:
            await application.bot.set_my_commands(commands)
            logger.info(f"✅ Registered {len(commands)} bot commands")
        except Exception as e:
            logger.error(f"❌ Failed to register bot commands: {e}")

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        update_type = type(update).__name__
        logger.error(f"❌ Telegram error for {update_type}: {context.error}", exc_info=context.error)
        if isinstance(update, Update) and update.effective_message:
            try:
                await update.effective_message.reply_text(ERROR_MESSAGE.format(error=context.error))
            except Exception as e:
                logger.error(f"Failed to send error message: {e}")

    def run_polling(self) -> None:
        if not self.application:
            self.setup()
        logger.info("🚀 Starting bot in polling mode...")
        self.application.run_polling(drop_pending_updates=True)  # type: ignore[union-attr]

    def run_webhook(self, listen: str, port: int, url_path: str, webhook_url: str) -> None:
        if not self.application:
            self.setup()
        logger.info(f"🚀 Starting bot in webhook mode on port {port}...")
        self.application.run_webhook(listen=listen, port=port, url_path=url_path, webhook_url=webhook_url, drop_pending_updates=True)  # type: ignore[union-attr]
