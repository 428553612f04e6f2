"""Group authorization plugin."""
from telegram import Update
from telegram.constants import ChatType
from telegram.ext import Application, ContextTypes, MessageHandler, filters
from plugins import Plugin
from typing import Iterable
import logging

logger = logging.getLogger(__name__)


class GroupGuard:
    """Decides whether the bot may act in a chat, leaving groups it was not invited to."""

    def __init__(self, allowed_group_ids: Iterable[str] = (), only_allowed_groups: bool = False):
        self.allowed_group_ids = {str(g) for g in allowed_group_ids}
        self.only_allowed_groups = only_allowed_groups

    async def is_authorized(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
        user = update.effective_user
        if user is not None and user.id == context.bot.id:
            return False

        if not self.only_allowed_groups:
            return True

        chat = update.effective_chat
        if chat is None or chat.type == ChatType.PRIVATE:
            return True

        chat_id = str(chat.id)
        if chat_id in self.allowed_group_ids:
            return True

        logger.info(f"Unauthorized group detected: {chat_id}")
        try:
            if update.effective_message:
                await update.effective_message.reply_text("Not authorized. Leaving.")
            await context.bot.leave_chat(chat.id)
        except Exception as e:
            logger.error(f"Error leaving unauthorized group {chat_id}: {e}")
        return False


class GroupGuardPlugin(Plugin):
    def __init__(self, guard: GroupGuard):
        self.guard = guard

    @property
    def name(self) -> str:
        return "group_guard"

    def register(self, app: Application) -> None:
        app.add_handler(MessageHandler(
            filters.StatusUpdate.NEW_CHAT_MEMBERS,
            self.handle_new_members
        ))

    async def handle_new_members(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message or not update.message.new_chat_members:
            return
        bot_added = any(member.id == context.bot.id for member in update.message.new_chat_members)
        if bot_added:
            await self.guard.is_authorized(update, context)
