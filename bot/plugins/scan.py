"""Scan plugin for the rate-limited /scan command."""
import asyncio
import json
import uuid
from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes
from plugins import Plugin
from plugins.group_guard import GroupGuard
from core.ai import AIService
from core.context import TemplateRegistry, compose_context
from core.rate_limiter import RateLimiter
from services.divination_client import DivinationClient, format_sector_scan
from services.dkg_memory import AGENT_ACTOR, DKGMemoryService
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

OVERLOAD_MESSAGE = "⚠️ Divination circuits overloaded. Try again later."
STARTING_MESSAGE = "🔮 Initiating market divination..."
DKG_STARTING_MESSAGE = "🔄 Starting DKG persistence..."


class ScanPlugin(Plugin):
    def __init__(
        self,
        ai_service: AIService,
        rate_limiter: RateLimiter,
        divination: DivinationClient,
        registry: TemplateRegistry,
        guard: GroupGuard,
        dkg_memory: Optional[DKGMemoryService] = None,
        agent_name: str = "Pix",
        news_top_k: int = 5,
    ):
        self.ai = ai_service
        self.rate_limiter = rate_limiter
        self.divination = divination
        self.registry = registry
        self.guard = guard
        self.dkg_memory = dkg_memory
        self.agent_name = agent_name
        self.news_top_k = news_top_k

    @property
    def name(self) -> str:
        return "scan"

    @property
    def commands(self):
        return [("scan", "Scan crypto market with I-Ching reading")]

    def register(self, app: Application) -> None:
        app.add_handler(CommandHandler("scan", self.scan))

    async def scan(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message:
            return

        try:
            if not await self.guard.is_authorized(update, context):
                return

            if not update.effective_user:
                await update.message.reply_text("Cannot identify user.")
                return
            user_id = str(update.effective_user.id)

            if not self.rate_limiter.can_make_request(user_id):
                await update.message.reply_text(self.rate_limiter.get_limit_message(user_id))
                return

            self.rate_limiter.record_request(user_id)
            await self.run_divination(update)
        except Exception as e:
            logger.error(f"❌ Error handling scan command: {e}")

    async def _fetch_all(self):
        results = await asyncio.gather(
            self.divination.fetch_market_sentiment(),
            self.divination.fetch_news(self.news_top_k),
            self.divination.fetch_oracle(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results

    def build_state(self, update: Update, sentiment: Dict[str, str], news: Any, oracle: Any) -> Dict[str, Any]:
        user = update.effective_user
        handle = (user.username or user.id) if user else "unknown"
        message_id = update.message.message_id if update.message else None
        return {
            "agentName": self.agent_name,
            "roomId": str(uuid.uuid5(uuid.NAMESPACE_URL, f"telegram-divination-{message_id}")),
            "actors": f"# Actors\n@{handle}\n{AGENT_ACTOR}",
            "newsEvent": json.dumps(news, indent=2),
            "oracleReading": json.dumps(oracle, indent=2),
            "marketSentiment": json.dumps(sentiment, indent=2),
            "sectorScan": format_sector_scan(sentiment),
        }

    async def run_divination(self, update: Update) -> None:
        message = update.message
        try:
            await message.reply_text(STARTING_MESSAGE)

            sentiment, news, oracle = await self._fetch_all()
            state = self.build_state(update, sentiment, news, oracle)

            prompt = compose_context(state, "divination", self.registry)
            response = await self.ai.generate_text(prompt)

            await message.reply_text(response)
        except Exception as e:
            logger.error(f"Error in divination command: {e!r}")
            await message.reply_text(OVERLOAD_MESSAGE)
            return

        logger.info(f"Divination sent to user {update.effective_user.id if update.effective_user else 'unknown'}")

        if self.dkg_memory is not None:
            if not self.dkg_memory.validate():
                logger.warning("DKG persistence skipped: settings incomplete")
                return
            await message.reply_text(DKG_STARTING_MESSAGE)
            state["currentPost"] = response
            await self.dkg_memory.insert_memory(state, message.reply_text)
