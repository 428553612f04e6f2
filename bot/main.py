#!/usr/bin/env python3
"""
Oracle scan bot - market news, sentiment and a hexagram reading on /scan.
"""
import logging

import config
from core import DivinationBot, AIService, RateLimiter, TemplateRegistry, FileTemplate
from core.prompts import DEFAULT_TEMPLATES
from plugins import GroupGuard, GroupGuardPlugin, HelpPlugin, ScanPlugin
from services import DivinationClient, DKGMemoryService, DKGSettings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def build_registry() -> TemplateRegistry:
    templates = dict(DEFAULT_TEMPLATES)
    if config.DIVINATION_TEMPLATE_PATH:
        templates["divination"] = FileTemplate(config.DIVINATION_TEMPLATE_PATH)
    if config.DKG_MEMORY_TEMPLATE_PATH:
        templates["dkg_memory"] = FileTemplate(config.DKG_MEMORY_TEMPLATE_PATH)

    registry = TemplateRegistry(base_dir=config.TEMPLATES_DIR)
    registry.initialize(templates)
    return registry


def main():
    config.validate_config()

    registry = build_registry()
    ai_service = AIService(config.OPENAI_API_KEY, config.AI_MODEL, config.AI_MAX_TOKENS)
    rate_limiter = RateLimiter(time_window=config.SCAN_RATE_LIMIT_SECONDS)
    guard = GroupGuard(config.ALLOWED_GROUP_IDS, config.ONLY_ALLOWED_GROUPS)
    divination = DivinationClient(config.IRAI_API_KEY, config.IRAI_API_ROOT, config.ORACLE_API_URL)

    dkg_memory = None
    if config.DKG_ENABLED:
        dkg_memory = DKGMemoryService(
            DKGSettings.from_config(config),
            ai_service,
            registry,
            publish_timeout=config.DKG_PUBLISH_TIMEOUT,
        )
        dkg_memory.validate()

    bot = DivinationBot(config.BOT_TOKEN or "", config.TELEGRAM_API_ROOT)
    bot.register_plugin(GroupGuardPlugin(guard))
    bot.register_plugin(HelpPlugin(guard))
    bot.register_plugin(ScanPlugin(
        ai_service,
        rate_limiter,
        divination,
        registry,
        guard,
        dkg_memory=dkg_memory,
        news_top_k=config.NEWS_TOP_K,
    ))

    bot.setup()

    logger.info("🤖 Oracle scan bot starting up...")

    if config.WEBHOOK_URL:
        bot.run_webhook("0.0.0.0", config.PORT, config.BOT_TOKEN or "", f"{config.WEBHOOK_URL}{config.BOT_TOKEN}")
    else:
        bot.run_polling()


if __name__ == "__main__":
    main()
