"""
Tests for the /scan command flow.
Covers rate limiting, the concurrent fetch fan-out, prompt composition and failure handling.
"""

import json
import pytest
from unittest.mock import AsyncMock, Mock
from core.context import TemplateRegistry
from core.rate_limiter import RateLimiter
from plugins.group_guard import GroupGuard
from plugins.scan import DKG_STARTING_MESSAGE, OVERLOAD_MESSAGE, STARTING_MESSAGE, ScanPlugin
from services.divination_client import DivinationAPIError

SENTIMENT = {"telegram": "bullish", "reddit": "neutral", "market": "bearish"}
NEWS = [{"title": "ETH breaks out"}]
ORACLE = {"interpretation": {"currentHexagram": {"unicode": "䷌", "meaning": "Fellowship"}}}


def make_update(user_id=42, username="trader", message_id=7):
    update = Mock()
    update.message.reply_text = AsyncMock()
    update.message.message_id = message_id
    update.effective_user.id = user_id
    update.effective_user.username = username
    update.effective_chat.type = "private"
    return update


def replies(update):
    return [call.args[0] for call in update.message.reply_text.call_args_list]


class TestScanPlugin:
    """Test suite for ScanPlugin."""

    @pytest.fixture
    def context(self):
        context = Mock()
        context.bot.id = 999
        return context

    @pytest.fixture
    def ai_service(self):
        ai = Mock()
        ai.generate_text = AsyncMock(return_value="[SIGNAL INTERCEPT] running clean")
        return ai

    @pytest.fixture
    def divination(self):
        client = Mock()
        client.fetch_market_sentiment = AsyncMock(return_value=SENTIMENT)
        client.fetch_news = AsyncMock(return_value=NEWS)
        client.fetch_oracle = AsyncMock(return_value=ORACLE)
        return client

    @pytest.fixture
    def registry(self):
        registry = TemplateRegistry()
        registry.initialize({
            "divination": "News={{newsEvent}}|Mood={{marketSentiment}}|Oracle={{oracleReading}}|{{actors}}",
        })
        return registry

    @pytest.fixture
    def plugin(self, ai_service, divination, registry):
        return ScanPlugin(
            ai_service,
            RateLimiter(time_window=300),
            divination,
            registry,
            GroupGuard(),
        )

    def test_commands(self, plugin):
        assert plugin.commands == [("scan", "Scan crypto market with I-Ching reading")]

    @pytest.mark.asyncio
    async def test_successful_scan_replies_with_generated_text(self, plugin, context, ai_service, divination):
        update = make_update()

        await plugin.scan(update, context)

        assert replies(update) == [STARTING_MESSAGE, "[SIGNAL INTERCEPT] running clean"]
        divination.fetch_news.assert_awaited_once_with(5)
        divination.fetch_market_sentiment.assert_awaited_once()
        divination.fetch_oracle.assert_awaited_once()

        prompt = ai_service.generate_text.call_args.args[0]
        assert f"News={json.dumps(NEWS, indent=2)}" in prompt
        assert f"Mood={json.dumps(SENTIMENT, indent=2)}" in prompt
        assert "# Actors\n@trader\nChatDKG" in prompt

    @pytest.mark.asyncio
    async def test_any_fetch_failure_gives_overload_message(self, plugin, context, ai_service, divination):
        divination.fetch_oracle = AsyncMock(side_effect=DivinationAPIError("Failed to fetch oracle", 500))
        update = make_update()

        await plugin.scan(update, context)

        assert replies(update) == [STARTING_MESSAGE, OVERLOAD_MESSAGE]
        ai_service.generate_text.assert_not_called()
        # the other fetches still ran to completion
        divination.fetch_news.assert_awaited_once()
        divination.fetch_market_sentiment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generation_failure_gives_overload_message(self, plugin, context, ai_service):
        ai_service.generate_text = AsyncMock(side_effect=RuntimeError("model down"))
        update = make_update()

        await plugin.scan(update, context)

        assert replies(update)[-1] == OVERLOAD_MESSAGE

    @pytest.mark.asyncio
    async def test_second_scan_is_rate_limited(self, plugin, context, divination):
        await plugin.scan(make_update(), context)
        update = make_update()

        await plugin.scan(update, context)

        assert len(replies(update)) == 1
        assert replies(update)[0].startswith("⏳ Please wait 30")
        assert divination.fetch_news.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_recorded_even_when_scan_fails(self, plugin, context, divination):
        divination.fetch_news = AsyncMock(side_effect=DivinationAPIError("Failed to fetch news", 502))
        await plugin.scan(make_update(), context)

        assert plugin.rate_limiter.can_make_request("42") is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, plugin, context, divination):
        update = make_update()
        update.effective_user = None

        await plugin.scan(update, context)

        assert replies(update) == ["Cannot identify user."]
        divination.fetch_news.assert_not_called()

    @pytest.mark.asyncio
    async def test_dkg_memory_receives_generated_post(self, ai_service, divination, registry, context):
        dkg_memory = Mock()
        dkg_memory.validate.return_value = True
        dkg_memory.insert_memory = AsyncMock(return_value=False)
        plugin = ScanPlugin(
            ai_service, RateLimiter(300), divination, registry, GroupGuard(), dkg_memory=dkg_memory,
        )
        update = make_update()

        await plugin.scan(update, context)

        state = dkg_memory.insert_memory.call_args.args[0]
        assert state["currentPost"] == "[SIGNAL INTERCEPT] running clean"
        assert OVERLOAD_MESSAGE not in replies(update)
        assert DKG_STARTING_MESSAGE in replies(update)

    @pytest.mark.asyncio
    async def test_incomplete_dkg_settings_skip_persistence_quietly(self, ai_service, divination, registry, context):
        dkg_memory = Mock()
        dkg_memory.validate.return_value = False
        dkg_memory.insert_memory = AsyncMock()
        plugin = ScanPlugin(
            ai_service, RateLimiter(300), divination, registry, GroupGuard(), dkg_memory=dkg_memory,
        )
        update = make_update()

        await plugin.scan(update, context)

        assert replies(update) == [STARTING_MESSAGE, "[SIGNAL INTERCEPT] running clean"]
        dkg_memory.insert_memory.assert_not_called()

    def test_build_state_room_id_is_stable(self, plugin):
        first = plugin.build_state(make_update(message_id=5), SENTIMENT, NEWS, ORACLE)
        second = plugin.build_state(make_update(message_id=5), SENTIMENT, NEWS, ORACLE)
        assert first["roomId"] == second["roomId"]
        assert first["sectorScan"].startswith("tg: bullish")
