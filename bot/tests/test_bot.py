"""
Tests for bot wiring: plugin command menu, group authorization and the error handler.
"""

import pytest
from unittest.mock import AsyncMock, Mock
from telegram import Update
from core.bot import DivinationBot
from core.context import TemplateRegistry
from core.rate_limiter import RateLimiter
from plugins import GroupGuard, GroupGuardPlugin, HelpPlugin, ScanPlugin
from plugins.help import SETTINGS_TEXT


def make_update(chat_id=-100, chat_type="supergroup", user_id=42):
    update = Mock()
    update.effective_user.id = user_id
    update.effective_chat.id = chat_id
    update.effective_chat.type = chat_type
    update.effective_message.reply_text = AsyncMock()
    update.message.reply_text = AsyncMock()
    return update


@pytest.fixture
def context():
    context = Mock()
    context.bot.id = 999
    context.bot.leave_chat = AsyncMock()
    return context


class TestGroupGuard:
    """Test suite for GroupGuard.is_authorized."""

    @pytest.mark.asyncio
    async def test_unrestricted_allows_groups(self, context):
        assert await GroupGuard().is_authorized(make_update(), context) is True

    @pytest.mark.asyncio
    async def test_ignores_own_messages(self, context):
        assert await GroupGuard().is_authorized(make_update(user_id=999), context) is False

    @pytest.mark.asyncio
    async def test_private_chats_always_allowed(self, context):
        guard = GroupGuard(allowed_group_ids=[], only_allowed_groups=True)
        assert await guard.is_authorized(make_update(chat_type="private"), context) is True

    @pytest.mark.asyncio
    async def test_allowed_group(self, context):
        guard = GroupGuard(allowed_group_ids=["-100"], only_allowed_groups=True)
        assert await guard.is_authorized(make_update(chat_id=-100), context) is True
        context.bot.leave_chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_group_is_left(self, context):
        guard = GroupGuard(allowed_group_ids=["-100"], only_allowed_groups=True)
        update = make_update(chat_id=-200)

        assert await guard.is_authorized(update, context) is False

        update.effective_message.reply_text.assert_awaited_once_with("Not authorized. Leaving.")
        context.bot.leave_chat.assert_awaited_once_with(-200)

    @pytest.mark.asyncio
    async def test_leave_failure_is_logged(self, context):
        context.bot.leave_chat = AsyncMock(side_effect=RuntimeError("kicked"))
        guard = GroupGuard(allowed_group_ids=[], only_allowed_groups=True)

        assert await guard.is_authorized(make_update(), context) is False

    @pytest.mark.asyncio
    async def test_plugin_checks_when_bot_is_added(self, context):
        guard = Mock()
        guard.is_authorized = AsyncMock(return_value=False)
        plugin = GroupGuardPlugin(guard)
        update = make_update()
        bot_member = Mock(id=999)
        update.message.new_chat_members = [Mock(id=1), bot_member]

        await plugin.handle_new_members(update, context)

        guard.is_authorized.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_plugin_ignores_other_members(self, context):
        guard = Mock()
        guard.is_authorized = AsyncMock()
        update = make_update()
        update.message.new_chat_members = [Mock(id=1)]

        await GroupGuardPlugin(guard).handle_new_members(update, context)

        guard.is_authorized.assert_not_called()


class TestHelpPlugin:
    @pytest.mark.asyncio
    async def test_settings_reply(self, context):
        update = make_update()
        await HelpPlugin(GroupGuard()).settings_command(update, context)
        update.message.reply_text.assert_awaited_once_with(SETTINGS_TEXT)

    @pytest.mark.asyncio
    async def test_unauthorized_gets_no_help(self, context):
        guard = GroupGuard(allowed_group_ids=[], only_allowed_groups=True)
        update = make_update(chat_id=-300)
        await HelpPlugin(guard).help_command(update, context)
        update.message.reply_text.assert_not_called()


class TestDivinationBot:
    """Test suite for DivinationBot setup."""

    @pytest.fixture
    def bot(self):
        guard = GroupGuard()
        bot = DivinationBot("123456:TEST-TOKEN", api_root="https://tg.example.test/")
        bot.register_plugin(GroupGuardPlugin(guard))
        bot.register_plugin(HelpPlugin(guard))
        bot.register_plugin(ScanPlugin(Mock(), RateLimiter(300), Mock(), TemplateRegistry(), guard))
        return bot

    def test_command_menu(self, bot):
        assert [c.command for c in bot.bot_commands()] == ["start", "help", "settings", "scan"]

    def test_setup_registers_handlers(self, bot):
        app = bot.setup()
        assert len(app.handlers[0]) == 5
        assert app.post_init is not None
        assert app.bot.base_url.startswith("https://tg.example.test/bot")

    @pytest.mark.asyncio
    async def test_post_init_sets_commands(self, bot):
        application = Mock()
        application.bot.set_my_commands = AsyncMock()
        await bot._setup_commands(application)
        commands = application.bot.set_my_commands.call_args.args[0]
        assert len(commands) == 4

    @pytest.mark.asyncio
    async def test_error_handler_replies(self, bot):
        update = Mock(spec=Update)
        update.effective_message = Mock()
        update.effective_message.reply_text = AsyncMock()
        context = Mock()
        context.error = RuntimeError("boom")

        await bot._handle_error(update, context)

        text = update.effective_message.reply_text.call_args.args[0]
        assert text == "An unexpected error occurred. Please try again later.\n\nError: boom"


class TestBuildRegistry:
    def test_file_override(self, tmp_path, monkeypatch):
        import config
        import main

        (tmp_path / "pix.template").write_text("custom {{newsEvent}}", encoding="utf-8")
        monkeypatch.setattr(config, "TEMPLATES_DIR", str(tmp_path))
        monkeypatch.setattr(config, "DIVINATION_TEMPLATE_PATH", "pix.template")
        monkeypatch.setattr(config, "DKG_MEMORY_TEMPLATE_PATH", None)

        registry = main.build_registry()

        assert registry.get("divination") == "custom {{newsEvent}}"
        assert "dkg_memory" in registry
