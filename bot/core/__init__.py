"""Core bot components."""
from core.bot import DivinationBot
from core.ai import AIService
from core.rate_limiter import RateLimiter
from core.context import TemplateRegistry, LiteralTemplate, FileTemplate, compose_context

__all__ = [
    'DivinationBot',
    'AIService',
    'RateLimiter',
    'TemplateRegistry',
    'LiteralTemplate',
    'FileTemplate',
    'compose_context',
]
