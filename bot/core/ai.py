"""AI service for prompt completion."""
from openai import AsyncOpenAI
import logging

logger = logging.getLogger(__name__)


class AIService:
    def __init__(self, api_key: str | None, model: str = "gpt-4o", max_tokens: int = 1500):
        self.model = model
        self.max_tokens = max_tokens
        self.client = AsyncOpenAI(api_key=api_key)

    async def generate_text(self, context: str) -> str:
        """Send a composed prompt as a single user message and return the reply text.

        API errors are not caught here; callers decide what the user sees.
        """
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": context}],
            max_tokens=self.max_tokens
        )
        text = response.choices[0].message.content or ""
        logger.info(f"Generated {len(text)} characters with {self.model}")
        return text.strip()

    def get_current_model(self) -> str:
        return self.model
