"""HTTP clients for the news, market sentiment and hexagram oracle APIs."""
import json
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SENTIMENT_PATTERN = re.compile(r"Sentiment data: (.*)")
UNKNOWN_SENTIMENT = "unknown"

# overview key -> field name in the parsed result
SENTIMENT_SOURCES = {
    "Telegram": "telegram",
    "Reddit": "reddit",
    "General market": "market",
}

SENTIMENT_EMOJIS = {
    "bearish": "🔻",
    "very bearish": "📉",
    "bullish": "🔺",
    "very bullish": "📈",
    "neutral": "➡️",
    "unknown": "❓",
}

DEFAULT_ASK_FEATURES = {
    "news": True,
    "trending": True,
    "market_sentiment": True,
    "coin_sentiment": True,
    "price_actions": True,
    "technical_analysis": True,
    "market_update": True,
    "top_movers": True,
}

ORACLE_TIMEOUT_SECONDS = 15
ASK_TIMEOUT_SECONDS = 150


class DivinationAPIError(Exception):
    """A vendor endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class Citation(BaseModel):
    name: str = ""
    description: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = 'ignore'


class AskResponse(BaseModel):
    user_query: str = ""
    output: str = ""
    error: bool = False
    request_id: str = ""
    citations: List[Citation] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


def parse_sentiment_overview(overview: Any) -> Dict[str, str]:
    """
    Pull per-channel sentiment out of the free-text market overview.

    The overview embeds a Python-style dict after ``Sentiment data:``. Single
    quotes are swapped for double quotes before decoding as JSON. Fields that
    cannot be read fall back to ``"unknown"``; this function never raises.
    """
    result = {name: UNKNOWN_SENTIMENT for name in SENTIMENT_SOURCES.values()}

    if not isinstance(overview, str):
        logger.warning(f"Market overview is not text: {overview!r}")
        return result

    match = SENTIMENT_PATTERN.search(overview)
    if not match:
        logger.warning("No sentiment data found in market overview")
        return result

    try:
        data = json.loads(match.group(1).replace("'", '"'))
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing sentiment: {e} (raw: {overview!r})")
        return result

    if not isinstance(data, dict):
        logger.error(f"Unexpected sentiment payload: {data!r}")
        return result

    for source, name in SENTIMENT_SOURCES.items():
        entry = data.get(source)
        if isinstance(entry, dict) and isinstance(entry.get("current"), str):
            result[name] = entry["current"]
        else:
            logger.warning(f"Missing '{source}' sentiment, using '{UNKNOWN_SENTIMENT}'")

    return result


def sentiment_emoji(sentiment: str) -> str:
    return SENTIMENT_EMOJIS.get(sentiment.lower(), "❓")


def format_sector_scan(sentiment: Dict[str, str]) -> str:
    lines = []
    for label, key in (("tg", "telegram"), ("r/", "reddit"), ("mkt", "market")):
        value = sentiment.get(key, UNKNOWN_SENTIMENT)
        lines.append(f"{label}: {value} {sentiment_emoji(value)}")
    return "\n".join(lines)


class DivinationClient:
    def __init__(
        self,
        api_key: str = "",
        api_root: str = "https://api.irai.co",
        oracle_url: str = "https://app.8bitoracle.ai/api/generate/hexagram?includeText=true",
    ):
        self.api_key = api_key
        self.api_root = api_root.rstrip("/")
        self.oracle_url = oracle_url

    def _headers(self) -> Dict[str, str]:
        return {"irai-api-key": self.api_key}

    async def fetch_news(self, top_k: int = 5) -> Any:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{self.api_root}/top_news",
                params={"top_k": str(top_k)},
                headers=self._headers(),
            ) as response:
                if not response.ok:
                    raise DivinationAPIError("Failed to fetch news", response.status)
                return await response.json()

    async def fetch_market_sentiment(self) -> Dict[str, str]:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{self.api_root}/get_market_sentiment",
                headers=self._headers(),
            ) as response:
                if not response.ok:
                    raise DivinationAPIError("Failed to fetch market sentiment", response.status)
                payload = await response.json()

        data = payload.get("data") if isinstance(payload, dict) else None
        overview = data.get("overview", "") if isinstance(data, dict) else ""
        logger.debug(f"Raw sentiment data: {overview}")
        return parse_sentiment_overview(overview)

    async def fetch_oracle(self) -> Dict[str, Any]:
        """Fetch a hexagram reading; the payload is passed through untouched."""
        timeout = aiohttp.ClientTimeout(total=ORACLE_TIMEOUT_SECONDS)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(
                    self.oracle_url,
                    headers={"Content-Type": "application/json"},
                ) as response:
                    if not response.ok:
                        raise DivinationAPIError(
                            f"Failed to fetch oracle: {response.status} {response.reason}",
                            response.status,
                        )
                    return await response.json()
        except Exception as e:
            logger.error(f"Oracle reading failed: {e!r}")
            raise

    async def ask(self, question: str, features: Optional[Dict[str, bool]] = None) -> AskResponse:
        timeout = aiohttp.ClientTimeout(total=ASK_TIMEOUT_SECONDS)
        body = {
            "question": question,
            "citations": False,
            "lang": "English",
            "features": {**DEFAULT_ASK_FEATURES, **(features or {})},
        }
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    f"{self.api_root}/ask",
                    json=body,
                    headers={**self._headers(), "Content-Type": "application/json"},
                ) as response:
                    if not response.ok:
                        raise DivinationAPIError(
                            f"Failed to ask IRAI: {response.status} {response.reason}",
                            response.status,
                        )
                    return AskResponse.model_validate(await response.json())
        except Exception as e:
            logger.error(f"IRAI ask failed: {e!r}")
            raise
