"""Per-user cooldown rate limiter."""
import math
import time
from typing import Callable, Dict
import logging

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allows one request per user key within a fixed window (seconds)."""

    def __init__(self, time_window: float, clock: Callable[[], float] = time.monotonic):
        self.time_window = time_window
        self._clock = clock
        self._requests: Dict[str, float] = {}

    def can_make_request(self, user_id: str) -> bool:
        last_request = self._requests.get(user_id)
        if last_request is None:
            return True
        return self._clock() - last_request >= self.time_window

    def record_request(self, user_id: str) -> None:
        self.prune_expired()
        self._requests[user_id] = self._clock()

    def get_time_until_next_request(self, user_id: str) -> float:
        last_request = self._requests.get(user_id)
        if last_request is None:
            return 0.0
        time_left = self.time_window - (self._clock() - last_request)
        return max(0.0, time_left)

    def prune_expired(self) -> int:
        """Drop users whose window has already elapsed."""
        now = self._clock()
        expired = [
            user_id for user_id, last_request in self._requests.items()
            if now - last_request >= self.time_window
        ]
        for user_id in expired:
            del self._requests[user_id]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._requests)

    def get_limit_message(self, user_id: str) -> str:
        seconds = math.ceil(self.get_time_until_next_request(user_id))
        return f"⏳ Please wait {seconds} seconds before requesting another scan."
