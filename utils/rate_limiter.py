"""
Sliding-window rate limiting
"""
import time
from typing import Dict, Hashable
from collections import defaultdict, deque
from config.settings import settings
from utils.exceptions import RateLimitError
from utils.logger import logger


class RateLimiter:
    """Allows at most max_requests per key inside a sliding window"""

    def __init__(self, max_requests: int = 30, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Dict[Hashable, deque] = defaultdict(deque)

    def _prune(self, key: Hashable, now: float) -> deque:
        window = self.requests[key]
        while window and window[0] <= now - self.window_seconds:
            window.popleft()
        return window

    def is_allowed(self, key: Hashable) -> bool:
        """Record a request for key if it fits in the window"""
        now = time.time()
        window = self._prune(key, now)

        if len(window) >= self.max_requests:
            logger.warning(f"Rate limit exceeded for {key}")
            return False

        window.append(now)
        return True

    def get_remaining_requests(self, key: Hashable) -> int:
        window = self._prune(key, time.time())
        return max(0, self.max_requests - len(window))

    def reset(self, key: Hashable):
        self.requests.pop(key, None)


# Limiter for bot users
rate_limiter = RateLimiter(
    max_requests=settings.bot.rate_limit_requests,
    window_seconds=settings.bot.rate_limit_window
)


def check_rate_limit(key: Hashable, limiter: RateLimiter = None) -> None:
    """Raise RateLimitError when key is over its budget"""
    limiter = limiter or rate_limiter
    if not limiter.is_allowed(key):
        raise RateLimitError(
            "Too many requests. Please try again in a minute.",
            error_code="rate_limited"
        )
