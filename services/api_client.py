"""
Query wrapper that adds rate limiting, a per-attempt timeout and retries
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config.settings import settings
from services.database_service import db_service
from utils import (
    logger, retry, RateLimiter, RateLimitError, QueryTimeoutError,
    AuthenticationError, AuthorizationError, ValidationError
)

Query = Callable[[], Awaitable[Any]]


@dataclass
class ApiResult:
    data: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def is_retryable(error: Exception) -> bool:
    """Auth failures and client-side (4xx / SQLSTATE class 4x) errors are final"""
    if isinstance(error, (AuthenticationError, AuthorizationError)):
        return False
    if 'auth' in str(error).lower():
        return False
    code = getattr(error, 'error_code', None) or getattr(error, 'sqlstate', None)
    if code and str(code).startswith('4'):
        return False
    return True


class ApiClient:
    """Runs database queries through rate limiting, timeout and retry"""

    def __init__(self, limiter: Optional[RateLimiter] = None):
        self.rate_limiter = limiter or RateLimiter(
            max_requests=settings.api.rate_limit_requests,
            window_seconds=settings.api.rate_limit_window
        )

    async def execute_query(self, query: Query, context: str, *, skip_rate_limit: bool = False,
                            retries: Optional[int] = None, timeout: Optional[float] = None) -> ApiResult:
        """
        Run query() and wrap the outcome in an ApiResult.

        Calls are limited per context. Each attempt is bounded by timeout and
        retried with a linearly growing delay unless the error is not retryable.
        Never raises for query failures; a retry count below 1 is a ValidationError.
        """
        attempts = settings.api.max_retries if retries is None else retries
        if attempts < 1:
            raise ValidationError(f"retries must be at least 1, got {attempts}")
        timeout = settings.api.timeout if timeout is None else timeout

        if not skip_rate_limit and not self.rate_limiter.is_allowed(context):
            return ApiResult(error=RateLimitError(
                "Rate limit exceeded. Please try again later.",
                error_code="rate_limited"
            ))

        @retry(
            max_attempts=attempts,
            delay=settings.api.retry_delay,
            linear=True,
            should_retry=is_retryable
        )
        async def run():
            try:
                return await asyncio.wait_for(query(), timeout=timeout)
            except asyncio.TimeoutError:
                raise QueryTimeoutError("Request timeout")

        try:
            data = await run()
            return ApiResult(data=data)
        except Exception as e:
            logger.error(f"Query '{context}' failed: {e}")
            return ApiResult(error=e)

    async def get_countries(self) -> ApiResult:
        return await self.execute_query(
            lambda: db_service.fetch_all("SELECT * FROM countries ORDER BY name"),
            "get_countries"
        )

    async def get_states(self, country_id: int) -> ApiResult:
        return await self.execute_query(
            lambda: db_service.fetch_all(
                "SELECT * FROM states WHERE country_id = $1 ORDER BY name", country_id
            ),
            "get_states"
        )

    async def get_cities(self, state_id: int) -> ApiResult:
        return await self.execute_query(
            lambda: db_service.fetch_all(
                "SELECT * FROM cities WHERE state_id = $1 ORDER BY name", state_id
            ),
            "get_cities"
        )

    async def get_localities(self, city_id: int) -> ApiResult:
        return await self.execute_query(
            lambda: db_service.fetch_all(
                "SELECT * FROM localities WHERE city_id = $1 ORDER BY name", city_id
            ),
            "get_localities"
        )

    async def save_user_data(self, user_id: str, data_type: str, data_name: str,
                             content: Dict[str, Any], is_favorite: bool = False) -> ApiResult:
        """Insert or replace a named snapshot"""
        query = """
            INSERT INTO user_data (user_id, data_type, data_name, data_content, is_favorite)
            VALUES ($1, $2, $3, $4::jsonb, $5)
            ON CONFLICT (user_id, data_type, data_name)
            DO UPDATE SET data_content = EXCLUDED.data_content,
                          is_favorite = EXCLUDED.is_favorite,
                          updated_at = NOW()
            RETURNING *
        """
        payload = json.dumps(content, default=str)
        return await self.execute_query(
            lambda: db_service.fetch_one(query, user_id, data_type, data_name, payload, is_favorite),
            "save_user_data"
        )

    async def get_user_data(self, user_id: str, data_type: Optional[str] = None) -> ApiResult:
        if data_type:
            query = """
                SELECT * FROM user_data WHERE user_id = $1 AND data_type = $2
                ORDER BY created_at DESC
            """
            args: List[Any] = [user_id, data_type]
        else:
            query = "SELECT * FROM user_data WHERE user_id = $1 ORDER BY created_at DESC"
            args = [user_id]
        return await self.execute_query(
            lambda: db_service.fetch_all(query, *args),
            "get_user_data"
        )

    async def search_user_data(self, user_id: str, text: str, data_type: Optional[str] = None) -> ApiResult:
        """Case-insensitive match on data_name"""
        pattern = f"%{text}%"
        if data_type:
            query = """
                SELECT * FROM user_data
                WHERE user_id = $1 AND data_name ILIKE $2 AND data_type = $3
                ORDER BY created_at DESC
            """
            args: List[Any] = [user_id, pattern, data_type]
        else:
            query = """
                SELECT * FROM user_data WHERE user_id = $1 AND data_name ILIKE $2
                ORDER BY created_at DESC
            """
            args = [user_id, pattern]
        return await self.execute_query(
            lambda: db_service.fetch_all(query, *args),
            "search_user_data"
        )

    async def set_user_data_favorite(self, data_id: int, is_favorite: bool) -> ApiResult:
        return await self.execute_query(
            lambda: db_service.fetch_one(
                "UPDATE user_data SET is_favorite = $2, updated_at = NOW() WHERE id = $1 RETURNING *",
                data_id, is_favorite
            ),
            "set_user_data_favorite"
        )

    async def delete_user_data(self, data_id: int) -> ApiResult:
        return await self.execute_query(
            lambda: db_service.execute("DELETE FROM user_data WHERE id = $1", data_id),
            "delete_user_data"
        )


api_client = ApiClient()
