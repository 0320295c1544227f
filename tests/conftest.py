"""
Shared fixtures: an in-memory stand-in for the asyncpg pool wrapper
"""
from contextlib import asynccontextmanager

import pytest

from config.settings import settings
from services.api_client import api_client
from services.database_service import db_service
from utils import rate_limiter


class FakeDatabase:
    """Replays queued results per method and records every query"""

    DEFAULTS = {'execute': 'OK', 'fetch_one': None, 'fetch_all': [], 'fetch_val': None}

    def __init__(self):
        self.calls = []
        self.results = {name: [] for name in self.DEFAULTS}

    def queue(self, method: str, *results):
        self.results[method].extend(results)

    async def _call(self, method: str, query: str, args: tuple):
        self.calls.append((method, query, args))
        pending = self.results[method]
        result = pending.pop(0) if pending else self.DEFAULTS[method]
        if isinstance(result, Exception):
            raise result
        return result

    async def execute(self, query, *args):
        return await self._call('execute', query, args)

    async def fetch_one(self, query, *args):
        return await self._call('fetch_one', query, args)

    async def fetch_all(self, query, *args):
        return await self._call('fetch_all', query, args)

    async def fetch_val(self, query, *args):
        return await self._call('fetch_val', query, args)

    @asynccontextmanager
    async def transaction(self):
        yield FakeConnection(self)

    def queries(self, method: str = None):
        return [q for m, q, _ in self.calls if method is None or m == method]


class FakeConnection:
    """asyncpg-style connection names mapped onto FakeDatabase"""

    def __init__(self, db: FakeDatabase):
        self.db = db

    async def execute(self, query, *args):
        return await self.db.execute(query, *args)

    async def fetchval(self, query, *args):
        return await self.db.fetch_val(query, *args)


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDatabase()
    for name in ('execute', 'fetch_one', 'fetch_all', 'fetch_val', 'transaction'):
        monkeypatch.setattr(db_service, name, getattr(db, name))
    return db


@pytest.fixture(autouse=True)
def fast_limits(monkeypatch):
    """No retry delays and fresh rate limit windows in every test"""
    monkeypatch.setattr(settings.api, 'retry_delay', 0)
    api_client.rate_limiter.requests.clear()
    rate_limiter.requests.clear()
    yield
    api_client.rate_limiter.requests.clear()
    rate_limiter.requests.clear()
