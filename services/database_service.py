"""
PostgreSQL access through an asyncpg connection pool
"""
import asyncpg
from typing import Optional, List, Dict, Any
from contextlib import asynccontextmanager
from config.settings import settings
from utils import logger, DatabaseError

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS countries (
        id SERIAL PRIMARY KEY,
        code VARCHAR(3) NOT NULL UNIQUE,
        name VARCHAR(255) NOT NULL,
        currency VARCHAR(3),
        region VARCHAR(255),
        population BIGINT,
        gdp_per_capita NUMERIC(14, 2)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS states (
        id SERIAL PRIMARY KEY,
        country_id INTEGER NOT NULL REFERENCES countries(id) ON DELETE CASCADE,
        name VARCHAR(255) NOT NULL,
        code VARCHAR(20),
        UNIQUE (country_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cities (
        id SERIAL PRIMARY KEY,
        state_id INTEGER NOT NULL REFERENCES states(id) ON DELETE CASCADE,
        name VARCHAR(255) NOT NULL,
        population BIGINT,
        latitude DOUBLE PRECISION,
        longitude DOUBLE PRECISION,
        timezone VARCHAR(64),
        UNIQUE (state_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS localities (
        id SERIAL PRIMARY KEY,
        city_id INTEGER NOT NULL REFERENCES cities(id) ON DELETE CASCADE,
        name VARCHAR(255) NOT NULL,
        UNIQUE (city_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS location_expenses (
        id SERIAL PRIMARY KEY,
        country_code VARCHAR(10) NOT NULL,
        state_code VARCHAR(20),
        city_code VARCHAR(64),
        expense_type VARCHAR(32) NOT NULL,
        estimated_amount NUMERIC(12, 2) NOT NULL,
        currency VARCHAR(3) NOT NULL DEFAULT 'USD',
        is_flexible BOOLEAN NOT NULL DEFAULT FALSE,
        reduction_potential NUMERIC(4, 3) NOT NULL DEFAULT 0,
        description TEXT,
        created_at TIMESTAMP DEFAULT NOW(),
        updated_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS spending_habits (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        country_code VARCHAR(10) NOT NULL,
        state_code VARCHAR(20),
        name VARCHAR(255) NOT NULL,
        habit_type VARCHAR(20) NOT NULL,
        expense_multiplier NUMERIC(5, 2) NOT NULL DEFAULT 1.00,
        description TEXT,
        is_default BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP DEFAULT NOW(),
        updated_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS expense_categories (
        id SERIAL PRIMARY KEY,
        name VARCHAR(100) NOT NULL UNIQUE,
        icon VARCHAR(16),
        color VARCHAR(16),
        is_default BOOLEAN NOT NULL DEFAULT FALSE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS expenses (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        category_id INTEGER REFERENCES expense_categories(id) ON DELETE SET NULL,
        amount NUMERIC(12, 2) NOT NULL,
        currency VARCHAR(3) NOT NULL DEFAULT 'USD',
        expense_date DATE NOT NULL,
        description TEXT,
        location TEXT,
        source VARCHAR(20) NOT NULL DEFAULT 'manual',
        tags TEXT[] NOT NULL DEFAULT '{}',
        receipt_url TEXT,
        is_recurring BOOLEAN NOT NULL DEFAULT FALSE,
        recurring_interval VARCHAR(16),
        created_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS budgets (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        category_id INTEGER REFERENCES expense_categories(id) ON DELETE CASCADE,
        amount NUMERIC(12, 2) NOT NULL,
        period VARCHAR(16) NOT NULL DEFAULT 'monthly',
        start_date DATE NOT NULL,
        end_date DATE NOT NULL,
        created_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS spending_alerts (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        category_id INTEGER REFERENCES expense_categories(id) ON DELETE CASCADE,
        threshold NUMERIC(12, 2) NOT NULL,
        period VARCHAR(16) NOT NULL DEFAULT 'monthly',
        active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title VARCHAR(255) NOT NULL,
        message TEXT NOT NULL,
        type VARCHAR(16) NOT NULL DEFAULT 'info',
        priority VARCHAR(16) NOT NULL DEFAULT 'medium',
        is_read BOOLEAN NOT NULL DEFAULT FALSE,
        is_dismissed BOOLEAN NOT NULL DEFAULT FALSE,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMP DEFAULT NOW(),
        updated_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS profiles (
        user_id TEXT PRIMARY KEY,
        email VARCHAR(255),
        first_name VARCHAR(255),
        last_name VARCHAR(255),
        country VARCHAR(64),
        currency VARCHAR(3) NOT NULL DEFAULT 'USD',
        created_at TIMESTAMP DEFAULT NOW(),
        updated_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_data (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        data_type VARCHAR(64) NOT NULL,
        data_name VARCHAR(255) NOT NULL,
        data_content JSONB NOT NULL DEFAULT '{}'::jsonb,
        is_favorite BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP DEFAULT NOW(),
        updated_at TIMESTAMP DEFAULT NOW(),
        UNIQUE (user_id, data_type, data_name)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_expenses_user_date ON expenses (user_id, expense_date)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications (user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_location_expenses_loc ON location_expenses (country_code, state_code, city_code)",
]


class DatabaseService:
    """Connection pool wrapper"""

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    async def initialize(self):
        """Create the connection pool"""
        db = settings.database
        try:
            self.pool = await asyncpg.create_pool(
                host=db.host,
                port=db.port,
                database=db.name,
                user=db.user,
                password=db.password,
                min_size=db.min_pool_size,
                max_size=db.max_pool_size,
                command_timeout=db.command_timeout
            )
            logger.info("✅ Database connection pool created")
        except Exception as e:
            logger.error(f"❌ Failed to create connection pool: {e}")
            raise DatabaseError(f"Failed to connect to database: {e}")

    async def close(self):
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Connection pool closed")

    async def init_schema(self):
        """Create missing tables and indexes"""
        try:
            async with self.transaction() as conn:
                for statement in SCHEMA:
                    await conn.execute(statement)
            logger.info("Database schema is up to date")
        except DatabaseError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialise schema: {e}")
            raise DatabaseError(f"Failed to initialise schema: {e}")

    @asynccontextmanager
    async def get_connection(self):
        if not self.pool:
            raise DatabaseError("Connection pool is not initialised")

        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self):
        """Connection with an open transaction, committed on exit"""
        async with self.get_connection() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args) -> str:
        async with self.get_connection() as conn:
            return await conn.execute(query, *args)

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        async with self.get_connection() as conn:
            return await conn.fetchrow(query, *args)

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        async with self.get_connection() as conn:
            return await conn.fetch(query, *args)

    async def fetch_val(self, query: str, *args) -> Any:
        async with self.get_connection() as conn:
            return await conn.fetchval(query, *args)


db_service = DatabaseService()
