"""
Application settings loaded from the environment
"""
import os
from dataclasses import dataclass
from typing import Optional, List
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

# Load .env before reading any variables
load_dotenv()


@dataclass
class DatabaseConfig:
    """Database connection settings"""
    host: Optional[str] = None
    port: str = "5432"
    name: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    min_pool_size: int = 5
    max_pool_size: int = 20
    command_timeout: int = 60

    @property
    def url(self) -> Optional[str]:
        """Connection URL, or None if credentials are incomplete"""
        if all([self.host, self.name, self.user, self.password]):
            return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"
        return None

    @property
    def is_configured(self) -> bool:
        return self.url is not None


@dataclass
class BotConfig:
    """Telegram bot settings"""
    token: str
    rate_limit_requests: int = 30
    rate_limit_window: int = 60  # seconds

    def validate(self) -> List[str]:
        errors = []
        if not self.token:
            errors.append("BOT_TOKEN is required")
        if self.rate_limit_requests <= 0:
            errors.append("rate_limit_requests must be positive")
        return errors


@dataclass
class ApiConfig:
    """Query wrapper settings: timeout, retries and request budget"""
    timeout: float = 10.0  # seconds
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds, multiplied by the attempt number
    rate_limit_requests: int = 10
    rate_limit_window: int = 60  # seconds
    exchange_rate_url: str = "https://api.exchangerate.host"
    http_timeout: float = 10.0


@dataclass
class CacheConfig:
    """Cache settings"""
    enabled: bool = True
    ttl: int = 300  # 5 minutes
    max_size: int = 1000


@dataclass
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: str = "logs/finassist.log"


@dataclass
class StorageConfig:
    """Local draft storage"""
    draft_path: str = "data/calculation_draft.json"
    draft_ttl_hours: int = 24


class Settings:
    """Top-level application settings"""

    def __init__(self):
        self.bot = BotConfig(
            token=os.environ.get('BOT_TOKEN', ''),
            rate_limit_requests=int(os.environ.get('BOT_RATE_LIMIT', '30')),
            rate_limit_window=int(os.environ.get('BOT_RATE_WINDOW', '60'))
        )

        self.database = DatabaseConfig(
            host=os.environ.get('DATABASE_HOST'),
            port=os.environ.get('DATABASE_PORT', '5432'),
            name=os.environ.get('DATABASE_NAME'),
            user=os.environ.get('DATABASE_USER'),
            password=os.environ.get('DATABASE_PASSWORD'),
            min_pool_size=int(os.environ.get('DATABASE_MIN_POOL', '5')),
            max_pool_size=int(os.environ.get('DATABASE_MAX_POOL', '20'))
        )

        self.api = ApiConfig(
            timeout=float(os.environ.get('API_TIMEOUT', '10')),
            max_retries=int(os.environ.get('API_MAX_RETRIES', '3')),
            retry_delay=float(os.environ.get('API_RETRY_DELAY', '1.0')),
            rate_limit_requests=int(os.environ.get('API_RATE_LIMIT', '10')),
            rate_limit_window=int(os.environ.get('API_RATE_WINDOW', '60')),
            exchange_rate_url=os.environ.get('EXCHANGE_RATE_URL', 'https://api.exchangerate.host')
        )

        self.cache = CacheConfig(
            enabled=os.environ.get('CACHE_ENABLED', 'true').lower() == 'true',
            ttl=int(os.environ.get('CACHE_TTL', '300')),
            max_size=int(os.environ.get('CACHE_MAX_SIZE', '1000'))
        )

        self.logging = LoggingConfig(
            level=os.environ.get('LOG_LEVEL', 'INFO'),
            file_path=os.environ.get('LOG_FILE', 'logs/finassist.log')
        )

        self.storage = StorageConfig(
            draft_path=os.environ.get('DRAFT_PATH', 'data/calculation_draft.json'),
            draft_ttl_hours=int(os.environ.get('DRAFT_TTL_HOURS', '24'))
        )

        self.debug = os.environ.get('DEBUG', 'False').lower() == 'true'

        if not self.database.is_configured:
            logger.warning("Database is not configured. Persistence features will not work.")

    def validate_bot(self) -> List[str]:
        """Errors that prevent the bot from starting"""
        errors = self.bot.validate()
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return errors


# Global settings instance
settings = Settings()

logger.info(f"Configuration loaded. Debug mode: {settings.debug}")
