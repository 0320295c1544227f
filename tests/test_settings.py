"""
Settings tests
"""
import dataclasses

from config.settings import BotConfig, Settings


def test_bot_settings_from_environment(monkeypatch):
    monkeypatch.setenv('BOT_TOKEN', '123:abc')
    monkeypatch.setenv('BOT_RATE_LIMIT', '5')
    monkeypatch.setenv('API_RETRY_DELAY', '0.5')

    settings = Settings()

    assert settings.bot.token == '123:abc'
    assert settings.bot.rate_limit_requests == 5
    assert settings.api.retry_delay == 0.5
    assert settings.validate_bot() == []
    assert [f.name for f in dataclasses.fields(BotConfig)] == ['token', 'rate_limit_requests', 'rate_limit_window']


def test_missing_token_is_reported(monkeypatch):
    monkeypatch.setenv('BOT_TOKEN', '')
    monkeypatch.setenv('BOT_RATE_LIMIT', '0')

    errors = Settings().validate_bot()

    assert errors == ["BOT_TOKEN is required", "rate_limit_requests must be positive"]
