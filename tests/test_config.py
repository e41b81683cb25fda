"""
Tests for environment configuration
"""
from companion_bot.config import BotConfig


def test_defaults(monkeypatch):
    for name in ("PORT", "COMPANION_HTTP_PORT", "COMPANION_SERVER_PORT", "COMPANION_OWNER_USERNAME"):
        monkeypatch.delenv(name, raising=False)

    config = BotConfig(_env_file=None)

    assert config.server_port == 25565
    assert config.bot_username == "Aisha"
    assert config.max_retries == 3
    assert config.ping_interval == 30
    assert config.membership_interval == 10
    assert config.retry_cooldown == 120
    assert config.reconnect_backoff == 5
    assert config.http_port == 3000
    assert config.admin_users == []


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("COMPANION_SERVER_HOST", "play.example.net")
    monkeypatch.setenv("COMPANION_SERVER_PORT", "34796")
    monkeypatch.setenv("COMPANION_OWNER_USERNAME", "Owner")

    config = BotConfig(_env_file=None)

    assert config.server_host == "play.example.net"
    assert config.server_port == 34796
    assert config.admin_users == ["Owner"]


def test_plain_api_key_and_port_names(monkeypatch):
    monkeypatch.delenv("COMPANION_GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("COMPANION_HTTP_PORT", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "secret-key")
    monkeypatch.setenv("PORT", "8080")

    config = BotConfig(_env_file=None)

    assert config.gemini_api_key.get_secret_value() == "secret-key"
    assert config.http_port == 8080
    assert "secret-key" not in repr(config)
