# ABOUTME: Tests for environment-driven application settings
# ABOUTME: Defaults, WIKI_NAVIGATOR_ overrides and the cached global instance

import pytest
from pydantic import ValidationError

from wiki_navigator.config import Config, get_config, reload_config
from wiki_navigator.wiki.client import DEFAULT_USER_AGENT


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield
    monkeypatch.undo()
    reload_config()


def test_defaults():
    """Test default settings without environment overrides."""
    config = Config()

    assert config.rate_limit == 10.0
    assert config.request_timeout == 30.0
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.cache_ttl == 300.0
    assert config.cache_ttl_info == 3600.0
    assert config.cache_ttl_search == 60.0
    assert config.log_level == "INFO"
    assert config.log_file is None


def test_environment_overrides(monkeypatch):
    """Test that WIKI_NAVIGATOR_ variables override defaults."""
    monkeypatch.setenv("WIKI_NAVIGATOR_RATE_LIMIT", "2.5")
    monkeypatch.setenv("WIKI_NAVIGATOR_CACHE_TTL", "30")
    monkeypatch.setenv("WIKI_NAVIGATOR_USER_AGENT", "MyBot/2.0 (ops@example.org)")

    config = Config()

    assert config.rate_limit == 2.5
    assert config.cache_ttl == 30.0
    assert config.user_agent == "MyBot/2.0 (ops@example.org)"


def test_dotenv_file(tmp_path):
    """Test that settings are read from a .env file."""
    (tmp_path / ".env").write_text("WIKI_NAVIGATOR_LOG_LEVEL=DEBUG\n")

    assert Config().log_level == "DEBUG"


def test_rejects_non_positive_rate(monkeypatch):
    """Test validation of the rate limit."""
    monkeypatch.setenv("WIKI_NAVIGATOR_RATE_LIMIT", "0")

    with pytest.raises(ValidationError):
        Config()


def test_global_instance_is_reused_until_reloaded(monkeypatch):
    """Test the lazily created global configuration."""
    first = reload_config()
    assert get_config() is first

    monkeypatch.setenv("WIKI_NAVIGATOR_REQUEST_TIMEOUT", "5")
    assert get_config().request_timeout == 30.0

    reloaded = reload_config()
    assert reloaded is not first
    assert reloaded.request_timeout == 5.0
