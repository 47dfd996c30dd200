"""Unit tests for configuration validation"""
import pytest

from betterme import config


@pytest.fixture
def valid_config(monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", "postgresql://localhost/betterme")
    monkeypatch.setattr(config, "SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setattr(config, "SUPABASE_ANON_KEY", "anon")


def test_validate_config_ok(valid_config):
    """Test a complete configuration"""
    config.validate_config()


@pytest.mark.parametrize("name", ["DATABASE_URL", "SUPABASE_URL", "SUPABASE_ANON_KEY"])
def test_validate_config_missing(valid_config, monkeypatch, name):
    """Each required setting is reported by name"""
    monkeypatch.setattr(config, name, "")

    with pytest.raises(ValueError, match=name):
        config.validate_config()


def test_defaults():
    """Test analytics defaults"""
    assert config.ANALYTICS_WINDOW_DAYS == 30
    assert config.TOP_HABITS_LIMIT == 5
