"""Tests for settings.conf loading."""

import pytest
from uvicorn.config import LOG_LEVELS

from config import DEFAULTS, SettingsError, load_settings_conf, validate_settings

def write_settings(path, body):
    (path / 'settings.conf').write_text(body)

def test_load_with_defaults(tmp_path):
    """Test that optional settings fall back to defaults."""
    write_settings(tmp_path, "[DEFAULT]\ndb_url = postgresql://root@localhost:26257/defaultdb\n")

    settings = load_settings_conf(str(tmp_path))

    assert settings['db_url'] == "postgresql://root@localhost:26257/defaultdb"
    assert settings['max_transaction_attempts'] == 5
    assert settings['api_port'] == 8000
    assert settings['api_host'] == DEFAULTS['api_host']
    assert settings['changefeed_sink_url'] == ""
    assert settings['log_level'] == "INFO"

def test_load_overrides(tmp_path):
    """Test that file values override defaults and are converted."""
    write_settings(tmp_path, "\n".join([
        "[DEFAULT]",
        "db_url = postgresql://root@db:26257/p2p",
        "max_transaction_attempts = 8",
        "api_port = 9100",
        "changefeed_sink_url = webhook-https://escrow:9100/changefeed/offers",
        "log_level = debug",
    ]))

    settings = load_settings_conf(str(tmp_path))

    assert settings['max_transaction_attempts'] == 8
    assert settings['api_port'] == 9100
    assert settings['changefeed_sink_url'] == "webhook-https://escrow:9100/changefeed/offers"
    assert settings['log_level'] == "DEBUG"

def test_missing_file(tmp_path):
    """Test that a missing settings.conf is reported."""
    with pytest.raises(SettingsError) as exc_info:
        load_settings_conf(str(tmp_path))
    assert "not found" in str(exc_info.value)

def test_missing_default_section(tmp_path):
    """Test that a file without a DEFAULT section is rejected."""
    write_settings(tmp_path, "[other]\ndb_url = postgresql://root@localhost/db\n")

    with pytest.raises(SettingsError) as exc_info:
        load_settings_conf(str(tmp_path))
    assert "[DEFAULT]" in str(exc_info.value)

def test_missing_db_url(tmp_path):
    """Test that db_url is required."""
    write_settings(tmp_path, "[DEFAULT]\napi_port = 8000\n")

    with pytest.raises(SettingsError) as exc_info:
        load_settings_conf(str(tmp_path))
    assert "db_url" in str(exc_info.value)

@pytest.mark.parametrize("key,value", [
    ('max_transaction_attempts', 'many'),
    ('max_transaction_attempts', '0'),
    ('api_port', 'http'),
    ('api_port', '70000'),
    ('changefeed_sink_url', 'https://escrow/changefeed/offers'),
    ('log_level', 'LOUD'),
    ('log_level', 'notset'),
])
def test_invalid_values(key, value):
    """Test that invalid values are reported by name."""
    settings = {**DEFAULTS, 'db_url': "postgresql://root@localhost/db", key: value}

    with pytest.raises(SettingsError) as exc_info:
        validate_settings(settings)
    assert key in str(exc_info.value)

@pytest.mark.parametrize("value,expected", [
    ('warn', 'WARNING'),
    ('fatal', 'CRITICAL'),
    ('warning', 'WARNING'),
    ('Debug', 'DEBUG'),
])
def test_log_level_names_usable_by_uvicorn(value, expected):
    """Test that level aliases resolve to names uvicorn understands."""
    settings = {**DEFAULTS, 'db_url': "postgresql://root@localhost/db", 'log_level': value}

    validated = validate_settings(settings)

    assert validated['log_level'] == expected
    assert validated['log_level'].lower() in LOG_LEVELS
