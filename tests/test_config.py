"""Tests for environment configuration."""

from datetime import timedelta

import pytest

from b3ledger.config import ConfigError, Settings


def test_defaults():
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.db_path is None
    assert settings.chunk_size == 10
    assert settings.batch_cron == "0 1 * * *"
    assert settings.import_timeout == timedelta(minutes=5)
    assert settings.lang == "en"


def test_values_from_environment():
    settings = Settings.from_env(
        {
            "B3LEDGER_DB_PATH": "/tmp/ledger.db",
            "B3LEDGER_CHUNK_SIZE": "50",
            "B3LEDGER_BATCH_CRON": "30 2 * * 1-5",
            "B3LEDGER_RETRY_MAX_ATTEMPTS": "5",
            "B3LEDGER_RETRY_WAIT_SECONDS": "0.5",
            "B3LEDGER_IMPORT_TIMEOUT_SECONDS": "60",
            "B3LEDGER_LOG_LEVEL": "debug",
            "B3LEDGER_LANG": "pt_BR",
        }
    )

    assert settings.db_path == "/tmp/ledger.db"
    assert settings.chunk_size == 50
    assert settings.batch_cron == "30 2 * * 1-5"
    assert settings.retry_max_attempts == 5
    assert settings.retry_wait == timedelta(seconds=0.5)
    assert settings.import_timeout == timedelta(seconds=60)
    assert settings.log_level == "DEBUG"
    assert settings.lang == "pt_BR"


def test_blank_values_fall_back_to_defaults():
    settings = Settings.from_env({"B3LEDGER_CHUNK_SIZE": " ", "B3LEDGER_DB_PATH": ""})

    assert settings.chunk_size == 10
    assert settings.db_path is None


@pytest.mark.parametrize(
    "name,value",
    [
        ("B3LEDGER_CHUNK_SIZE", "ten"),
        ("B3LEDGER_CHUNK_SIZE", "0"),
        ("B3LEDGER_RETRY_MAX_ATTEMPTS", "-1"),
        ("B3LEDGER_RETRY_WAIT_SECONDS", "-2"),
        ("B3LEDGER_RETRY_WAIT_SECONDS", "soon"),
        ("B3LEDGER_IMPORT_TIMEOUT_SECONDS", "1.5"),
        ("B3LEDGER_LOG_LEVEL", "LOUD"),
        ("B3LEDGER_LANG", "fr"),
        ("B3LEDGER_BATCH_CRON", "every night"),
    ],
)
def test_invalid_values_raise_config_error(name, value):
    with pytest.raises(ConfigError) as excinfo:
        Settings.from_env({name: value})
    assert name in str(excinfo.value)
