"""Runtime configuration for b3ledger.

This module owns all environment variable parsing and validation.
Other modules consume a typed Settings object instead of raw env reads.
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional

from apscheduler.triggers.cron import CronTrigger

SUPPORTED_LANGUAGES = ("en", "pt_BR")


class ConfigError(ValueError):
    """An environment variable holds an invalid value."""


@dataclass(frozen=True)
class Settings:
    """Validated runtime configuration.

    Attributes:
        db_path: SQLite file; None means the default ~/.b3ledger/b3ledger.db
        chunk_size: Items per batch chunk and reader page
        batch_cron: Crontab expression of the scheduled batch
        retry_max_attempts: Attempts per scheduled batch before alerting
        retry_wait: Fixed wait between attempts
        import_timeout: Ceiling for one file import
        log_level: Level of the b3ledger logger
        lang: Language of CLI error messages
    """

    db_path: Optional[str] = None
    chunk_size: int = 10
    batch_cron: str = "0 1 * * *"
    retry_max_attempts: int = 3
    retry_wait: timedelta = timedelta(seconds=5)
    import_timeout: timedelta = timedelta(minutes=5)
    log_level: str = "WARNING"
    lang: str = "en"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            A validated Settings object

        Raises:
            ConfigError: If a value is invalid
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        log_level = env.get("B3LEDGER_LOG_LEVEL", defaults.log_level).strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(
                f"Invalid B3LEDGER_LOG_LEVEL value: '{log_level}'. "
                "Use DEBUG, INFO, WARNING, ERROR or CRITICAL."
            )

        lang = env.get("B3LEDGER_LANG", defaults.lang).strip()
        if lang not in SUPPORTED_LANGUAGES:
            raise ConfigError(
                f"Invalid B3LEDGER_LANG value: '{lang}'. "
                f"Supported: {', '.join(SUPPORTED_LANGUAGES)}."
            )

        batch_cron = env.get("B3LEDGER_BATCH_CRON", defaults.batch_cron).strip()
        try:
            CronTrigger.from_crontab(batch_cron)
        except ValueError as error:
            raise ConfigError(f"Invalid B3LEDGER_BATCH_CRON value: '{batch_cron}': {error}") from error

        return cls(
            db_path=env.get("B3LEDGER_DB_PATH") or None,
            chunk_size=_parse_positive_int(env, "B3LEDGER_CHUNK_SIZE", defaults.chunk_size),
            batch_cron=batch_cron,
            retry_max_attempts=_parse_positive_int(
                env, "B3LEDGER_RETRY_MAX_ATTEMPTS", defaults.retry_max_attempts
            ),
            retry_wait=timedelta(
                seconds=_parse_non_negative_float(
                    env, "B3LEDGER_RETRY_WAIT_SECONDS", defaults.retry_wait.total_seconds()
                )
            ),
            import_timeout=timedelta(
                seconds=_parse_positive_int(
                    env,
                    "B3LEDGER_IMPORT_TIMEOUT_SECONDS",
                    int(defaults.import_timeout.total_seconds()),
                )
            ),
            log_level=log_level,
            lang=lang,
        )


def _parse_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Parse a positive integer environment value.

    Raises:
        ConfigError: If the value is not a positive integer
    """
    raw_value = env.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'."
        ) from error
    if value <= 0:
        raise ConfigError(f"Invalid {name} value: must be positive, got {value}.")
    return value


def _parse_non_negative_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw_value = env.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = float(raw_value)
    except ValueError as error:
        raise ConfigError(f"Invalid {name} value: expected number, got '{raw_value}'.") from error
    if value < 0:
        raise ConfigError(f"Invalid {name} value: cannot be negative, got {value}.")
    return value
