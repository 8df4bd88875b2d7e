"""
entity_store/config.py -- Runtime configuration.

Defaults place the store and the audit log in the platform user data
directory (via platformdirs).  Every setting can be overridden with an
``ENTITY_STORE_*`` environment variable, and the command-line driver layers
its own flags on top.

    ENTITY_STORE_PATH          data store file
    ENTITY_STORE_LOG_FILE      audit log (JSON Lines)
    ENTITY_STORE_ALERT_EMAIL   low stock alert recipient (empty disables)
    ENTITY_STORE_SMTP_HOST     mail server host
    ENTITY_STORE_SMTP_PORT     mail server port
    ENTITY_STORE_LOW_STOCK     alert threshold for quantity on hand
    ENTITY_STORE_LOG_LEVEL     logging level name
"""

from __future__ import annotations

import logging
import os
from typing import Mapping

from platformdirs import user_data_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from entity_store.utils import humanize_validation_errors

logger = logging.getLogger(__name__)

_APP_NAME = "EntityStore"
_APP_AUTHOR = "EntityStore"

_ENV_FIELDS = {
    "ENTITY_STORE_PATH": "store_path",
    "ENTITY_STORE_LOG_FILE": "log_path",
    "ENTITY_STORE_ALERT_EMAIL": "alert_email",
    "ENTITY_STORE_SMTP_HOST": "smtp_host",
    "ENTITY_STORE_SMTP_PORT": "smtp_port",
    "ENTITY_STORE_LOW_STOCK": "low_stock_limit",
    "ENTITY_STORE_LOG_LEVEL": "log_level",
}


def get_user_data_dir() -> str:
    """Return the platform-appropriate user data directory."""
    return user_data_dir(_APP_NAME, _APP_AUTHOR)


def _default_store_path() -> str:
    return os.path.join(get_user_data_dir(), "data_store.json")


def _default_log_path() -> str:
    return os.path.join(get_user_data_dir(), "audit.jsonl")


class StoreConfig(BaseModel):
    """Settings for opening a store and wiring its observers."""

    model_config = ConfigDict(extra="forbid")

    store_path: str = Field(default_factory=_default_store_path)
    log_path: str = Field(default_factory=_default_log_path)
    alert_email: str | None = None
    smtp_host: str = "localhost"
    smtp_port: int = Field(default=25, ge=1, le=65535)
    low_stock_limit: int = Field(default=5, ge=0)
    log_level: str = "INFO"

    @field_validator("alert_email")
    @classmethod
    def _empty_email_disables(cls, value):
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value):
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown logging level '{value}'")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> StoreConfig:
        """Build a config from ``ENTITY_STORE_*`` variables plus *overrides*.

        Overrides whose value is ``None`` are ignored so that unset
        command-line flags fall through to the environment or the default.

        Raises
        ------
        ValueError
            If a value does not validate (e.g. a non-numeric port).
        """
        environ = os.environ if environ is None else environ
        values = {
            field: environ[var]
            for var, field in _ENV_FIELDS.items()
            if var in environ
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as exc:
            problems = "; ".join(humanize_validation_errors(exc.errors()))
            raise ValueError(f"Invalid entity store configuration: {problems}") from exc
