#!/usr/bin/env python3
"""
Configuration for the Lucia sales assistant backend.
Handles environment variable loading, validation and logging setup.
"""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional

from dotenv import load_dotenv

from lucia.core.errors import ConfigMissing

# Load environment variables from .env file if present
load_dotenv()


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_CATALOG_SCHEMA = "comercial"

DEFAULT_STRICKER_API_URL = "https://ws.spotgifts.com.br/api/v1SSL/"
DEFAULT_STRICKER_LANG = "PT"

# Polling interval between run status reads, in seconds
DEFAULT_POLL_INTERVAL = 1.0

# Deadline for a single assistant run, in seconds
DEFAULT_RUN_TIMEOUT = 600.0

DEFAULT_TOOL_MAX_WORKERS = 4

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Requirement groups checked by validate_config()
CHAT_REQUIREMENTS = ("openai_api_key", "assistant_id", "database_url")
SYNC_REQUIREMENTS = ("database_url", "stricker_access_key")
SERVER_REQUIREMENTS = CHAT_REQUIREMENTS + ("cron_secret", "stricker_access_key")

ENV_NAMES = {
    "openai_api_key": "OPENAI_API_KEY",
    "assistant_id": "LUCIA_ASSISTANT_ID",
    "database_url": "CATALOG_DATABASE_URL",
    "cron_secret": "CRON_SECRET",
    "stricker_access_key": "STRICKER_ACCESS_KEY",
}


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the process configuration."""

    openai_api_key: Optional[str] = None
    assistant_id: Optional[str] = None

    database_url: Optional[str] = None
    catalog_schema: Optional[str] = DEFAULT_CATALOG_SCHEMA

    lead_webhook_url: Optional[str] = None
    lead_webhook_timeout: Optional[float] = None

    cron_secret: Optional[str] = None

    stricker_access_key: Optional[str] = None
    stricker_api_url: str = DEFAULT_STRICKER_API_URL
    stricker_lang: str = DEFAULT_STRICKER_LANG

    poll_interval: float = DEFAULT_POLL_INTERVAL
    run_timeout: float = DEFAULT_RUN_TIMEOUT
    tool_max_workers: int = DEFAULT_TOOL_MAX_WORKERS

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        # An empty CATALOG_SCHEMA means "no schema" (e.g. SQLite in development)
        schema = os.getenv("CATALOG_SCHEMA", DEFAULT_CATALOG_SCHEMA) or None

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            assistant_id=os.getenv("LUCIA_ASSISTANT_ID"),
            database_url=os.getenv("CATALOG_DATABASE_URL"),
            catalog_schema=schema,
            lead_webhook_url=os.getenv("LEAD_WEBHOOK_URL") or os.getenv("N8N_WEBHOOK_URL"),
            lead_webhook_timeout=_optional_float(os.getenv("LEAD_WEBHOOK_TIMEOUT")),
            cron_secret=os.getenv("CRON_SECRET"),
            stricker_access_key=os.getenv("STRICKER_ACCESS_KEY"),
            stricker_api_url=os.getenv("STRICKER_API_URL", DEFAULT_STRICKER_API_URL),
            stricker_lang=os.getenv("STRICKER_LANG", DEFAULT_STRICKER_LANG),
            poll_interval=float(os.getenv("ASSISTANT_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))),
            run_timeout=float(os.getenv("ASSISTANT_RUN_TIMEOUT", str(DEFAULT_RUN_TIMEOUT))),
            tool_max_workers=int(os.getenv("TOOL_MAX_WORKERS", str(DEFAULT_TOOL_MAX_WORKERS))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


# =============================================================================
# Validation
# =============================================================================

def missing_config(settings: Settings, required: Iterable[str]) -> List[str]:
    """Return the environment variable names of required values that are unset."""
    return [ENV_NAMES[name] for name in required if not getattr(settings, name)]


def validate_config(settings: Settings, required: Iterable[str] = SERVER_REQUIREMENTS) -> None:
    """
    Validate that all required configuration values are present.

    Raises:
        ConfigMissing: listing every missing environment variable
    """
    missing = missing_config(settings, required)
    if missing:
        raise ConfigMissing(missing)


def _mask(value: Optional[str]) -> str:
    if not value:
        return "Not set"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"


def get_config_summary(settings: Settings) -> str:
    """
    Get a summary of the current configuration (for logging).
    Sensitive values are masked.
    """
    webhook_status = "Configured" if settings.lead_webhook_url else "Not configured (leads are skipped)"
    webhook_timeout = settings.lead_webhook_timeout if settings.lead_webhook_timeout is not None else "none"

    return f"""
Lucia Configuration:
  Assistant:
    - OpenAI API Key: {_mask(settings.openai_api_key)}
    - Assistant ID: {settings.assistant_id or 'Not set'}
    - Poll Interval: {settings.poll_interval}s
    - Run Timeout: {settings.run_timeout}s
    - Tool Workers: {settings.tool_max_workers}

  Catalog Store:
    - Database: {'Configured' if settings.database_url else 'Not set'}
    - Schema: {settings.catalog_schema or '(default)'}

  Lead Webhook:
    - Status: {webhook_status}
    - Timeout: {webhook_timeout}

  Stricker Sync:
    - API URL: {settings.stricker_api_url}
    - Access Key: {_mask(settings.stricker_access_key)}
    - Language: {settings.stricker_lang}
    - Cron Secret: {'Configured' if settings.cron_secret else 'Not set'}
"""


# =============================================================================
# Logging
# =============================================================================

def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Set up root logging with the project format."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


if __name__ == "__main__":
    settings = Settings.from_env()
    print("Validating configuration...")
    try:
        validate_config(settings)
    except ConfigMissing as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        sys.exit(1)
    print("Configuration is valid!")
    print(get_config_summary(settings))
