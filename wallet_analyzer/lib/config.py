"""Configuration for the wallet analysis client."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_API_URL = "http://localhost:3000/"
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
DEFAULT_LOG_LEVEL = "WARNING"


def _get_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """
    Runtime settings for the analysis client.

    Environment variables:
    - WALLET_ANALYZER_API_URL: backend base URL
    - WALLET_ANALYZER_TIMEOUT: request timeout in seconds
    - WALLET_ANALYZER_LOG_LEVEL: logging level name
    """

    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings from the environment, reading a .env file first if present.

    Variables already set in the environment take precedence over the .env file.
    Unparseable numeric values fall back to their defaults.
    """
    load_dotenv(env_file)
    return Settings(
        api_url=os.getenv("WALLET_ANALYZER_API_URL") or DEFAULT_API_URL,
        request_timeout=_get_float("WALLET_ANALYZER_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        log_level=(os.getenv("WALLET_ANALYZER_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
