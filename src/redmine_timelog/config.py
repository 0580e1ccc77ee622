from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

URL_ENV = "REDMINE_URL"
API_KEY_ENV = "REDMINE_API_KEY"


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2  # total extra attempts, GET only
    backoff_base_seconds: float = 0.3  # 0.3, 0.6, 1.2...
    retry_statuses: frozenset[int] = frozenset({502, 503, 504})
    retry_on_429: bool = False


@dataclass(frozen=True)
class ClientConfig:
    connect_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 30.0
    # Redmine is usually self-hosted behind a self-signed certificate.
    verify_tls: bool = False
    page_size: int = 100
    max_daily_hours: float = 24.0
    weekly_hours_field_id: int = 27
    placeholder_subject: str = "Unknown Issue"

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.connect_timeout_seconds <= 0 or self.request_timeout_seconds <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_daily_hours <= 0:
            raise ValueError("max_daily_hours must be positive")


def normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip().rstrip("/")
    if not base_url:
        raise ValueError("base_url must be provided.")
    return base_url


def load_env_config(*, use_dotenv: bool = True) -> Tuple[str, str]:
    """Load Redmine base URL and API key from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    base_url = os.getenv(URL_ENV, "").strip()
    api_key = os.getenv(API_KEY_ENV, "").strip()
    return base_url, api_key


__all__ = [
    "API_KEY_ENV",
    "URL_ENV",
    "ClientConfig",
    "RetryConfig",
    "load_env_config",
    "normalize_base_url",
]
