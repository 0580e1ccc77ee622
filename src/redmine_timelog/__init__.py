"""redmine_timelog package exports."""

from .cache import SessionCache
from .client import RedmineClient, create_client_from_env
from .config import ClientConfig, RetryConfig, load_env_config
from .errors import (
    ErrorKind,
    RedmineApiError,
    RedmineClientError,
    RedmineConfigurationError,
    RedmineConnectionError,
    RedmineNotFoundError,
    RedmineParseError,
    RedminePreconditionError,
    RedmineRateLimitError,
    RedmineServerError,
    RedmineUnknownError,
    RedmineValidationError,
    classify,
)
from .logging import setup_logging
from .models import Activity, Issue, Project, TimeEntry
from .session import Session
from .transport import RawResponse, RedmineTransport

__all__ = [
    # Client
    "RedmineClient",
    "create_client_from_env",
    "ClientConfig",
    "RetryConfig",
    "load_env_config",
    "Session",
    "SessionCache",
    "RedmineTransport",
    "RawResponse",
    # Domain
    "Project",
    "Activity",
    "Issue",
    "TimeEntry",
    # Exceptions
    "ErrorKind",
    "classify",
    "RedmineClientError",
    "RedminePreconditionError",
    "RedmineApiError",
    "RedmineConfigurationError",
    "RedmineNotFoundError",
    "RedmineValidationError",
    "RedmineRateLimitError",
    "RedmineServerError",
    "RedmineConnectionError",
    "RedmineUnknownError",
    "RedmineParseError",
    # Logging
    "setup_logging",
]
