"""Utility modules."""

from .exceptions import (
    SyncError,
    AuthError,
    InitError,
    AccountLookupError,
    GatewayError,
    DataError,
    ConfigurationError,
)
from .logging_config import setup_logging

__all__ = [
    "SyncError",
    "AuthError",
    "InitError",
    "AccountLookupError",
    "GatewayError",
    "DataError",
    "ConfigurationError",
    "setup_logging",
]
