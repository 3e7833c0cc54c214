"""Custom exceptions for the sync application."""


class SyncError(Exception):
    """Base exception for sync errors."""

    pass


class AuthError(SyncError):
    """Ghostfolio rejected the access token or returned no auth token."""

    pass


class InitError(SyncError):
    """Actual Budget session could not be opened or the budget is missing."""

    pass


class AccountLookupError(SyncError):
    """A named account is absent on Ghostfolio or Actual Budget."""

    pass


class GatewayError(SyncError):
    """Transport or protocol failure talking to either API."""

    pass


class DataError(SyncError):
    """No usable valuation field found."""

    pass


class ConfigurationError(SyncError):
    """Error in configuration."""

    pass
