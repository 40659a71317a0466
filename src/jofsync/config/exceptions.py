"""Custom exceptions for configuration and credentials."""


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""


class AuthenticationError(Exception):
    """Raised when credentials cannot be resolved."""
