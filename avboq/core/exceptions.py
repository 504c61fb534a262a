"""Core custom exceptions for the application."""


class BoqError(Exception):
    """Base exception for local (non-gateway) failures."""


class ConfigurationError(BoqError):
    """Exception for configuration-related errors (e.g., missing API key, missing templates)."""


class CatalogError(BoqError):
    """Raised when the product catalog file cannot be parsed into catalog items."""
