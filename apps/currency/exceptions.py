"""Domain exceptions for the currency app."""

from config.exceptions import DependencyError, LedgerValidationError


class ExchangeRateFetchError(DependencyError):
    """Raised by providers when rates cannot be fetched or parsed."""
    default_message = 'Exchange rates could not be fetched.'


class InvalidCurrencyError(LedgerValidationError):
    """Raised when a currency code is not a 3-letter ISO code."""
    default_message = 'Currency must be a 3-letter ISO code.'
