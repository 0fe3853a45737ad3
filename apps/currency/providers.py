"""
Exchange rate providers.

A provider fetches the current rates for a base currency and returns a
mapping of currency code -> rate (units of that currency per one base
unit). Providers raise ExchangeRateFetchError on any failure; the rate
service decides how to degrade.
"""

import logging
from decimal import Decimal, InvalidOperation

import requests
from django.conf import settings

from .exceptions import ExchangeRateFetchError


logger = logging.getLogger(__name__)


class ExchangeRateProvider:
    """Base class for exchange rate providers."""

    name = 'base'

    def fetch_rates(self, base_currency):
        raise NotImplementedError


class HTTPExchangeRateProvider(ExchangeRateProvider):
    """
    Fetch rates from a JSON HTTP API answering ``{"rates": {CODE: number}}``.

    The URL template is formatted with ``base``, e.g.
    ``https://api.exchangerate-api.com/v4/latest/{base}``.
    """

    name = 'http'

    def __init__(self, url_template=None, timeout=None, session=None):
        self.url_template = url_template or settings.EXCHANGE_RATE_API_URL
        self.timeout = timeout or settings.EXCHANGE_RATE_TIMEOUT
        self.session = session or requests.Session()

    def fetch_rates(self, base_currency):
        url = self.url_template.format(base=base_currency)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ExchangeRateFetchError(f"Rate request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ExchangeRateFetchError(f"Rate response from {url} is not JSON") from exc

        rates = payload.get('rates') if isinstance(payload, dict) else None
        if not isinstance(rates, dict) or not rates:
            raise ExchangeRateFetchError(f"Rate response from {url} has no rates")

        return parse_rates(rates)


def parse_rates(raw_rates):
    """
    Normalize a raw rates mapping.

    Codes are upper-cased; values are kept as decimal strings. Entries that
    are not positive numbers are dropped.
    """
    rates = {}
    for code, value in raw_rates.items():
        try:
            rate = Decimal(str(value))
        except (InvalidOperation, ValueError):
            logger.warning("Dropping unparsable rate %r for %s", value, code)
            continue
        if not rate.is_finite() or rate <= 0:
            logger.warning("Dropping non-positive rate %s for %s", value, code)
            continue
        rates[str(code).upper()] = str(rate)
    return rates
