import pytest
from decimal import Decimal

from apps.currency.exceptions import ExchangeRateFetchError
from apps.currency.models import ExchangeRateSnapshot
from apps.currency.providers import ExchangeRateProvider
from apps.currency.services import ExchangeRateService, RateSnapshot


class StubProvider(ExchangeRateProvider):
    """Provider returning canned rates, or failing when ``error`` is set."""

    name = 'stub'

    def __init__(self, rates=None, error=None):
        self.rates = rates or {'USD': '0.0125', 'EUR': '0.01'}
        self.error = error
        self.calls = 0

    def fetch_rates(self, base_currency):
        self.calls += 1
        if self.error:
            raise ExchangeRateFetchError(self.error)
        return dict(self.rates)


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def rate_service(db, stub_provider):
    """A service isolated from the process-wide one."""
    return ExchangeRateService(provider=stub_provider, base_currency='INR', cache_seconds=0)


@pytest.fixture
def inr_snapshot():
    """In-memory INR snapshot: 1 INR = 0.0125 USD = 0.01 EUR."""
    return RateSnapshot(
        base_currency='INR',
        rates={'INR': Decimal('1'), 'USD': Decimal('0.0125'), 'EUR': Decimal('0.01')},
        fetched_at=None,
        snapshot_id='test',
    )


@pytest.fixture
def stored_snapshot(db):
    return ExchangeRateSnapshot.objects.create(
        base_currency='INR',
        rates={'USD': '0.0125', 'EUR': '0.01'},
        source='test',
    )
