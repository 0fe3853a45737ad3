import logging
import threading
from decimal import Decimal
from io import StringIO
from unittest.mock import Mock, patch

import pytest
import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from apps.currency.exceptions import ExchangeRateFetchError
from apps.currency.models import ExchangeRateSnapshot
from apps.currency.providers import HTTPExchangeRateProvider, parse_rates
from apps.currency.services import ExchangeRateService, RateRefreshScheduler, RateSnapshot


@pytest.mark.django_db
class TestExchangeRateService:

    def test_latest_without_rates(self, rate_service):
        assert rate_service.latest() is None

    def test_refresh_stores_snapshot(self, rate_service):
        snapshot = rate_service.refresh()

        assert snapshot.rate_for('USD') == Decimal('0.0125')
        row = ExchangeRateSnapshot.objects.get()
        assert row.base_currency == 'INR'
        assert row.source == 'stub'
        assert rate_service.latest().snapshot_id == str(row.pk)

    def test_failed_refresh_keeps_previous_rates(self, rate_service, stub_provider, caplog):
        first = rate_service.refresh()
        stub_provider.error = 'provider down'

        with caplog.at_level(logging.WARNING, logger='apps.currency.services'):
            assert rate_service.refresh() is None

        assert rate_service.latest().snapshot_id == first.snapshot_id
        assert ExchangeRateSnapshot.objects.count() == 1
        assert 'keeping previous rates' in caplog.text

    def test_cached_snapshot_until_invalidated(self, stub_provider):
        service = ExchangeRateService(provider=stub_provider, base_currency='INR', cache_seconds=3600)
        assert service.latest() is None

        ExchangeRateSnapshot.objects.create(base_currency='INR', rates={'USD': '0.0125'})
        assert service.latest() is None

        service.invalidate()
        assert service.latest().rate_for('USD') == Decimal('0.0125')

    def test_latest_ignores_other_bases(self, rate_service):
        ExchangeRateSnapshot.objects.create(base_currency='USD', rates={'INR': '80'})

        assert rate_service.latest() is None

    def test_converter_uses_latest_snapshot(self, rate_service):
        rate_service.refresh()
        converter = rate_service.converter()

        assert converter.reporting_currency == 'INR'
        assert converter.to_reporting_currency(Decimal('1'), 'USD') == Decimal('80')


class TestHTTPExchangeRateProvider:

    @pytest.fixture
    def session(self):
        session = Mock()
        session.get.return_value.json.return_value = {
            'base': 'INR',
            'rates': {'usd': 0.012, 'EUR': '0.011', 'BAD': 'n/a', 'NEG': -1},
        }
        return session

    def test_fetch_rates(self, session):
        provider = HTTPExchangeRateProvider(
            url_template='https://rates.example.com/{base}', timeout=3, session=session
        )

        rates = provider.fetch_rates('INR')

        assert rates == {'USD': '0.012', 'EUR': '0.011'}
        session.get.assert_called_once_with('https://rates.example.com/INR', timeout=3)

    def test_network_error(self, session):
        session.get.side_effect = requests.ConnectionError('boom')
        provider = HTTPExchangeRateProvider(url_template='https://rates.example.com/{base}', session=session)

        with pytest.raises(ExchangeRateFetchError):
            provider.fetch_rates('INR')

    def test_http_error(self, session):
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError('503')
        provider = HTTPExchangeRateProvider(url_template='https://rates.example.com/{base}', session=session)

        with pytest.raises(ExchangeRateFetchError):
            provider.fetch_rates('INR')

    def test_invalid_json(self, session):
        session.get.return_value.json.side_effect = ValueError('not json')
        provider = HTTPExchangeRateProvider(url_template='https://rates.example.com/{base}', session=session)

        with pytest.raises(ExchangeRateFetchError, match='not JSON'):
            provider.fetch_rates('INR')

    def test_missing_rates(self, session):
        session.get.return_value.json.return_value = {'error': 'quota exceeded'}
        provider = HTTPExchangeRateProvider(url_template='https://rates.example.com/{base}', session=session)

        with pytest.raises(ExchangeRateFetchError, match='no rates'):
            provider.fetch_rates('INR')

    def test_parse_rates_drops_bad_values(self):
        assert parse_rates({'jpy': '1.8', 'XXX': 0, 'YYY': 'abc'}) == {'JPY': '1.8'}


class TestRateRefreshScheduler:

    def test_start_and_stop(self):
        refreshed = threading.Event()
        service = Mock()
        service.refresh.side_effect = lambda: refreshed.set()
        scheduler = RateRefreshScheduler(service, interval=3600)

        with patch('apps.currency.services.close_old_connections'):
            scheduler.start()
            assert refreshed.wait(5)
            assert scheduler.is_running
            scheduler.stop()

        assert not scheduler.is_running
        service.refresh.assert_called_once()

    def test_run_once_survives_unexpected_errors(self, caplog):
        service = Mock()
        service.refresh.side_effect = RuntimeError('bug')
        scheduler = RateRefreshScheduler(service, interval=60)

        with patch('apps.currency.services.close_old_connections') as close_connections:
            assert scheduler.run_once() is None

        close_connections.assert_called_once()
        assert 'Unexpected error while refreshing exchange rates' in caplog.text


class TestRefreshCommand:

    def test_one_shot_refresh(self):
        service = Mock()
        service.refresh.return_value = RateSnapshot(
            base_currency='INR',
            rates={'INR': Decimal('1'), 'USD': Decimal('0.0125')},
            fetched_at=timezone.now(),
        )
        out = StringIO()

        with patch('apps.currency.management.commands.refresh_exchange_rates.get_rate_service', return_value=service):
            call_command('refresh_exchange_rates', stdout=out)

        assert 'Stored 2 INR rates' in out.getvalue()

    def test_one_shot_failure(self):
        service = Mock()
        service.refresh.return_value = None

        with patch('apps.currency.management.commands.refresh_exchange_rates.get_rate_service', return_value=service):
            with pytest.raises(CommandError):
                call_command('refresh_exchange_rates', stdout=StringIO())
