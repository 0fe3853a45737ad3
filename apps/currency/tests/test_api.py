from unittest.mock import patch

import pytest
from django.urls import reverse
from rest_framework import status

from apps.currency.exceptions import ExchangeRateFetchError
from apps.currency.providers import HTTPExchangeRateProvider


@pytest.mark.django_db
class TestLatestRates:
    """Tests for GET /api/currency/rates/latest/"""

    def test_no_rates_yet(self, alice_client):
        response = alice_client.get(reverse('currency:latest-rates'))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {'message': 'No exchange rates have been fetched yet.'}

    def test_latest_snapshot(self, alice_client, stored_snapshot):
        response = alice_client.get(reverse('currency:latest-rates'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == str(stored_snapshot.pk)
        assert response.data['base_currency'] == 'INR'
        assert response.data['rates']['USD'] == '0.012500'

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('currency:latest-rates'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestRefreshRates:
    """Tests for POST /api/currency/rates/refresh/"""

    def test_refresh(self, alice_client):
        with patch.object(HTTPExchangeRateProvider, 'fetch_rates', return_value={'USD': '0.012'}):
            response = alice_client.post(reverse('currency:refresh-rates'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['refreshed'] is True
        assert response.data['snapshot']['rates']['USD'] == '0.012000'

    def test_provider_failure_keeps_previous_rates(self, alice_client, stored_snapshot):
        with patch.object(HTTPExchangeRateProvider, 'fetch_rates', side_effect=ExchangeRateFetchError('down')):
            response = alice_client.post(reverse('currency:refresh-rates'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['refreshed'] is False
        assert response.data['snapshot']['id'] == str(stored_snapshot.pk)

    def test_provider_failure_without_rates(self, alice_client):
        with patch.object(HTTPExchangeRateProvider, 'fetch_rates', side_effect=ExchangeRateFetchError('down')):
            response = alice_client.post(reverse('currency:refresh-rates'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'refreshed': False, 'snapshot': None}
