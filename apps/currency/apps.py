import atexit

from django.apps import AppConfig
from django.conf import settings


class CurrencyConfig(AppConfig):
    """
    Currency app.

    Owns the process-wide ExchangeRateService. Other apps obtain it via
    ``apps.currency.services.get_rate_service()`` instead of a module
    level singleton.
    """

    name = 'apps.currency'
    verbose_name = 'Currency'

    rate_service = None

    def ready(self):
        from .services import ExchangeRateService

        self.rate_service = ExchangeRateService()
        if settings.EXCHANGE_RATE_AUTO_REFRESH:
            self.rate_service.start_scheduler()
            atexit.register(self.rate_service.shutdown)
