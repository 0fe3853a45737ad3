"""
Exchange rate caching, refresh and conversion.

ExchangeRateService keeps one immutable RateSnapshot per process and
swaps the reference atomically on refresh, so readers never see a half
written rate table. A failed refresh logs a warning and leaves the
previous snapshot authoritative.

CurrencyConverter is a pure function of a snapshot: converting into the
reporting currency is ``amount * (1 / rate)``. A missing snapshot, or a
missing or zero rate, falls back to 1:1 and logs a warning.
"""

import logging
import re
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Mapping, Optional

from django.apps import apps
from django.conf import settings
from django.db import close_old_connections
from django.utils.module_loading import import_string

from config.exceptions import DependencyError

from .exceptions import InvalidCurrencyError
from .models import ExchangeRateSnapshot


logger = logging.getLogger(__name__)

CURRENCY_CODE_RE = re.compile(r'^[A-Z]{3}$')


def normalize_currency_code(code, default=None):
    """
    Upper-case and validate a 3-letter currency code.

    Raises:
        InvalidCurrencyError: If the code is not three letters.
    """
    if code in (None, ''):
        if default is None:
            raise InvalidCurrencyError()
        code = default
    normalized = str(code).strip().upper()
    if not CURRENCY_CODE_RE.match(normalized):
        raise InvalidCurrencyError(f"'{code}' is not a 3-letter ISO currency code.")
    return normalized


@dataclass(frozen=True)
class RateSnapshot:
    """Read-only view of one ExchangeRateSnapshot row."""

    base_currency: str
    rates: Mapping[str, Decimal]
    fetched_at: datetime
    snapshot_id: Optional[str] = None

    @classmethod
    def from_model(cls, row):
        rates = {}
        for code, value in (row.rates or {}).items():
            try:
                rates[str(code).upper()] = Decimal(str(value))
            except (InvalidOperation, ValueError):
                logger.warning("Snapshot %s has unparsable rate %r for %s", row.pk, value, code)
        rates.setdefault(row.base_currency, Decimal('1'))
        return cls(
            base_currency=row.base_currency,
            rates=MappingProxyType(rates),
            fetched_at=row.fetched_at,
            snapshot_id=str(row.pk),
        )

    def rate_for(self, code):
        return self.rates.get(code.upper())


@dataclass
class CurrencyConverter:
    """Convert amounts between currencies using one rate snapshot."""

    snapshot: Optional[RateSnapshot] = None
    reporting_currency: str = field(default_factory=lambda: settings.REPORTING_CURRENCY)
    fallback_currencies: set = field(default_factory=set)

    def _reporting_rate(self, code) -> Optional[Decimal]:
        """Units of ``code`` per one unit of the reporting currency."""
        if self.snapshot is None:
            return None
        rate = self.snapshot.rate_for(code)
        if self.snapshot.base_currency != self.reporting_currency:
            # Cross through the snapshot base
            base_rate = self.snapshot.rate_for(self.reporting_currency)
            if rate is None or not base_rate:
                return None
            rate = rate / base_rate
        if not rate:
            return None
        return rate

    def _fallback(self, code):
        self.fallback_currencies.add(code)
        if self.snapshot is None:
            logger.warning("No exchange rates loaded; treating %s as 1:1 with %s",
                           code, self.reporting_currency)
        else:
            logger.warning("No usable %s rate in snapshot %s; treating it as 1:1 with %s",
                           code, self.snapshot.snapshot_id, self.reporting_currency)

    def to_reporting_currency(self, amount, from_currency) -> Decimal:
        amount = Decimal(amount)
        code = (from_currency or self.reporting_currency).upper()
        if code == self.reporting_currency:
            return amount
        rate = self._reporting_rate(code)
        if rate is None:
            self._fallback(code)
            return amount
        return amount * (Decimal('1') / rate)

    def from_reporting_currency(self, amount, to_currency) -> Decimal:
        amount = Decimal(amount)
        code = (to_currency or self.reporting_currency).upper()
        if code == self.reporting_currency:
            return amount
        rate = self._reporting_rate(code)
        if rate is None:
            self._fallback(code)
            return amount
        return amount * rate

    def convert(self, amount, from_currency, to_currency) -> Decimal:
        if (from_currency or '').upper() == (to_currency or '').upper():
            return Decimal(amount)
        return self.from_reporting_currency(
            self.to_reporting_currency(amount, from_currency),
            to_currency,
        )


class ExchangeRateService:
    """Process-wide exchange rate cache with refresh."""

    def __init__(self, provider=None, base_currency=None, cache_seconds=None):
        self._provider = provider
        self.base_currency = base_currency or settings.REPORTING_CURRENCY
        self._cache_seconds = cache_seconds
        self._snapshot = None
        self._loaded_at = None
        self._refresh_lock = threading.Lock()
        self._scheduler = None

    @property
    def provider(self):
        if self._provider is None:
            self._provider = import_string(settings.EXCHANGE_RATE_PROVIDER)()
        return self._provider

    @property
    def cache_seconds(self):
        if self._cache_seconds is not None:
            return self._cache_seconds
        return settings.EXCHANGE_RATE_CACHE_SECONDS

    def latest(self) -> Optional[RateSnapshot]:
        """Return the newest snapshot, re-reading the database when the cache is stale."""
        loaded_at = self._loaded_at
        if loaded_at is None or time.monotonic() - loaded_at >= self.cache_seconds:
            self.reload()
        return self._snapshot

    def reload(self) -> Optional[RateSnapshot]:
        row = (
            ExchangeRateSnapshot.objects
            .filter(base_currency=self.base_currency)
            .order_by('-fetched_at')
            .first()
        )
        self._snapshot = RateSnapshot.from_model(row) if row else None
        self._loaded_at = time.monotonic()
        return self._snapshot

    def invalidate(self):
        self._loaded_at = None

    def refresh(self) -> Optional[RateSnapshot]:
        """
        Fetch fresh rates and persist them as a new snapshot.

        Returns:
            The new RateSnapshot, or None when the provider failed. On
            failure the previously cached snapshot stays in place.
        """
        with self._refresh_lock:
            try:
                rates = self.provider.fetch_rates(self.base_currency)
            except DependencyError as exc:
                logger.warning("Exchange rate refresh failed, keeping previous rates: %s", exc.message)
                return None

            row = ExchangeRateSnapshot.objects.create(
                base_currency=self.base_currency,
                rates=rates,
                source=getattr(self.provider, 'name', ''),
            )
            self._snapshot = RateSnapshot.from_model(row)
            self._loaded_at = time.monotonic()
            logger.info("Stored exchange rate snapshot %s with %d rates", row.pk, len(rates))
            return self._snapshot

    def converter(self, reporting_currency=None) -> CurrencyConverter:
        return CurrencyConverter(
            snapshot=self.latest(),
            reporting_currency=(reporting_currency or settings.REPORTING_CURRENCY).upper(),
        )

    def start_scheduler(self, interval=None):
        if self._scheduler is None:
            self._scheduler = RateRefreshScheduler(self, interval=interval)
        self._scheduler.start()
        return self._scheduler

    def shutdown(self):
        if self._scheduler is not None:
            self._scheduler.stop()


class RateRefreshScheduler:
    """Refresh exchange rates on a fixed interval in a background thread."""

    def __init__(self, service, interval=None):
        self.service = service
        self.interval = interval or settings.EXCHANGE_RATE_REFRESH_INTERVAL
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            name='exchange-rate-refresh',
            daemon=True,
        )
        self._thread.start()
        logger.info("Exchange rate refresh started (every %ss)", self.interval)

    def stop(self, timeout=5):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self):
        try:
            return self.service.refresh()
        except Exception:
            logger.exception("Unexpected error while refreshing exchange rates")
            return None
        finally:
            close_old_connections()

    def run_forever(self):
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self.interval)


def get_rate_service() -> ExchangeRateService:
    return apps.get_app_config('currency').rate_service
