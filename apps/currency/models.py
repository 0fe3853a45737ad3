from django.db import models
from django.utils import timezone
import uuid


class ExchangeRateSnapshot(models.Model):
    """
    Exchange rates fetched at one point in time.

    Rates map currency code -> units of that currency per one unit of
    ``base_currency``. Rows are never edited; a refresh writes a new row
    and the newest row by ``fetched_at`` is authoritative.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    base_currency = models.CharField(max_length=3)
    rates = models.JSONField(default=dict)
    fetched_at = models.DateTimeField(default=timezone.now, db_index=True)
    source = models.CharField(max_length=200, blank=True)

    class Meta:
        db_table = 'exchange_rate_snapshots'
        indexes = [
            models.Index(fields=['base_currency', '-fetched_at'], name='exchange_ra_base_cu_6f1d2c_idx'),
        ]
        ordering = ['-fetched_at']
        get_latest_by = 'fetched_at'

    def __str__(self):
        return f"{self.base_currency} rates @ {self.fetched_at:%Y-%m-%d %H:%M} ({len(self.rates)} currencies)"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Exchange rate snapshots are immutable; write a new snapshot instead")
        super().save(*args, **kwargs)
