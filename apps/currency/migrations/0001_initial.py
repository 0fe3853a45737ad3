# Generated manually for the currency app

import django.utils.timezone
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ExchangeRateSnapshot',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('base_currency', models.CharField(max_length=3)),
                ('rates', models.JSONField(default=dict)),
                ('fetched_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('source', models.CharField(blank=True, max_length=200)),
            ],
            options={
                'db_table': 'exchange_rate_snapshots',
                'ordering': ['-fetched_at'],
                'get_latest_by': 'fetched_at',
            },
        ),
        migrations.AddIndex(
            model_name='exchangeratesnapshot',
            index=models.Index(fields=['base_currency', '-fetched_at'], name='exchange_ra_base_cu_6f1d2c_idx'),
        ),
    ]
