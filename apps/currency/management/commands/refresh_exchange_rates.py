from django.core.management.base import BaseCommand, CommandError

from apps.currency.services import RateRefreshScheduler, get_rate_service


class Command(BaseCommand):
    help = 'Fetch current exchange rates and store them as a new snapshot'

    def add_arguments(self, parser):
        parser.add_argument(
            '--daemon',
            action='store_true',
            help='Keep running and refresh on every interval',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=None,
            help='Seconds between refreshes in daemon mode (default: EXCHANGE_RATE_REFRESH_INTERVAL)',
        )

    def handle(self, *args, **options):
        service = get_rate_service()

        if options['daemon']:
            scheduler = RateRefreshScheduler(service, interval=options['interval'])
            self.stdout.write(f'Refreshing exchange rates every {scheduler.interval}s (Ctrl+C to stop)')
            try:
                scheduler.run_forever()
            except KeyboardInterrupt:
                self.stdout.write('Stopped.')
            return

        snapshot = service.refresh()
        if snapshot is None:
            raise CommandError('Exchange rate refresh failed; previous rates are still in use.')

        self.stdout.write(self.style.SUCCESS(
            f'Stored {len(snapshot.rates)} {snapshot.base_currency} rates fetched at {snapshot.fetched_at:%Y-%m-%d %H:%M}'
        ))
