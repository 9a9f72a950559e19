from django.core.management.base import BaseCommand

from payments import get_coordinator


class Command(BaseCommand):
    help = "Time out payment sessions that have waited longer than PAYMENT_STATUS_TIMEOUT (run from cron)."

    def handle(self, *args, **options):
        coordinator = get_coordinator()
        count = coordinator.expire_stale_sessions()
        self.stdout.write(self.style.SUCCESS(
            f"Timed out {count} session(s) older than {coordinator.status_timeout}s."
        ))
