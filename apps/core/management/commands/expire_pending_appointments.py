"""
management command: expire_pending_appointments

Transitions PENDING_VERIFICATION appointments whose verification window has
lapsed to EXPIRED. They already stop holding their slot once expires_at
passes; this makes the state explicit in the status log.

Run via OS cron every 5 minutes:
  */5 * * * *  /path/to/venv/bin/python manage.py expire_pending_appointments
"""
from django.core.management.base import BaseCommand
from apps.bookings.orchestrator import expire_stale_pending


class Command(BaseCommand):
    help = 'Expire pending appointments whose verification window has elapsed'

    def handle(self, *args, **options):
        count = expire_stale_pending()
        self.stdout.write(
            self.style.SUCCESS(f'expire_pending_appointments: expired {count} appointments')
        )
