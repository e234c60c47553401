from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from herd.notifications import check_event_notifications


class Command(BaseCommand):
    help = "Create in-app reminders for upcoming farrowings, pregnancy checks, weanings, vaccinations and tasks. Run daily from cron."

    def add_arguments(self, parser):
        parser.add_argument('--date', help="Check as of this date (YYYY-MM-DD) instead of today")

    def handle(self, *args, **options):
        today = None
        if options['date']:
            try:
                today = datetime.strptime(options['date'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError("--date must be in YYYY-MM-DD format")
        created = check_event_notifications(today)
        self.stdout.write(self.style.SUCCESS(f"Created {created} notification(s)."))
