from django.core.management.base import BaseCommand

from herd.notifications import process_notifications, send_daily_digests


class Command(BaseCommand):
    help = "Deliver pending notifications by email and push webhook. Run every few minutes from cron."

    def add_arguments(self, parser):
        parser.add_argument('--digest', action='store_true', help="Also send today's daily digest emails")

    def handle(self, *args, **options):
        sent, deferred = process_notifications()
        self.stdout.write(self.style.SUCCESS(f"Delivered {sent} notification(s), deferred {deferred}."))
        if options['digest']:
            digests = send_daily_digests()
            self.stdout.write(self.style.SUCCESS(f"Sent {digests} digest email(s)."))
