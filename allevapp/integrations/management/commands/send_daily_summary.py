from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from allevapp.integrations.daily_summary import DailySummaryError, build_daily_summary, send_daily_summary
from allevapp.integrations.graph_service import GraphError


class Command(BaseCommand):
    help = 'Sends the daily summary of urgent reports and upcoming maintenance to admins and managers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            help='Reference date (YYYY-MM-DD), defaults to today',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only print what would be reported, do not send anything',
        )

    def handle(self, *args, **options):
        today = None
        if options['date']:
            try:
                today = datetime.strptime(options['date'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError('--date must use the YYYY-MM-DD format')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No email will be sent."))
            summary = build_daily_summary(today)
            self.stdout.write(f"Urgent reports: {len(summary['urgent_reports'])}")
            self.stdout.write(f"Overdue maintenance: {len(summary['overdue'])}")
            self.stdout.write(f"Maintenance due soon: {len(summary['due_soon'])}")
            return

        try:
            result = send_daily_summary(today)
        except (GraphError, DailySummaryError) as e:
            raise CommandError(f"Daily summary failed: {getattr(e, 'error', str(e))}")

        if not result['sent']:
            self.stdout.write(result['message'])
            return

        self.stdout.write(self.style.SUCCESS(
            f"Daily summary sent to {result['successful_sends']}/{result['recipients']} recipient(s)"
        ))
        for entry in result['email_results']:
            if not entry['success']:
                self.stdout.write(self.style.ERROR(f"  - {entry['recipient']}: {entry['error']}"))
