# accounting/management/commands/seed_chart_of_accounts.py
"""
Management command to create the default chart of accounts.

Usage:
    python manage.py seed_chart_of_accounts

    # Show which accounts would be created without writing
    python manage.py seed_chart_of_accounts --dry-run
"""

from django.core.management.base import BaseCommand

from accounting.chart import DEFAULT_CHART_OF_ACCOUNTS, seed_default_chart
from accounting.models import Account


class Command(BaseCommand):
    help = "Create the default chart of accounts (idempotent)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would happen without making changes",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            existing = set(Account.objects.values_list("code", flat=True))
            missing = [row for row in DEFAULT_CHART_OF_ACCOUNTS if row[0] not in existing]
            for code, name, account_type, *_ in missing:
                self.stdout.write(f"  would create {code:<12} {name} ({account_type})")
            self.stdout.write(self.style.WARNING(f"\n[DRY RUN] {len(missing)} accounts missing. No changes made."))
            return

        created = seed_default_chart()
        for account in created:
            self.stdout.write(f"  created {account.code:<12} {account.name}")
        self.stdout.write(self.style.SUCCESS(f"Chart of accounts ready ({len(created)} created)."))
