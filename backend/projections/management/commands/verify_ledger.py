# projections/management/commands/verify_ledger.py
"""
Management command to reconcile cached account balances with the ledger.

Usage:
    # Report mismatches and unbalanced entries
    python manage.py verify_ledger

    # Repair drifted balances from the entry log
    python manage.py verify_ledger --rebuild
"""

from django.core.management.base import BaseCommand, CommandError

from projections.balances import rebuild_balances, verify_all_balances, verify_journal_integrity


class Command(BaseCommand):
    """Verify account balances against the accounting entry log."""

    help = "Verify cached account balances against the accounting entry log"

    def add_arguments(self, parser):
        parser.add_argument(
            "--rebuild",
            action="store_true",
            help="Rewrite drifted balances from the entry log",
        )

    def handle(self, *args, **options):
        broken = verify_journal_integrity()
        for row in broken:
            self.stdout.write(self.style.ERROR(
                f"  unbalanced {row['entry_number']}: debit={row['debit']} credit={row['credit']}"
            ))

        report = verify_all_balances()
        self.stdout.write(
            f"Accounts: {report['total_accounts']}  verified: {report['verified']}  "
            f"entries replayed: {report['entries_processed']}"
        )
        for mismatch in report["mismatches"]:
            self.stdout.write(self.style.WARNING(
                f"  {mismatch['account_code']}: stored {mismatch['stored']['balance']} "
                f"expected {mismatch['expected']['balance']}"
            ))

        if report["mismatches"] and options["rebuild"]:
            result = rebuild_balances()
            self.stdout.write(self.style.SUCCESS(
                f"Rebuilt {len(result['repaired'])} account balances."
            ))
        elif report["mismatches"]:
            raise CommandError(
                f"{len(report['mismatches'])} account balances do not match the ledger. "
                "Run with --rebuild to repair them."
            )

        if broken:
            raise CommandError(f"{len(broken)} journal entries are not balanced.")

        if not report["mismatches"]:
            self.stdout.write(self.style.SUCCESS("Ledger is consistent."))
