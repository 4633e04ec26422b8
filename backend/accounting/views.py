# accounting/views.py
"""
Thin read views over the ledger.

Views handle: HTTP parsing, authentication, response formatting.
Queries handle: lookups, paging rules, not-found errors.

There are no write endpoints here: journal entries are produced only by
the inventory recorder.
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .queries import (
    get_account_by_id,
    get_chart_of_accounts,
    get_journal_entries,
    get_journal_entries_by_product,
    get_journal_entry_by_id,
    get_trial_balance,
)
from .serializers import AccountSerializer, JournalEntrySerializer, PagingSerializer


# =============================================================================
# Chart of Accounts Views
# =============================================================================

class ChartOfAccountsView(APIView):
    """
    GET /api/accounting/chart-of-accounts/ -> all accounts ordered by code
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        accounts = get_chart_of_accounts()
        return Response(AccountSerializer(accounts, many=True).data)


class AccountDetailView(APIView):
    """
    GET /api/accounting/chart-of-accounts/<id>/ -> one account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, account_id):
        account = get_account_by_id(account_id)
        return Response(AccountSerializer(account).data)


class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        report = get_trial_balance()
        return Response({
            "accounts": [
                {**row, "balance": str(row["balance"]), "debit": str(row["debit"]), "credit": str(row["credit"])}
                for row in report["accounts"]
            ],
            "total_debit": str(report["total_debit"]),
            "total_credit": str(report["total_credit"]),
            "is_balanced": report["is_balanced"],
        })


# =============================================================================
# Journal Entry Views
# =============================================================================

class JournalEntryListView(APIView):
    """
    GET /api/accounting/journal-entries/?page_number=1&page_size=50

    Newest first. page_size is limited to 1..200.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        paging = PagingSerializer(data=request.query_params)
        paging.is_valid(raise_exception=True)

        entries = get_journal_entries(**paging.validated_data)
        return Response({
            "page_number": paging.validated_data["page_number"],
            "page_size": paging.validated_data["page_size"],
            "results": JournalEntrySerializer(entries, many=True).data,
        })


class JournalEntryDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, entry_id):
        entry = get_journal_entry_by_id(entry_id)
        return Response(JournalEntrySerializer(entry).data)


class ProductJournalEntriesView(APIView):
    """
    GET /api/accounting/journal-entries/product/<product_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, product_id):
        entries = get_journal_entries_by_product(product_id)
        return Response(JournalEntrySerializer(entries, many=True).data)
