# inventory/views.py
"""
Thin views that delegate to the inventory commands and queries.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: validation, posting, stock movement.

The authenticated user is recorded as the actor of every movement.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .commands import record_inventory_transaction, reverse_inventory_transaction
from .queries import get_product_transactions, get_transaction_by_id, get_transactions_by_period
from .serializers import (
    InventoryTransactionSerializer,
    PeriodSerializer,
    RecordTransactionSerializer,
    ReverseTransactionSerializer,
)


def _actor_id(request) -> str:
    return str(request.user.pk)


def _failure(result) -> Response:
    return Response(
        {"detail": result.error, "code": result.error_code},
        status=result.status_code,
    )


class InventoryTransactionCreateView(APIView):
    """
    POST /api/inventory/transactions/ -> record a stock movement

    Goes through the recorder, which posts the journal entry and moves
    the stock in one transaction.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RecordTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = record_inventory_transaction(
            data["transaction_type"],
            data["product_id"],
            data.get("sku"),
            data.get("name"),
            data["quantity"],
            data["unit_cost"],
            data.get("to_location"),
            _actor_id(request),
            from_location=data.get("from_location"),
            order_id=data.get("order_id"),
            document_number=data.get("document_number"),
            notes=data.get("notes"),
            adjustment_direction=data.get("adjustment_direction") or None,
            settlement=data.get("settlement") or None,
        )

        if not result.success:
            return _failure(result)

        return Response(
            InventoryTransactionSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class InventoryTransactionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, transaction_id):
        txn = get_transaction_by_id(transaction_id)
        return Response(InventoryTransactionSerializer(txn).data)


class InventoryTransactionReverseView(APIView):
    """
    POST /api/inventory/transactions/<id>/reverse/ -> reverse a movement
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, transaction_id):
        serializer = ReverseTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = reverse_inventory_transaction(
            transaction_id,
            _actor_id(request),
            notes=serializer.validated_data.get("notes"),
        )

        if not result.success:
            return _failure(result)

        return Response(
            InventoryTransactionSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class ProductTransactionsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, product_id):
        transactions = get_product_transactions(product_id)
        return Response(InventoryTransactionSerializer(transactions, many=True).data)


class TransactionsByPeriodView(APIView):
    """
    GET /api/inventory/transactions/period/?start=2024-01-01&end=2024-01-31

    Both ends are inclusive.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        period = PeriodSerializer(data=request.query_params)
        period.is_valid(raise_exception=True)

        transactions = get_transactions_by_period(
            period.validated_data["start"],
            period.validated_data["end"],
        )
        return Response(InventoryTransactionSerializer(transactions, many=True).data)
