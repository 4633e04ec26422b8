# tests/test_ops.py
"""
Tests for operations endpoints, the API exception handler and logging.
"""

import json
import logging
from unittest import mock

import pytest
from django.test import Client
from rest_framework.exceptions import NotFound

from accounting.exceptions import InsufficientStock, MissingAccountMapping
from accounting.models import Account
from ops import exceptions as ops_exceptions
from ops.exceptions import api_exception_handler
from ops.health import HealthCheck
from ops.logging_config import JsonFormatter, get_logging_config


# =============================================================================
# Exception Handler
# =============================================================================

class TestApiExceptionHandler:

    def test_ledger_error_mapped_to_status_and_code(self):
        response = api_exception_handler(InsufficientStock("p-1", requested=5, available=2), {})

        assert response.status_code == 409
        assert response.data == {
            "detail": "Insufficient stock for product p-1: requested 5, available 2.",
            "code": "insufficient_stock",
        }

    def test_integrity_error_is_422(self):
        response = api_exception_handler(MissingAccountMapping("No account for role 'cash'."), {})

        assert response.status_code == 422
        assert response.data["code"] == "missing_account_mapping"

    def test_drf_errors_keep_default_handling(self):
        response = api_exception_handler(NotFound(), {})

        assert response.status_code == 404

    def test_unexpected_error_is_generic_500(self):
        with mock.patch.object(ops_exceptions.logger, "exception") as log_exception:
            response = api_exception_handler(KeyError("secret"), {})

        assert response.status_code == 500
        assert response.data == {"detail": "Internal server error.", "code": "internal_error"}
        assert "secret" not in str(response.data)
        log_exception.assert_called_once()


# =============================================================================
# Health Checks
# =============================================================================

@pytest.mark.django_db
class TestHealth:

    def test_liveness(self):
        response = Client().get("/_health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self):
        response = Client().get("/_health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_full_health_with_seeded_chart(self, record, product):
        record(product, "RECEIVING", 1, "10.00")

        response = Client().get("/_health/full")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["ledger"]["status"] == "healthy"

    def test_ledger_drift_is_unhealthy(self, record, product):
        record(product, "RECEIVING", 1, "10.00")
        Account.objects.filter(code="1.1.03.001").update(balance=0)

        check = HealthCheck.check_ledger()

        assert check["status"] == "unhealthy"
        assert check["mismatched_accounts"] == ["1.1.03.001"]

    def test_missing_posting_accounts_degrade(self, db):
        check = HealthCheck.check_posting_configuration()

        assert check["status"] == "degraded"
        assert "inventory" in check["unmapped"]

    def test_metrics_endpoint(self, db):
        response = Client().get("/_metrics/")

        assert response.status_code == 200
        assert b"stockledger_postings_total" in response.content


# =============================================================================
# Logging
# =============================================================================

class TestLogging:

    def test_json_formatter_includes_extra(self):
        record = logging.LogRecord(
            name="inventory.commands",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Recorded %s",
            args=("RCV-202410-000001",),
            exc_info=None,
        )
        record.transaction_number = "RCV-202410-000001"

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "inventory.commands"
        assert payload["message"] == "Recorded RCV-202410-000001"
        assert payload["extra"]["transaction_number"] == "RCV-202410-000001"

    def test_config_covers_app_loggers(self):
        config = get_logging_config(debug=False)

        for name in ("accounting", "inventory", "projections", "ops"):
            assert name in config["loggers"]
