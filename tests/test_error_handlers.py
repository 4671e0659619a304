"""Tests for the error handlers and their log lines."""
import asyncio
import json
import logging

from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.requests import Request

from pharmastock.error_handlers import (
    constraint_name,
    ledger_rule_exception_handler,
    request_area,
    sqlalchemy_exception_handler
)
from pharmastock.ledger import UnknownTransactionTypeError


def make_request(path, method="POST"):
    return Request({"type": "http", "method": method, "path": path, "headers": [], "query_string": b""})


class DriverError(Exception):
    """Driver exception exposing the violated constraint, like psycopg2."""

    def __init__(self, message, constraint):
        super().__init__(message)
        self.diag = type("Diag", (), {"constraint_name": constraint})()


class TestHelpers:
    """Tests for request area and constraint name extraction."""

    def test_request_area(self):
        assert request_area("/api/v1/sales/dispatch") == "SALES"
        assert request_area("/api/v1/stock/verify") == "STOCK"
        assert request_area("/health") == "HEALTH"
        assert request_area("/") == "ROOT"

    def test_sqlite_constraint_name(self):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: products.product_code"))
        assert constraint_name(exc) == "products.product_code"

    def test_driver_constraint_name(self):
        exc = IntegrityError("INSERT", {}, DriverError("duplicate key", "uq_products_product_code"))
        assert constraint_name(exc) == "uq_products_product_code"

    def test_unknown_constraint(self):
        assert constraint_name(IntegrityError("INSERT", {}, Exception("something else"))) is None


class TestHandlers:
    """Tests for handler responses and log tags."""

    def test_integrity_error_is_conflict(self, caplog):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: stock_transactions.sequence"))

        with caplog.at_level(logging.WARNING, logger="pharmastock"):
            response = asyncio.run(sqlalchemy_exception_handler(make_request("/api/v1/purchases"), exc))

        body = json.loads(response.body)
        assert response.status_code == 409
        assert body["constraint"] == "stock_transactions.sequence"
        assert "UNIQUE constraint failed" in body["detail"]
        assert "[DB] PURCHASES: integrity constraint stock_transactions.sequence violated" in caplog.text

    def test_other_database_error_is_server_error(self, caplog):
        exc = OperationalError("SELECT", {}, Exception("database is locked"))

        with caplog.at_level(logging.ERROR, logger="pharmastock"):
            response = asyncio.run(sqlalchemy_exception_handler(make_request("/api/v1/stock/report", "GET"), exc))

        assert response.status_code == 500
        assert json.loads(response.body)["constraint"] is None
        assert "[DB] STOCK: OperationalError" in caplog.text

    def test_ledger_rule_error(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pharmastock"):
            response = asyncio.run(ledger_rule_exception_handler(
                make_request("/api/v1/adjustments/write-off"), UnknownTransactionTypeError("GIFT")
            ))

        body = json.loads(response.body)
        assert response.status_code == 422
        assert body["details"] == {"transaction_type": "GIFT"}
        assert "[LEDGER] ADJUSTMENTS entry refused" in caplog.text

    def test_app_error_logged_with_area(self, client, caplog):
        missing = "00000000-0000-0000-0000-000000000000"

        with caplog.at_level(logging.WARNING, logger="pharmastock"):
            response = client.get(f"/api/v1/purchases/{missing}")

        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "Purchase"
        assert "[PURCHASES] GET rejected" in caplog.text
