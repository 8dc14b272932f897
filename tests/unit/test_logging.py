"""
Unit tests - Logging configuration.
"""

from decimal import Decimal

import structlog

from stockledger.core.logging import configure_logging, render_decimals


class TestLogging:

    def test_decimals_are_rendered_as_strings(self):
        event = render_decimals(None, "info", {"event": "balance", "amount": Decimal("5520.00")})
        assert event["amount"] == "5520.00"

    def test_configure_binds_service_name(self):
        configure_logging(level="WARNING", format="json")
        try:
            assert structlog.contextvars.get_contextvars()["service"] == "stockledger"
        finally:
            structlog.contextvars.clear_contextvars()
