"""
Unit tests - Transaction classification against the posting table.
"""

from datetime import date, datetime
from decimal import Decimal

from stockledger.domain.classifier import (
    POSTING_RULES,
    TransactionClassifier,
    unique_warnings,
)
from stockledger.domain.entities import (
    TRANSACTION_TYPES,
    InternalTransfer,
    LedgerSnapshot,
    PaymentVoucher,
    ReceiptVoucher,
    SalesInvoice,
    SalesReturn,
)
from stockledger.domain.value_objects import (
    AccountClass,
    DataQualityWarning,
    Direction,
    MonetaryTotals,
    PaymentMethod,
    SettlementTarget,
    SettlementType,
    TransactionKind,
    VoucherEntityType,
    WarningCode,
)


class TestPostingRules:
    """Test the declarative posting table."""

    def test_every_account_class_has_rules(self):
        """Every account class has an entry."""
        assert set(POSTING_RULES) == set(AccountClass)

    def test_every_kind_has_a_transaction_class(self):
        """The transaction family is closed over TransactionKind."""
        assert set(TRANSACTION_TYPES) == set(TransactionKind)

    def test_supplier_payment_is_debit(self):
        """Paying a supplier reduces what is owed to it."""
        assert POSTING_RULES[AccountClass.SUPPLIER][TransactionKind.PAYMENT_VOUCHER] == Direction.DEBIT
        assert POSTING_RULES[AccountClass.SUPPLIER][TransactionKind.PURCHASE_INVOICE] == Direction.CREDIT

    def test_store_vouchers_never_touch_accounts(self):
        """Stock movements carry no monetary posting."""
        for rules in POSTING_RULES.values():
            assert TransactionKind.STORE_TRANSFER not in rules
            assert TransactionKind.STORE_RECEIPT not in rules


class TestClassify:
    """Test matching and direction per account class."""

    def test_sales_invoice_debits_customer(self, sales_invoice, customer_account):
        """SalesInvoice posts its net amount as a debit."""
        result = TransactionClassifier().classify(sales_invoice, customer_account)

        assert result.exclusion is None
        assert len(result.entries) == 1
        entry = result.entries[0]
        assert entry.direction == Direction.DEBIT
        assert entry.amount == Decimal("5520")
        assert entry.signed_amount == Decimal("5520")
        assert entry.date == date(2025, 3, 1)

    def test_other_customer_not_matched(self, sales_invoice, customer_account):
        """Party reference must match the account id."""
        other = SalesInvoice(
            id="SI-2",
            date=date(2025, 3, 1),
            party_id="C999",
            totals=MonetaryTotals(net=Decimal("100")),
        )
        result = TransactionClassifier().classify(other, customer_account)
        assert result.entries == ()
        assert result.exclusion is None

    def test_credit_invoice_does_not_touch_safe(self, sales_invoice, safe_account):
        """Only cash invoices move cash."""
        result = TransactionClassifier().classify(sales_invoice, safe_account)
        assert result.entries == ()

    def test_cash_sales_invoice_debits_safe(self, safe_account):
        """Cash sale settled to the safe is a debit on the safe."""
        invoice = SalesInvoice(
            id="SI-3",
            date=date(2025, 5, 1),
            totals=MonetaryTotals(net=Decimal("300")),
            payment_method=PaymentMethod.CASH,
            settlement=SettlementTarget(SettlementType.SAFE, "SF-001"),
        )
        result = TransactionClassifier().classify(invoice, safe_account)
        assert [e.direction for e in result.entries] == [Direction.DEBIT]

    def test_cash_sales_return_credits_safe(self, safe_account):
        """Cash refund of a sales return leaves the safe."""
        sales_return = SalesReturn(
            id="SR-1",
            date=date(2025, 5, 2),
            totals=MonetaryTotals(net=Decimal("50")),
            payment_method=PaymentMethod.CASH,
            settlement=SettlementTarget(SettlementType.SAFE, "SF-001"),
        )
        result = TransactionClassifier().classify(sales_return, safe_account)
        assert [e.direction for e in result.entries] == [Direction.CREDIT]

    def test_walk_in_cash_sale_without_party_is_not_a_warning(self, customer_account):
        """A cash sale with no customer is legitimate."""
        invoice = SalesInvoice(
            id="SI-4",
            date=date(2025, 5, 1),
            totals=MonetaryTotals(net=Decimal("300")),
            payment_method=PaymentMethod.CASH,
            settlement=SettlementTarget(SettlementType.SAFE, "SF-001"),
        )
        result = TransactionClassifier().classify(invoice, customer_account)
        assert result.entries == ()
        assert result.exclusion is None

    def test_internal_transfer_moves_cash(self, safe_account, bank_account):
        """Source side is credited, destination side is debited."""
        transfer = InternalTransfer(
            id="IT-1",
            date=date(2025, 6, 1),
            source=SettlementTarget(SettlementType.SAFE, "SF-001"),
            destination=SettlementTarget(SettlementType.BANK, "BK-001"),
            amount=Decimal("2000"),
        )
        classifier = TransactionClassifier()

        safe_entries = classifier.classify(transfer, safe_account).entries
        bank_entries = classifier.classify(transfer, bank_account).entries

        assert [e.direction for e in safe_entries] == [Direction.CREDIT]
        assert [e.direction for e in bank_entries] == [Direction.DEBIT]

    def test_partner_receipt_is_credit(self, partner_account):
        """Partner deposit credits the current account."""
        receipt = ReceiptVoucher(
            id="RV-9",
            date=date(2025, 1, 15),
            entity_type=VoucherEntityType.CURRENT_ACCOUNT,
            entity_id="CA-002",
            amount=Decimal("50000"),
            settlement=SettlementTarget(SettlementType.SAFE, "SF-001"),
        )
        result = TransactionClassifier().classify(receipt, partner_account)
        assert [e.direction for e in result.entries] == [Direction.CREDIT]

    def test_datetime_dates_are_normalized(self, customer_account):
        """Timestamps are compared by calendar date."""
        invoice = SalesInvoice(
            id="SI-5",
            date=datetime(2025, 3, 1, 17, 45),
            party_id="C001",
            totals=MonetaryTotals(net=Decimal("10")),
        )
        result = TransactionClassifier().classify(invoice, customer_account)
        assert result.entries[0].date == date(2025, 3, 1)


class TestExclusions:
    """Test malformed records degrade into warnings."""

    def test_missing_party_on_credit_invoice(self, customer_account):
        """Credit invoice with no customer is excluded with MISSING_REFERENCE."""
        invoice = SalesInvoice(
            id="SI-6",
            date=date(2025, 3, 1),
            totals=MonetaryTotals(net=Decimal("10")),
        )
        result = TransactionClassifier().classify(invoice, customer_account)
        assert result.entries == ()
        assert result.exclusion.warning.code == WarningCode.MISSING_REFERENCE
        assert result.exclusion.warning.reference == "SI-6"

    def test_voucher_without_settlement(self, safe_account):
        """Voucher without a safe/bank target cannot be placed."""
        voucher = PaymentVoucher(
            id="PV-7",
            date=date(2025, 3, 1),
            entity_type=VoucherEntityType.EXPENSE,
            amount=Decimal("10"),
        )
        result = TransactionClassifier().classify(voucher, safe_account)
        assert result.exclusion.warning.code == WarningCode.MISSING_REFERENCE

    def test_missing_date(self, customer_account):
        """Transaction with no date is excluded with INVALID_DATE."""
        invoice = SalesInvoice(
            id="SI-7",
            date=None,
            party_id="C001",
            totals=MonetaryTotals(net=Decimal("10")),
        )
        result = TransactionClassifier().classify(invoice, customer_account)
        assert result.exclusion.warning.code == WarningCode.INVALID_DATE
        assert result.exclusion.date is None

    def test_negative_amount(self, customer_account):
        """Negative amounts are rejected with INVALID_AMOUNT."""
        receipt = ReceiptVoucher(
            id="RV-8",
            date=date(2025, 3, 1),
            entity_type=VoucherEntityType.CUSTOMER,
            entity_id="C001",
            amount=Decimal("-10"),
            settlement=SettlementTarget(SettlementType.SAFE, "SF-001"),
        )
        result = TransactionClassifier().classify(receipt, customer_account)
        assert result.exclusion.warning.code == WarningCode.INVALID_AMOUNT

    def test_entries_for_filters_by_date(self, customer_account, transactions):
        """Only entries dated on or before as_of are returned."""
        entries, warnings = TransactionClassifier().entries_for(
            customer_account, transactions, as_of=date(2025, 3, 1)
        )
        assert [e.transaction_id for e in entries] == ["SI-1"]
        assert warnings == []


class TestAuditReferences:
    """Test detection of references to unknown accounts."""

    def test_unknown_supplier(self, snapshot):
        """Voucher paying an unknown supplier is reported."""
        voucher = PaymentVoucher(
            id="PV-99",
            date=date(2025, 5, 1),
            entity_type=VoucherEntityType.SUPPLIER,
            entity_id="S999",
            amount=Decimal("10"),
            settlement=SettlementTarget(SettlementType.SAFE, "SF-001"),
        )
        audited = LedgerSnapshot(
            accounts=snapshot.accounts,
            items=snapshot.items,
            transactions=snapshot.transactions + (voucher,),
        )
        warnings = TransactionClassifier().audit_references(audited)

        assert len(warnings) == 1
        assert warnings[0].code == WarningCode.UNKNOWN_ACCOUNT
        assert warnings[0].reference == "PV-99"

    def test_clean_snapshot_has_no_unknown_references(self, snapshot):
        """Scenario ledger references only known accounts."""
        assert TransactionClassifier().audit_references(snapshot) == []


class TestUniqueWarnings:

    def test_duplicates_are_dropped_in_order(self):
        """Same warning from several folds appears once."""
        first = DataQualityWarning(WarningCode.INVALID_DATE, "a", "T1")
        second = DataQualityWarning(WarningCode.NEGATIVE_STOCK, "b", "101")
        assert unique_warnings([first, second], [first]) == (first, second)
