"""
Pytest configuration and fixtures.
"""

from datetime import date
from decimal import Decimal

import pytest

from stockledger.domain.entities import (
    Account,
    Item,
    LedgerSnapshot,
    PaymentVoucher,
    PurchaseInvoice,
    ReceiptVoucher,
    SalesInvoice,
)
from stockledger.domain.value_objects import (
    AccountClass,
    LineEntry,
    MonetaryTotals,
    SettlementTarget,
    SettlementType,
    VoucherEntityType,
)

MAIN_SAFE = SettlementTarget(SettlementType.SAFE, "SF-001")


@pytest.fixture
def safe_account() -> Account:
    return Account(
        id="SF-001",
        code="SF-001",
        name="Main safe",
        account_class=AccountClass.SAFE,
        opening_balance=Decimal("100000"),
    )


@pytest.fixture
def bank_account() -> Account:
    return Account(id="BK-001", code="BK-001", name="Operating bank", account_class=AccountClass.BANK)


@pytest.fixture
def customer_account() -> Account:
    return Account(
        id="C001",
        code="C001",
        name="Nile Trading",
        account_class=AccountClass.CUSTOMER,
        opening_balance=Decimal("5000"),
    )


@pytest.fixture
def supplier_account() -> Account:
    return Account(id="S001", code="S001", name="Delta Supplies", account_class=AccountClass.SUPPLIER)


@pytest.fixture
def partner_account() -> Account:
    return Account(
        id="CA-002",
        code="CA-002",
        name="Partner current account",
        account_class=AccountClass.PARTNER_CURRENT_ACCOUNT,
        opening_balance=Decimal("15000"),
    )


@pytest.fixture
def laptop() -> Item:
    return Item(
        code="101",
        name="Laptop 14in",
        purchase_price=Decimal("4200"),
        opening_stock=Decimal("50"),
        reorder_level=Decimal("10"),
    )


@pytest.fixture
def purchase_invoice() -> PurchaseInvoice:
    return PurchaseInvoice(
        id="PI-1",
        date=date(2025, 2, 1),
        sequence=1,
        party_id="S001",
        totals=MonetaryTotals(
            subtotal=Decimal("42000"),
            tax=Decimal("6300"),
            net=Decimal("48300"),
        ),
        lines=(LineEntry("101", Decimal("10"), Decimal("4200")),),
    )


@pytest.fixture
def sales_invoice() -> SalesInvoice:
    return SalesInvoice(
        id="SI-1",
        date=date(2025, 3, 1),
        sequence=2,
        party_id="C001",
        totals=MonetaryTotals(
            subtotal=Decimal("4800"),
            tax=Decimal("720"),
            net=Decimal("5520"),
        ),
        lines=(LineEntry("101", Decimal("1"), Decimal("4800")),),
    )


@pytest.fixture
def customer_receipt() -> ReceiptVoucher:
    return ReceiptVoucher(
        id="RV-1",
        date=date(2025, 3, 5),
        sequence=3,
        entity_type=VoucherEntityType.CUSTOMER,
        entity_id="C001",
        amount=Decimal("5000"),
        settlement=MAIN_SAFE,
    )


@pytest.fixture
def supplier_payment() -> PaymentVoucher:
    return PaymentVoucher(
        id="PV-1",
        date=date(2025, 4, 1),
        sequence=4,
        entity_type=VoucherEntityType.SUPPLIER,
        entity_id="S001",
        amount=Decimal("8000"),
        settlement=MAIN_SAFE,
    )


@pytest.fixture
def transactions(purchase_invoice, sales_invoice, customer_receipt, supplier_payment) -> tuple:
    return (purchase_invoice, sales_invoice, customer_receipt, supplier_payment)


@pytest.fixture
def snapshot(
    safe_account,
    bank_account,
    customer_account,
    supplier_account,
    laptop,
    transactions,
) -> LedgerSnapshot:
    """Clean ledger: reconciles as of 2025-12-31 with capital 315000."""
    return LedgerSnapshot(
        accounts=(safe_account, bank_account, customer_account, supplier_account),
        items=(laptop,),
        transactions=transactions,
    )
