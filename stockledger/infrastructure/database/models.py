"""
Infrastructure - SQLModel database models.
One wide `ledgertransaction` table holds every transaction kind; unused columns stay NULL.
"""

from datetime import date
from decimal import Decimal

from sqlmodel import Field, Relationship, SQLModel


class Account(SQLModel, table=True):
    """Balance-carrying account (customer, supplier, safe, bank, partner current account)."""

    id: str = Field(primary_key=True)
    code: str = Field(index=True)
    name: str
    account_class: str = Field(index=True)
    opening_balance: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    branch_id: str | None = None


class Item(SQLModel, table=True):
    """Stock item master data."""

    code: str = Field(primary_key=True)
    name: str
    unit: str = "PCS"
    purchase_price: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    opening_stock: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    reorder_level: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    is_stocked: bool = True


class LedgerTransaction(SQLModel, table=True):
    """Transaction header; `id` is the insertion sequence, `reference` the document number."""

    id: int | None = Field(default=None, primary_key=True)
    reference: str = Field(unique=True, index=True)
    kind: str = Field(index=True)
    transaction_date: date | None = Field(default=None, index=True)
    branch_id: str | None = Field(default=None, index=True)

    # Invoices and returns
    party_id: str | None = Field(default=None, index=True)
    payment_method: str | None = None
    subtotal: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    discount: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    tax: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    net: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)

    # Settlement target (safe/bank); destination side of internal transfers
    settlement_type: str | None = None
    settlement_id: str | None = None

    # Vouchers and internal transfers
    entity_type: str | None = None
    entity_id: str | None = Field(default=None, index=True)
    amount: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    expense_type: str | None = None
    price_before_tax: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    tax_price: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)
    source_type: str | None = None
    source_id: str | None = None

    # Store vouchers; transfers move stock from store_id to to_store_id
    store_id: str | None = None
    to_store_id: str | None = None

    lines: list["TransactionLine"] = Relationship(back_populates="transaction")


class TransactionLine(SQLModel, table=True):
    """Item line of an invoice or store voucher."""

    id: int | None = Field(default=None, primary_key=True)
    transaction_id: int = Field(foreign_key="ledgertransaction.id", index=True)
    item_code: str = Field(index=True)
    quantity: Decimal = Field(max_digits=18, decimal_places=4)
    price: Decimal | None = Field(default=None, max_digits=18, decimal_places=4)

    transaction: "LedgerTransaction" = Relationship(back_populates="lines")
