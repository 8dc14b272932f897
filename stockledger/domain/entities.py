"""
Domain Entities - Accounts, items and the closed family of transactions.
All entities are immutable snapshot records; the engine never mutates them.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import ClassVar

from .value_objects import (
    ZERO,
    AccountClass,
    AccountId,
    ItemCode,
    LineEntry,
    MonetaryTotals,
    PaymentMethod,
    SettlementTarget,
    TransactionKind,
    VoucherEntityType,
)


@dataclass(frozen=True, slots=True)
class Account:
    """
    Entity - Balance-carrying account (customer, supplier, safe, bank, partner).
    The opening balance is administrative; transactions never change it.
    """
    id: AccountId
    code: str
    name: str
    account_class: AccountClass
    opening_balance: Decimal = ZERO
    branch_id: str | None = None


@dataclass(frozen=True, slots=True)
class Item:
    """
    Entity - Stock item. Stock level is never stored, always derived.
    """
    code: ItemCode
    name: str
    unit: str = "PCS"
    purchase_price: Decimal = ZERO
    opening_stock: Decimal = ZERO
    reorder_level: Decimal | None = None
    is_stocked: bool = True


@dataclass(frozen=True, slots=True, kw_only=True)
class Transaction:
    """
    Entity - Base of every transaction record.
    `sequence` is the insertion order, used only to order same-date rows.
    """
    kind: ClassVar[TransactionKind]

    id: str
    date: date
    branch_id: str | None = None
    sequence: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class InvoiceDocument(Transaction):
    """Sales/purchase invoice or return."""
    party_id: AccountId | None = None
    totals: MonetaryTotals = field(default_factory=MonetaryTotals)
    lines: tuple[LineEntry, ...] = ()
    payment_method: PaymentMethod = PaymentMethod.CREDIT
    settlement: SettlementTarget | None = None

    @property
    def is_cash(self) -> bool:
        return self.payment_method == PaymentMethod.CASH


@dataclass(frozen=True, slots=True, kw_only=True)
class SalesInvoice(InvoiceDocument):
    kind: ClassVar[TransactionKind] = TransactionKind.SALES_INVOICE


@dataclass(frozen=True, slots=True, kw_only=True)
class SalesReturn(InvoiceDocument):
    kind: ClassVar[TransactionKind] = TransactionKind.SALES_RETURN


@dataclass(frozen=True, slots=True, kw_only=True)
class PurchaseInvoice(InvoiceDocument):
    kind: ClassVar[TransactionKind] = TransactionKind.PURCHASE_INVOICE


@dataclass(frozen=True, slots=True, kw_only=True)
class PurchaseReturn(InvoiceDocument):
    kind: ClassVar[TransactionKind] = TransactionKind.PURCHASE_RETURN


@dataclass(frozen=True, slots=True, kw_only=True)
class CashVoucher(Transaction):
    """Receipt or payment voucher against a counterparty entity."""
    entity_type: VoucherEntityType | str
    entity_id: str | None = None
    amount: Decimal = ZERO
    settlement: SettlementTarget | None = None
    expense_type: str | None = None
    price_before_tax: Decimal | None = None
    tax_price: Decimal | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReceiptVoucher(CashVoucher):
    kind: ClassVar[TransactionKind] = TransactionKind.RECEIPT_VOUCHER


@dataclass(frozen=True, slots=True, kw_only=True)
class PaymentVoucher(CashVoucher):
    kind: ClassVar[TransactionKind] = TransactionKind.PAYMENT_VOUCHER


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreReceipt(Transaction):
    kind: ClassVar[TransactionKind] = TransactionKind.STORE_RECEIPT

    store_id: str | None = None
    lines: tuple[LineEntry, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreIssue(Transaction):
    kind: ClassVar[TransactionKind] = TransactionKind.STORE_ISSUE

    store_id: str | None = None
    lines: tuple[LineEntry, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreTransfer(Transaction):
    """Moves stock between two stores; neutral for company-wide valuation."""
    kind: ClassVar[TransactionKind] = TransactionKind.STORE_TRANSFER

    from_store_id: str | None = None
    to_store_id: str | None = None
    lines: tuple[LineEntry, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class InternalTransfer(Transaction):
    """Moves cash between safes and banks."""
    kind: ClassVar[TransactionKind] = TransactionKind.INTERNAL_TRANSFER

    source: SettlementTarget
    destination: SettlementTarget
    amount: Decimal = ZERO


TRANSACTION_TYPES: dict[TransactionKind, type[Transaction]] = {
    cls.kind: cls
    for cls in (
        SalesInvoice,
        SalesReturn,
        PurchaseInvoice,
        PurchaseReturn,
        ReceiptVoucher,
        PaymentVoucher,
        StoreReceipt,
        StoreIssue,
        StoreTransfer,
        InternalTransfer,
    )
}

_unmapped_kinds = set(TransactionKind) - set(TRANSACTION_TYPES)
if _unmapped_kinds:
    raise RuntimeError(f"Transaction kinds without a class: {sorted(_unmapped_kinds)}")


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """
    Read-only snapshot of accounts, items and transactions for one report request.
    """
    accounts: tuple[Account, ...] = ()
    items: tuple[Item, ...] = ()
    transactions: tuple[Transaction, ...] = ()

    def get_account(self, account_id: str) -> Account | None:
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None

    def accounts_of(self, *classes: AccountClass) -> list[Account]:
        return [a for a in self.accounts if a.account_class in classes]
