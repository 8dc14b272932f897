"""
Domain Layer - Value objects shared by the ledger engine.
Enumerations, monetary helpers and the immutable report values.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import NewType

from .exceptions import ValidationError

AccountId = NewType("AccountId", str)
ItemCode = NewType("ItemCode", str)

ZERO = Decimal("0")
DEFAULT_TOLERANCE = Decimal("0.01")


class AccountClass(str, Enum):
    """Balance-carrying account classes."""
    CUSTOMER = "CUSTOMER"
    SUPPLIER = "SUPPLIER"
    SAFE = "SAFE"
    BANK = "BANK"
    PARTNER_CURRENT_ACCOUNT = "PARTNER_CURRENT_ACCOUNT"


class TransactionKind(str, Enum):
    """Closed set of transaction kinds."""
    SALES_INVOICE = "SALES_INVOICE"
    SALES_RETURN = "SALES_RETURN"
    PURCHASE_INVOICE = "PURCHASE_INVOICE"
    PURCHASE_RETURN = "PURCHASE_RETURN"
    RECEIPT_VOUCHER = "RECEIPT_VOUCHER"
    PAYMENT_VOUCHER = "PAYMENT_VOUCHER"
    STORE_RECEIPT = "STORE_RECEIPT"
    STORE_ISSUE = "STORE_ISSUE"
    STORE_TRANSFER = "STORE_TRANSFER"
    INTERNAL_TRANSFER = "INTERNAL_TRANSFER"  # Cash moved between safes/banks


class Direction(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT = "CREDIT"


class SettlementType(str, Enum):
    SAFE = "SAFE"
    BANK = "BANK"


class VoucherEntityType(str, Enum):
    """Counterparty of a receipt/payment voucher."""
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    CURRENT_ACCOUNT = "current_account"
    EXPENSE = "expense"
    EXPENSE_TYPE = "expense-Type"  # Expense with separate tax portion
    REVENUE = "revenue"
    VAT = "vat"
    PROFIT_AND_LOSS = "profit_and_loss"
    RECEIVABLE_ACCOUNT = "receivable_account"
    PAYABLE_ACCOUNT = "payable_account"


class WarningCode(str, Enum):
    """Data-quality diagnostics attached to reports."""
    MISSING_REFERENCE = "MISSING_REFERENCE"
    UNKNOWN_ACCOUNT = "UNKNOWN_ACCOUNT"
    UNKNOWN_ITEM = "UNKNOWN_ITEM"
    INVALID_DATE = "INVALID_DATE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    NEGATIVE_STOCK = "NEGATIVE_STOCK"
    NEGATIVE_CASH = "NEGATIVE_CASH"
    CUSTOMER_CREDIT_BALANCE = "CUSTOMER_CREDIT_BALANCE"
    SUPPLIER_DEBIT_BALANCE = "SUPPLIER_DEBIT_BALANCE"
    UNRECONCILED = "UNRECONCILED"


@dataclass(frozen=True, slots=True)
class DataQualityWarning:
    """Non-fatal diagnostic returned alongside a report."""
    code: WarningCode
    message: str
    reference: str | None = None


@dataclass(frozen=True, slots=True)
class SettlementTarget:
    """Safe or bank that receives/pays the cash of a document."""
    target_type: SettlementType
    target_id: str | None = None


@dataclass(frozen=True, slots=True)
class MonetaryTotals:
    """Invoice totals: net = subtotal + tax - discount."""
    subtotal: Decimal = ZERO
    discount: Decimal = ZERO
    tax: Decimal = ZERO
    net: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class LineEntry:
    """Item line of an invoice or store voucher."""
    item_code: ItemCode
    quantity: Decimal
    price: Decimal | None = None


@dataclass(frozen=True, slots=True)
class ClassifiedEntry:
    """Uniform view of one transaction's effect on one account."""
    date: date
    account_id: AccountId
    amount: Decimal
    direction: Direction
    kind: TransactionKind
    transaction_id: str
    sequence: int = 0

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction == Direction.DEBIT else -self.amount


@dataclass(frozen=True, slots=True)
class AccountBalance:
    """As-of balance: balance = opening + total_debit - total_credit."""
    account_id: AccountId
    as_of: date
    opening: Decimal
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class StatementRow:
    date: date
    transaction_id: str
    kind: TransactionKind
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True, slots=True)
class AccountStatement:
    """Running ledger of one account over a period."""
    account_id: AccountId
    period_start: date
    period_end: date
    opening: Decimal
    rows: tuple[StatementRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    closing: Decimal
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class InventorySnapshot:
    item_code: ItemCode
    quantity: Decimal
    unit_cost: Decimal
    value: Decimal
    is_negative: bool = False
    below_reorder: bool = False


@dataclass(frozen=True, slots=True)
class InventoryValuation:
    as_of: date
    snapshots: tuple[InventorySnapshot, ...]
    total_value: Decimal
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class BalanceSheetLines:
    cash_in_safes: Decimal = ZERO
    cash_in_banks: Decimal = ZERO
    receivables: Decimal = ZERO
    inventory: Decimal = ZERO
    payables: Decimal = ZERO
    vat_payable: Decimal = ZERO
    capital: Decimal = ZERO
    partners_balance: Decimal = ZERO
    retained_earnings: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class BalanceSheet:
    as_of: date
    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    reconciled: bool
    difference: Decimal
    lines: BalanceSheetLines
    warnings: tuple[DataQualityWarning, ...] = ()

    @property
    def liabilities_and_equity(self) -> Decimal:
        return self.liabilities + self.equity


@dataclass(frozen=True, slots=True)
class IncomeStatement:
    period_start: date
    period_end: date
    total_sales: Decimal
    total_sales_returns: Decimal
    net_sales: Decimal
    beginning_inventory: Decimal
    total_purchases: Decimal
    total_purchase_returns: Decimal
    net_purchases: Decimal
    ending_inventory: Decimal
    cogs: Decimal
    gross_profit: Decimal
    expenses_by_type: dict[str, Decimal] = field(default_factory=dict)
    total_expenses: Decimal = ZERO
    net_profit: Decimal = ZERO
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class VatDeclaration:
    period_start: date
    period_end: date
    branch_id: str | None
    sales_subtotal: Decimal
    sales_tax: Decimal
    returns_subtotal: Decimal
    returns_tax: Decimal
    purchases_subtotal: Decimal
    purchases_tax: Decimal
    purchase_returns_subtotal: Decimal
    purchase_returns_tax: Decimal
    output_vat: Decimal
    input_vat: Decimal
    net_vat: Decimal


@dataclass(frozen=True, slots=True)
class VatStatementRow:
    date: date
    transaction_id: str
    kind: TransactionKind
    amount: Decimal
    tax: Decimal
    direction: Direction  # DEBIT = collected, CREDIT = paid
    balance: Decimal


@dataclass(frozen=True, slots=True)
class VatStatement:
    period_start: date
    period_end: date
    branch_id: str | None
    opening_balance: Decimal
    rows: tuple[VatStatementRow, ...]
    total_collected: Decimal
    total_paid: Decimal
    net_vat: Decimal


def to_decimal(value) -> Decimal | None:
    """Convert a raw amount to Decimal; None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def parse_report_date(value, field_name: str = "as_of") -> date:
    """Parse a caller-supplied ISO date; raises ValidationError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        # Full timestamps such as 2025-12-31T23:59:00 report on their calendar day.
        if "T" in text or " " in text:
            try:
                return datetime.fromisoformat(text).date()
            except ValueError:
                pass
    raise ValidationError(f"Invalid {field_name}: {value!r} is not an ISO date", field=field_name)


def parse_period(start, end) -> tuple[date, date]:
    period_start = parse_report_date(start, "period_start")
    period_end = parse_report_date(end, "period_end")
    if period_start > period_end:
        raise ValidationError(
            f"period_start {period_start} is after period_end {period_end}",
            field="period_start",
        )
    return period_start, period_end


def within_tolerance(left: Decimal, right: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE) -> bool:
    return abs(left - right) < tolerance
