"""
API DTOs - Data Transfer Objects for report responses.
Built from the domain value objects with `model_validate(..., from_attributes=True)`.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from stockledger.domain.value_objects import Direction, TransactionKind, WarningCode


class DataQualityWarningDTO(BaseModel):
    """DTO - Data-quality diagnostic attached to a report."""
    code: WarningCode
    message: str
    reference: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AccountBalanceDTO(BaseModel):
    """DTO - As-of account balance."""
    account_id: str
    as_of: date
    opening: Decimal
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    warnings: list[DataQualityWarningDTO] = []

    model_config = ConfigDict(from_attributes=True)


class StatementRowDTO(BaseModel):
    date: date
    transaction_id: str
    kind: TransactionKind
    debit: Decimal
    credit: Decimal
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class AccountStatementDTO(BaseModel):
    """DTO - Running account statement over a period."""
    account_id: str
    period_start: date
    period_end: date
    opening: Decimal
    rows: list[StatementRowDTO]
    total_debit: Decimal
    total_credit: Decimal
    closing: Decimal
    warnings: list[DataQualityWarningDTO] = []

    model_config = ConfigDict(from_attributes=True)


class InventorySnapshotDTO(BaseModel):
    item_code: str
    quantity: Decimal
    unit_cost: Decimal
    value: Decimal
    is_negative: bool
    below_reorder: bool

    model_config = ConfigDict(from_attributes=True)


class InventoryValuationDTO(BaseModel):
    """DTO - Inventory valuation as of a date."""
    as_of: date
    snapshots: list[InventorySnapshotDTO]
    total_value: Decimal
    warnings: list[DataQualityWarningDTO] = []

    model_config = ConfigDict(from_attributes=True)


class BalanceSheetLinesDTO(BaseModel):
    cash_in_safes: Decimal
    cash_in_banks: Decimal
    receivables: Decimal
    inventory: Decimal
    payables: Decimal
    vat_payable: Decimal
    capital: Decimal
    partners_balance: Decimal = Field(..., description="Negated sum of partner current-account balances")
    retained_earnings: Decimal

    model_config = ConfigDict(from_attributes=True)


class BalanceSheetDTO(BaseModel):
    """DTO - Balance sheet with reconciliation result."""
    as_of: date
    assets: Decimal
    liabilities: Decimal
    equity: Decimal
    liabilities_and_equity: Decimal
    reconciled: bool
    difference: Decimal
    lines: BalanceSheetLinesDTO
    warnings: list[DataQualityWarningDTO] = []

    model_config = ConfigDict(from_attributes=True)


class IncomeStatementDTO(BaseModel):
    """DTO - Income statement for a period."""
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
    expenses_by_type: dict[str, Decimal] = {}
    total_expenses: Decimal
    net_profit: Decimal
    warnings: list[DataQualityWarningDTO] = []

    model_config = ConfigDict(from_attributes=True)


class VatDeclarationDTO(BaseModel):
    """DTO - VAT declaration for a period."""
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

    model_config = ConfigDict(from_attributes=True)


class VatStatementRowDTO(BaseModel):
    date: date
    transaction_id: str
    kind: TransactionKind
    amount: Decimal
    tax: Decimal
    direction: Direction
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class VatStatementDTO(BaseModel):
    """DTO - Running VAT statement."""
    period_start: date
    period_end: date
    branch_id: str | None
    opening_balance: Decimal
    rows: list[VatStatementRowDTO]
    total_collected: Decimal
    total_paid: Decimal
    net_vat: Decimal

    model_config = ConfigDict(from_attributes=True)
