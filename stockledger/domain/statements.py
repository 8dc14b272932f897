"""
Statement Composer - Balance Sheet and Income Statement.

Each line is a sum of as-of balances or inventory values; the Balance Sheet
checks assets against liabilities + equity and reports the difference.
"""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal

import structlog

from .classifier import entity_type_value, in_range, transaction_date, unique_warnings
from .entities import Account, CashVoucher, InvoiceDocument, Item, LedgerSnapshot, Transaction
from .exceptions import ValidationError
from .services import BalanceService, InventoryValuationService
from .tax import VatService
from .value_objects import (
    DEFAULT_TOLERANCE,
    ZERO,
    AccountClass,
    BalanceSheet,
    BalanceSheetLines,
    DataQualityWarning,
    IncomeStatement,
    TransactionKind,
    VoucherEntityType,
    WarningCode,
    parse_period,
    parse_report_date,
    to_decimal,
    within_tolerance,
)

logger = structlog.get_logger(__name__)

UNCATEGORIZED_EXPENSE = "uncategorized"


def fiscal_year_start(as_of: date, start_month: int = 1) -> date:
    """First day of the fiscal year containing as_of."""
    year = as_of.year if as_of.month >= start_month else as_of.year - 1
    return date(year, start_month, 1)


def _expense_amount(voucher: CashVoucher) -> Decimal | None:
    entity_type = entity_type_value(voucher.entity_type)
    if entity_type == VoucherEntityType.EXPENSE.value:
        return to_decimal(voucher.amount)
    if entity_type == VoucherEntityType.EXPENSE_TYPE.value:
        before_tax = to_decimal(voucher.price_before_tax)
        return before_tax if before_tax is not None else to_decimal(voucher.amount)
    return None


def _required_decimal(value, field_name: str) -> Decimal:
    amount = to_decimal(value)
    if amount is None:
        raise ValidationError(f"Invalid {field_name}: {value!r} is not a number", field=field_name)
    return amount


class StatementComposer:
    """
    Service - Composes financial statements from the balance, inventory and VAT services.
    """

    def __init__(
        self,
        balance_service: BalanceService | None = None,
        inventory_service: InventoryValuationService | None = None,
        vat_service: VatService | None = None,
    ):
        self.balance_service = balance_service or BalanceService()
        self.inventory_service = inventory_service or InventoryValuationService()
        self.vat_service = vat_service or VatService()

    def compose_income_statement(
        self,
        transactions: Sequence[Transaction],
        items: Sequence[Item],
        period_start,
        period_end,
    ) -> IncomeStatement:
        """
        net_sales and net_purchases use invoice subtotals (before tax).
        cogs = beginning inventory + net purchases - ending inventory.
        """
        start, end = parse_period(period_start, period_end)

        subtotals: dict[TransactionKind, Decimal] = {}
        expenses_by_type: dict[str, Decimal] = {}
        warnings: list[DataQualityWarning] = []

        for transaction in transactions:
            tx_date = transaction_date(transaction)
            if tx_date is None or not in_range(tx_date, start, end):
                continue

            if isinstance(transaction, InvoiceDocument):
                subtotal = to_decimal(transaction.totals.subtotal)
                if subtotal is None:
                    warnings.append(DataQualityWarning(
                        code=WarningCode.INVALID_AMOUNT,
                        message=f"Transaction {transaction.id} has an invalid subtotal",
                        reference=transaction.id,
                    ))
                    continue
                subtotals[transaction.kind] = subtotals.get(transaction.kind, ZERO) + subtotal

            elif isinstance(transaction, CashVoucher) and transaction.kind == TransactionKind.PAYMENT_VOUCHER:
                if entity_type_value(transaction.entity_type) not in (
                    VoucherEntityType.EXPENSE.value,
                    VoucherEntityType.EXPENSE_TYPE.value,
                ):
                    continue
                amount = _expense_amount(transaction)
                if amount is None or amount < ZERO:
                    warnings.append(DataQualityWarning(
                        code=WarningCode.INVALID_AMOUNT,
                        message=f"Expense voucher {transaction.id} has an invalid amount",
                        reference=transaction.id,
                    ))
                    continue
                name = transaction.expense_type or UNCATEGORIZED_EXPENSE
                expenses_by_type[name] = expenses_by_type.get(name, ZERO) + amount

        beginning = self.inventory_service.value_inventory(items, transactions, start - timedelta(days=1))
        ending = self.inventory_service.value_inventory(items, transactions, end)

        total_sales = subtotals.get(TransactionKind.SALES_INVOICE, ZERO)
        total_sales_returns = subtotals.get(TransactionKind.SALES_RETURN, ZERO)
        total_purchases = subtotals.get(TransactionKind.PURCHASE_INVOICE, ZERO)
        total_purchase_returns = subtotals.get(TransactionKind.PURCHASE_RETURN, ZERO)

        net_sales = total_sales - total_sales_returns
        net_purchases = total_purchases - total_purchase_returns
        cogs = beginning.total_value + net_purchases - ending.total_value
        gross_profit = net_sales - cogs
        total_expenses = sum(expenses_by_type.values(), ZERO)

        logger.debug(
            "income_statement_composed",
            period_start=str(start),
            period_end=str(end),
            net_sales=str(net_sales),
            cogs=str(cogs),
        )
        return IncomeStatement(
            period_start=start,
            period_end=end,
            total_sales=total_sales,
            total_sales_returns=total_sales_returns,
            net_sales=net_sales,
            beginning_inventory=beginning.total_value,
            total_purchases=total_purchases,
            total_purchase_returns=total_purchase_returns,
            net_purchases=net_purchases,
            ending_inventory=ending.total_value,
            cogs=cogs,
            gross_profit=gross_profit,
            expenses_by_type=dict(sorted(expenses_by_type.items())),
            total_expenses=total_expenses,
            net_profit=gross_profit - total_expenses,
            warnings=unique_warnings(warnings, beginning.warnings, ending.warnings),
        )

    def compose_balance_sheet(
        self,
        accounts: Iterable[Account],
        items: Sequence[Item],
        transactions: Sequence[Transaction],
        as_of,
        capital=ZERO,
        period_start=None,
        tolerance=DEFAULT_TOLERANCE,
        fiscal_year_start_month: int = 1,
    ) -> BalanceSheet:
        """
        assets = cash in safes + cash in banks + receivables + inventory
        liabilities = payables + VAT payable
        equity = capital + partners' contribution + retained earnings

        A mismatch above tolerance is reported with reconciled=False and a warning.
        """
        cutoff = parse_report_date(as_of)
        accounts = list(accounts)
        start = (
            parse_report_date(period_start, "period_start")
            if period_start is not None
            else fiscal_year_start(cutoff, fiscal_year_start_month)
        )
        capital = _required_decimal(capital, "capital")
        tolerance = _required_decimal(tolerance, "tolerance")
        if tolerance < ZERO:
            raise ValidationError(f"Invalid tolerance: {tolerance} is negative", field="tolerance")

        # Transactions pointing at accounts outside the snapshot never reach a line.
        recorded = tuple(
            t for t in transactions
            if transaction_date(t) is None or transaction_date(t) <= cutoff
        )
        warnings: list[DataQualityWarning] = self.balance_service.classifier.audit_references(
            LedgerSnapshot(accounts=tuple(accounts), items=tuple(items), transactions=recorded)
        )
        cash_in_safes = ZERO
        cash_in_banks = ZERO
        receivables = ZERO
        payables = ZERO
        partners_total = ZERO

        balances = self.balance_service.compute_balances(accounts, transactions, cutoff)
        for account in accounts:
            result = balances[account.id]
            warnings.extend(result.warnings)
            balance = result.balance

            if account.account_class in (AccountClass.SAFE, AccountClass.BANK):
                if balance < ZERO:
                    warnings.append(self._balance_warning(
                        WarningCode.NEGATIVE_CASH, account, balance, "has a negative cash balance",
                    ))
                    balance = ZERO
                if account.account_class == AccountClass.SAFE:
                    cash_in_safes += balance
                else:
                    cash_in_banks += balance

            elif account.account_class == AccountClass.CUSTOMER:
                if balance < ZERO:
                    warnings.append(self._balance_warning(
                        WarningCode.CUSTOMER_CREDIT_BALANCE, account, balance, "has a credit balance",
                    ))
                else:
                    receivables += balance

            elif account.account_class == AccountClass.SUPPLIER:
                if balance > ZERO:
                    warnings.append(self._balance_warning(
                        WarningCode.SUPPLIER_DEBIT_BALANCE, account, balance, "has a debit balance",
                    ))
                else:
                    payables += -balance

            elif account.account_class == AccountClass.PARTNER_CURRENT_ACCOUNT:
                partners_total += balance

        inventory = self.inventory_service.value_inventory(items, transactions, cutoff)
        warnings.extend(inventory.warnings)

        vat_payable = self.vat_service.vat_position(transactions, start, cutoff)

        income = self.compose_income_statement(transactions, items, start, cutoff)
        warnings.extend(income.warnings)

        lines = BalanceSheetLines(
            cash_in_safes=cash_in_safes,
            cash_in_banks=cash_in_banks,
            receivables=receivables,
            inventory=inventory.total_value,
            payables=payables,
            vat_payable=vat_payable,
            capital=capital,
            # A partner deposit credits the current account and increases equity.
            partners_balance=-partners_total,
            retained_earnings=income.net_profit,
        )

        assets = lines.cash_in_safes + lines.cash_in_banks + lines.receivables + lines.inventory
        liabilities = lines.payables + lines.vat_payable
        equity = lines.capital + lines.partners_balance + lines.retained_earnings
        difference = assets - (liabilities + equity)
        reconciled = within_tolerance(assets, liabilities + equity, tolerance)

        if not reconciled:
            warnings.append(DataQualityWarning(
                code=WarningCode.UNRECONCILED,
                message=f"Assets differ from liabilities + equity by {difference}",
            ))

        logger.info(
            "balance_sheet_composed",
            as_of=str(cutoff),
            assets=str(assets),
            liabilities=str(liabilities),
            equity=str(equity),
            reconciled=reconciled,
        )
        return BalanceSheet(
            as_of=cutoff,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            reconciled=reconciled,
            difference=difference,
            lines=lines,
            warnings=unique_warnings(warnings),
        )

    def _balance_warning(
        self,
        code: WarningCode,
        account: Account,
        balance: Decimal,
        description: str,
    ) -> DataQualityWarning:
        logger.warning("unexpected_balance", account_id=account.id, code=code.value, balance=str(balance))
        return DataQualityWarning(
            code=code,
            message=f"{account.account_class.value} account {account.id} {description} ({balance})",
            reference=account.id,
        )
