"""
Domain Services - Balance reconstruction and inventory valuation.
Pure folds over an immutable snapshot: identical inputs give identical results.
"""

from abc import ABC, abstractmethod
from bisect import bisect_right
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal

import structlog

from .classifier import (
    STOCK_EFFECTS,
    TransactionClassifier,
    transaction_date,
    unique_warnings,
)
from .entities import Account, Item, LedgerSnapshot, StoreTransfer, Transaction
from .value_objects import (
    ZERO,
    AccountBalance,
    AccountId,
    AccountStatement,
    ClassifiedEntry,
    DataQualityWarning,
    Direction,
    InventorySnapshot,
    InventoryValuation,
    ItemCode,
    StatementRow,
    TransactionKind,
    WarningCode,
    parse_period,
    parse_report_date,
    to_decimal,
)

logger = structlog.get_logger(__name__)


class ISnapshotRepository(ABC):

    @abstractmethod
    def load(self) -> LedgerSnapshot:
        ...


def _opening_balance(account: Account) -> tuple[Decimal, list[DataQualityWarning]]:
    opening = to_decimal(account.opening_balance)
    if opening is None:
        return ZERO, [DataQualityWarning(
            code=WarningCode.INVALID_AMOUNT,
            message=f"Account {account.id} has an invalid opening balance",
            reference=account.id,
        )]
    return opening, []


def _totals(entries: Iterable[ClassifiedEntry]) -> tuple[Decimal, Decimal]:
    total_debit = ZERO
    total_credit = ZERO
    for entry in entries:
        if entry.direction == Direction.DEBIT:
            total_debit += entry.amount
        else:
            total_credit += entry.amount
    return total_debit, total_credit


class BalanceService:
    """
    Service - Point-in-time balance reconstruction for one account.
    balance = opening + total_debit - total_credit, transactions with date <= as_of.
    """

    def __init__(self, classifier: TransactionClassifier | None = None):
        self.classifier = classifier or TransactionClassifier()

    def compute_balance(
        self,
        account: Account,
        transactions: Iterable[Transaction],
        as_of,
    ) -> AccountBalance:
        cutoff = parse_report_date(as_of)
        opening, opening_warnings = _opening_balance(account)
        entries, warnings = self.classifier.entries_for(account, transactions, as_of=cutoff)
        total_debit, total_credit = _totals(entries)

        return AccountBalance(
            account_id=account.id,
            as_of=cutoff,
            opening=opening,
            total_debit=total_debit,
            total_credit=total_credit,
            balance=opening + total_debit - total_credit,
            warnings=unique_warnings(opening_warnings, warnings),
        )

    def compute_balances(
        self,
        accounts: Iterable[Account],
        transactions: Sequence[Transaction],
        as_of,
    ) -> dict[AccountId, AccountBalance]:
        cutoff = parse_report_date(as_of)
        return {
            account.id: self.compute_balance(account, transactions, cutoff)
            for account in accounts
        }

    def account_statement(
        self,
        account: Account,
        transactions: Sequence[Transaction],
        period_start,
        period_end,
    ) -> AccountStatement:
        """
        Running ledger for [period_start, period_end].
        Same-date rows keep (sequence, input order); closing equals the as-of balance at period_end.
        """
        start, end = parse_period(period_start, period_end)
        opening_balance = self.compute_balance(account, transactions, start - timedelta(days=1))
        entries, warnings = self.classifier.entries_for(account, transactions, as_of=end, start=start)
        entries.sort(key=lambda e: (e.date, e.sequence))

        rows: list[StatementRow] = []
        running = opening_balance.balance
        for entry in entries:
            debit = entry.amount if entry.direction == Direction.DEBIT else ZERO
            credit = entry.amount if entry.direction == Direction.CREDIT else ZERO
            running = running + debit - credit
            rows.append(StatementRow(
                date=entry.date,
                transaction_id=entry.transaction_id,
                kind=entry.kind,
                debit=debit,
                credit=credit,
                balance=running,
            ))

        total_debit, total_credit = _totals(entries)
        return AccountStatement(
            account_id=account.id,
            period_start=start,
            period_end=end,
            opening=opening_balance.balance,
            rows=tuple(rows),
            total_debit=total_debit,
            total_credit=total_credit,
            closing=opening_balance.balance + total_debit - total_credit,
            warnings=unique_warnings(opening_balance.warnings, warnings),
        )


class AccountLedgerIndex:
    """
    Sorted-by-date cumulative totals per account, for repeated as-of queries.
    Built once per snapshot; each query is a binary search instead of a full scan.
    """

    def __init__(
        self,
        accounts: Iterable[Account],
        transactions: Sequence[Transaction],
        classifier: TransactionClassifier | None = None,
    ):
        classifier = classifier or TransactionClassifier()
        self._accounts: dict[AccountId, Account] = {}
        self._dates: dict[AccountId, list[date]] = {}
        self._debits: dict[AccountId, list[Decimal]] = {}
        self._credits: dict[AccountId, list[Decimal]] = {}
        self._exclusions: dict[AccountId, list[tuple[date | None, DataQualityWarning]]] = {}

        for account in accounts:
            entries: list[ClassifiedEntry] = []
            exclusions: list[tuple[date | None, DataQualityWarning]] = []
            for transaction in transactions:
                result = classifier.classify(transaction, account)
                if result.exclusion is not None:
                    exclusions.append((result.exclusion.date, result.exclusion.warning))
                entries.extend(result.entries)
            entries.sort(key=lambda e: (e.date, e.sequence))

            dates: list[date] = []
            debits: list[Decimal] = []
            credits: list[Decimal] = []
            running_debit = ZERO
            running_credit = ZERO
            for entry in entries:
                if entry.direction == Direction.DEBIT:
                    running_debit += entry.amount
                else:
                    running_credit += entry.amount
                dates.append(entry.date)
                debits.append(running_debit)
                credits.append(running_credit)

            self._accounts[account.id] = account
            self._dates[account.id] = dates
            self._debits[account.id] = debits
            self._credits[account.id] = credits
            self._exclusions[account.id] = exclusions

        logger.debug("ledger_index_built", accounts=len(self._accounts))

    def __contains__(self, account_id) -> bool:
        return account_id in self._accounts

    def balance_as_of(self, account_id: AccountId, as_of) -> AccountBalance:
        cutoff = parse_report_date(as_of)
        account = self._accounts.get(account_id)
        if account is None:
            raise KeyError(account_id)

        position = bisect_right(self._dates[account_id], cutoff)
        total_debit = self._debits[account_id][position - 1] if position else ZERO
        total_credit = self._credits[account_id][position - 1] if position else ZERO
        opening, opening_warnings = _opening_balance(account)
        warnings = [
            warning for on, warning in self._exclusions[account_id]
            if on is None or on <= cutoff
        ]

        return AccountBalance(
            account_id=account_id,
            as_of=cutoff,
            opening=opening,
            total_debit=total_debit,
            total_credit=total_credit,
            balance=opening + total_debit - total_credit,
            warnings=unique_warnings(opening_warnings, warnings),
        )


class InventoryValuationService:
    """
    Service - Company-wide stock quantities and monetary inventory value as of a date.

    quantity = opening_stock + inbound - outbound; value = max(quantity, 0) * purchase_price.
    Cost is the item's current purchase price, not a historical cost layer.
    """

    def compute_inventory_value(
        self,
        items: Iterable[Item],
        transactions: Iterable[Transaction],
        as_of,
    ) -> list[InventorySnapshot]:
        return list(self.value_inventory(items, transactions, as_of).snapshots)

    def value_inventory(
        self,
        items: Iterable[Item],
        transactions: Iterable[Transaction],
        as_of,
    ) -> InventoryValuation:
        cutoff = parse_report_date(as_of)
        items = list(items)
        movements, warnings = self.stock_movements(transactions, cutoff)

        known_codes = {item.code for item in items}
        for code in movements:
            if code not in known_codes:
                warnings.append(DataQualityWarning(
                    code=WarningCode.UNKNOWN_ITEM,
                    message=f"Stock movement references unknown item {code}",
                    reference=code,
                ))

        snapshots: list[InventorySnapshot] = []
        total_value = ZERO
        for item in items:
            if not item.is_stocked:
                continue
            snapshot = self._snapshot(item, movements.get(item.code, ZERO))
            if snapshot.is_negative:
                warnings.append(DataQualityWarning(
                    code=WarningCode.NEGATIVE_STOCK,
                    message=f"Item {item.code} has negative derived quantity {snapshot.quantity}",
                    reference=item.code,
                ))
                logger.warning("negative_stock", item_code=item.code, quantity=str(snapshot.quantity))
            snapshots.append(snapshot)
            total_value += snapshot.value

        return InventoryValuation(
            as_of=cutoff,
            snapshots=tuple(snapshots),
            total_value=total_value,
            warnings=unique_warnings(warnings),
        )

    def stock_movements(
        self,
        transactions: Iterable[Transaction],
        as_of: date,
    ) -> tuple[dict[ItemCode, Decimal], list[DataQualityWarning]]:
        """Net quantity moved per item code for transactions dated on or before as_of."""
        movements: dict[ItemCode, Decimal] = {}
        warnings: list[DataQualityWarning] = []

        for transaction in transactions:
            effect = STOCK_EFFECTS.get(getattr(transaction, "kind", None))
            if effect is None:
                continue
            tx_date = transaction_date(transaction)
            if tx_date is None:
                warnings.append(DataQualityWarning(
                    code=WarningCode.INVALID_DATE,
                    message=f"Transaction {transaction.id} has no valid date",
                    reference=transaction.id,
                ))
                continue
            if tx_date > as_of:
                continue

            for line in transaction.lines:
                quantity = to_decimal(line.quantity)
                if quantity is None or quantity < ZERO:
                    warnings.append(DataQualityWarning(
                        code=WarningCode.INVALID_AMOUNT,
                        message=f"Transaction {transaction.id} has an invalid quantity for item {line.item_code}",
                        reference=transaction.id,
                    ))
                    continue
                current = movements.get(line.item_code, ZERO)
                movements[line.item_code] = current + quantity * effect

        return movements, warnings

    def _snapshot(self, item: Item, moved: Decimal) -> InventorySnapshot:
        quantity = (to_decimal(item.opening_stock) or ZERO) + moved
        unit_cost = to_decimal(item.purchase_price) or ZERO
        reorder_level = to_decimal(item.reorder_level)
        return InventorySnapshot(
            item_code=item.code,
            quantity=quantity,
            unit_cost=unit_cost,
            value=max(quantity, ZERO) * unit_cost,
            is_negative=quantity < ZERO,
            below_reorder=reorder_level is not None and quantity <= reorder_level,
        )


class StockService:
    """
    Service - Per-store stock of one item.
    Store balance = receipts - issues - transfers out + transfers in.
    """

    def store_quantities(
        self,
        item_code: ItemCode,
        transactions: Iterable[Transaction],
        as_of,
    ) -> dict[str, Decimal]:
        cutoff = parse_report_date(as_of)
        balances: dict[str, Decimal] = {}

        def move(store_id: str | None, quantity: Decimal) -> None:
            if store_id is None:
                return
            balances[store_id] = balances.get(store_id, ZERO) + quantity

        for transaction in transactions:
            kind = getattr(transaction, "kind", None)
            if kind not in (
                TransactionKind.STORE_RECEIPT,
                TransactionKind.STORE_ISSUE,
                TransactionKind.STORE_TRANSFER,
            ):
                continue
            tx_date = transaction_date(transaction)
            if tx_date is None or tx_date > cutoff:
                continue

            quantity = sum(
                (to_decimal(line.quantity) or ZERO for line in transaction.lines if line.item_code == item_code),
                ZERO,
            )
            if isinstance(transaction, StoreTransfer):
                move(transaction.from_store_id, -quantity)
                move(transaction.to_store_id, quantity)
            else:
                move(transaction.store_id, quantity * STOCK_EFFECTS[kind])

        return balances
