"""
Transaction Classifier - Normalizes heterogeneous transactions into
ClassifiedEntry rows for one target account.

Every debit/credit decision of the engine comes from POSTING_RULES.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

import structlog

from .entities import (
    Account,
    CashVoucher,
    InternalTransfer,
    InvoiceDocument,
    LedgerSnapshot,
    Transaction,
)
from .value_objects import (
    ZERO,
    AccountClass,
    ClassifiedEntry,
    DataQualityWarning,
    Direction,
    SettlementTarget,
    SettlementType,
    TransactionKind,
    VoucherEntityType,
    WarningCode,
    to_decimal,
)

logger = structlog.get_logger(__name__)

DEBIT = Direction.DEBIT
CREDIT = Direction.CREDIT

_CASH_RULES: dict[TransactionKind, Direction] = {
    TransactionKind.RECEIPT_VOUCHER: DEBIT,
    TransactionKind.SALES_INVOICE: DEBIT,       # cash only
    TransactionKind.PURCHASE_RETURN: DEBIT,     # cash only
    TransactionKind.PAYMENT_VOUCHER: CREDIT,
    TransactionKind.PURCHASE_INVOICE: CREDIT,   # cash only
    TransactionKind.SALES_RETURN: CREDIT,       # cash only
    TransactionKind.INTERNAL_TRANSFER: DEBIT,   # destination side; source side is the inverse
}

POSTING_RULES: dict[AccountClass, dict[TransactionKind, Direction]] = {
    AccountClass.CUSTOMER: {
        TransactionKind.SALES_INVOICE: DEBIT,
        TransactionKind.PAYMENT_VOUCHER: DEBIT,   # refund
        TransactionKind.SALES_RETURN: CREDIT,
        TransactionKind.RECEIPT_VOUCHER: CREDIT,
    },
    AccountClass.SUPPLIER: {
        TransactionKind.PURCHASE_RETURN: DEBIT,
        TransactionKind.PAYMENT_VOUCHER: DEBIT,
        TransactionKind.PURCHASE_INVOICE: CREDIT,
        TransactionKind.RECEIPT_VOUCHER: CREDIT,  # refund
    },
    AccountClass.SAFE: _CASH_RULES,
    AccountClass.BANK: _CASH_RULES,
    AccountClass.PARTNER_CURRENT_ACCOUNT: {
        TransactionKind.PAYMENT_VOUCHER: DEBIT,
        TransactionKind.RECEIPT_VOUCHER: CREDIT,
    },
}

INVOICE_PARTY_CLASSES: dict[TransactionKind, AccountClass] = {
    TransactionKind.SALES_INVOICE: AccountClass.CUSTOMER,
    TransactionKind.SALES_RETURN: AccountClass.CUSTOMER,
    TransactionKind.PURCHASE_INVOICE: AccountClass.SUPPLIER,
    TransactionKind.PURCHASE_RETURN: AccountClass.SUPPLIER,
}

VOUCHER_PARTY_CLASSES: dict[str, AccountClass] = {
    VoucherEntityType.CUSTOMER.value: AccountClass.CUSTOMER,
    VoucherEntityType.SUPPLIER.value: AccountClass.SUPPLIER,
    VoucherEntityType.CURRENT_ACCOUNT.value: AccountClass.PARTNER_CURRENT_ACCOUNT,
}

CASH_CLASSES: dict[AccountClass, SettlementType] = {
    AccountClass.SAFE: SettlementType.SAFE,
    AccountClass.BANK: SettlementType.BANK,
}

if set(POSTING_RULES) != set(AccountClass):
    raise RuntimeError("POSTING_RULES must cover every account class")


@dataclass(frozen=True, slots=True)
class Exclusion:
    """A transaction dropped from a fold, with the reason."""
    date: date | None
    warning: DataQualityWarning


@dataclass(frozen=True, slots=True)
class Classification:
    entries: tuple[ClassifiedEntry, ...] = ()
    exclusion: Exclusion | None = None


NOT_RELEVANT = Classification()


def entity_type_value(entity_type) -> str:
    return entity_type.value if isinstance(entity_type, VoucherEntityType) else str(entity_type)


def transaction_date(transaction: Transaction) -> date | None:
    value = getattr(transaction, "date", None)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def transaction_amount(transaction: Transaction) -> Decimal | None:
    """Monetary magnitude a transaction posts to an account."""
    if isinstance(transaction, InvoiceDocument):
        return to_decimal(transaction.totals.net)
    if isinstance(transaction, (CashVoucher, InternalTransfer)):
        return to_decimal(transaction.amount)
    return None


def _settles_to(target: SettlementTarget | None, account: Account) -> bool:
    return (
        target is not None
        and target.target_type == CASH_CLASSES[account.account_class]
        and target.target_id == account.id
    )


class TransactionClassifier:
    """
    Service - Decides whether a transaction touches an account and in which direction.
    Never raises on malformed records: they are excluded with a DataQualityWarning.
    """

    def classify(self, transaction: Transaction, account: Account) -> Classification:
        rules = POSTING_RULES[account.account_class]
        kind = getattr(transaction, "kind", None)
        if kind not in rules:
            return NOT_RELEVANT

        if account.account_class in CASH_CLASSES:
            directions = self._match_cash(transaction, account, rules[kind])
        else:
            directions = self._match_party(transaction, account, rules[kind])

        if isinstance(directions, Exclusion):
            return Classification(exclusion=directions)
        if not directions:
            return NOT_RELEVANT

        tx_date = transaction_date(transaction)
        if tx_date is None:
            return self._exclude(
                transaction, account, None, WarningCode.INVALID_DATE,
                f"Transaction {transaction.id} has no valid date",
            )

        amount = transaction_amount(transaction)
        if amount is None or amount < ZERO:
            return self._exclude(
                transaction, account, tx_date, WarningCode.INVALID_AMOUNT,
                f"Transaction {transaction.id} has an invalid amount",
            )

        entries = tuple(
            ClassifiedEntry(
                date=tx_date,
                account_id=account.id,
                amount=amount,
                direction=direction,
                kind=kind,
                transaction_id=transaction.id,
                sequence=transaction.sequence,
            )
            for direction in directions
        )
        return Classification(entries=entries)

    def entries_for(
        self,
        account: Account,
        transactions: Iterable[Transaction],
        as_of: date | None = None,
        start: date | None = None,
    ) -> tuple[list[ClassifiedEntry], list[DataQualityWarning]]:
        """Entries of one account with start <= date <= as_of, plus exclusion warnings."""
        entries: list[ClassifiedEntry] = []
        warnings: list[DataQualityWarning] = []
        for transaction in transactions:
            result = self.classify(transaction, account)
            if result.exclusion is not None:
                excluded_on = result.exclusion.date
                if excluded_on is None or in_range(excluded_on, start, as_of):
                    warnings.append(result.exclusion.warning)
                continue
            entries.extend(e for e in result.entries if in_range(e.date, start, as_of))
        return entries, warnings

    def audit_references(self, snapshot: LedgerSnapshot) -> list[DataQualityWarning]:
        """Warnings for transactions pointing at accounts missing from the snapshot."""
        known = {(a.account_class, a.id) for a in snapshot.accounts}
        warnings: list[DataQualityWarning] = []

        def check(account_class: AccountClass, account_id, transaction: Transaction) -> None:
            if account_id is not None and (account_class, account_id) not in known:
                warnings.append(DataQualityWarning(
                    code=WarningCode.UNKNOWN_ACCOUNT,
                    message=(
                        f"Transaction {transaction.id} references unknown "
                        f"{account_class.value} account {account_id}"
                    ),
                    reference=transaction.id,
                ))

        def check_target(target: SettlementTarget | None, transaction: Transaction) -> None:
            if target is None:
                return
            account_class = AccountClass.SAFE if target.target_type == SettlementType.SAFE else AccountClass.BANK
            check(account_class, target.target_id, transaction)

        for transaction in snapshot.transactions:
            if isinstance(transaction, InvoiceDocument):
                check(INVOICE_PARTY_CLASSES[transaction.kind], transaction.party_id, transaction)
                if transaction.is_cash:
                    check_target(transaction.settlement, transaction)
            elif isinstance(transaction, CashVoucher):
                party_class = VOUCHER_PARTY_CLASSES.get(entity_type_value(transaction.entity_type))
                if party_class is not None:
                    check(party_class, transaction.entity_id, transaction)
                check_target(transaction.settlement, transaction)
            elif isinstance(transaction, InternalTransfer):
                check_target(transaction.source, transaction)
                check_target(transaction.destination, transaction)

        for warning in warnings:
            logger.warning("unknown_account_reference", reference=warning.reference, detail=warning.message)
        return warnings

    def _match_party(self, transaction: Transaction, account: Account, direction: Direction):
        if isinstance(transaction, InvoiceDocument):
            if INVOICE_PARTY_CLASSES[transaction.kind] != account.account_class:
                return ()
            if transaction.party_id is None:
                # Walk-in cash sales legitimately carry no party.
                if transaction.is_cash:
                    return ()
                return self._missing_reference(transaction, account, "party")
            return (direction,) if transaction.party_id == account.id else ()

        if isinstance(transaction, CashVoucher):
            party_class = VOUCHER_PARTY_CLASSES.get(entity_type_value(transaction.entity_type))
            if party_class != account.account_class:
                return ()
            if transaction.entity_id is None:
                return self._missing_reference(transaction, account, "entity")
            return (direction,) if transaction.entity_id == account.id else ()

        return ()

    def _match_cash(self, transaction: Transaction, account: Account, direction: Direction):
        if isinstance(transaction, InvoiceDocument):
            if not transaction.is_cash:
                return ()
            if transaction.settlement is None or transaction.settlement.target_id is None:
                return self._missing_reference(transaction, account, "settlement")
            return (direction,) if _settles_to(transaction.settlement, account) else ()

        if isinstance(transaction, CashVoucher):
            if transaction.settlement is None or transaction.settlement.target_id is None:
                return self._missing_reference(transaction, account, "settlement")
            return (direction,) if _settles_to(transaction.settlement, account) else ()

        if isinstance(transaction, InternalTransfer):
            directions = []
            if _settles_to(transaction.destination, account):
                directions.append(direction)
            if _settles_to(transaction.source, account):
                directions.append(CREDIT if direction == DEBIT else DEBIT)
            return tuple(directions)

        return ()

    def _missing_reference(self, transaction: Transaction, account: Account, what: str) -> Exclusion:
        return self._exclude(
            transaction, account, transaction_date(transaction), WarningCode.MISSING_REFERENCE,
            f"Transaction {transaction.id} has no {what} reference",
        ).exclusion

    def _exclude(
        self,
        transaction: Transaction,
        account: Account,
        on: date | None,
        code: WarningCode,
        message: str,
    ) -> Classification:
        logger.warning(
            "transaction_excluded",
            transaction_id=transaction.id,
            account_id=account.id,
            reason=code.value,
        )
        warning = DataQualityWarning(code=code, message=message, reference=transaction.id)
        return Classification(exclusion=Exclusion(date=on, warning=warning))


def in_range(value: date, start: date | None, end: date | None) -> bool:
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def unique_warnings(*groups: Iterable[DataQualityWarning]) -> tuple[DataQualityWarning, ...]:
    """Merge warning lists, keeping first-seen order and dropping duplicates."""
    merged: dict[DataQualityWarning, None] = {}
    for group in groups:
        for warning in group:
            merged.setdefault(warning, None)
    return tuple(merged)


# Quantity effect of each stock-moving kind on company-wide stock.
# StoreTransfer moves stock between stores and nets to zero here.
STOCK_EFFECTS: dict[TransactionKind, int] = {
    TransactionKind.PURCHASE_INVOICE: 1,
    TransactionKind.SALES_RETURN: 1,
    TransactionKind.STORE_RECEIPT: 1,
    TransactionKind.SALES_INVOICE: -1,
    TransactionKind.PURCHASE_RETURN: -1,
    TransactionKind.STORE_ISSUE: -1,
    TransactionKind.STORE_TRANSFER: 0,
}
