"""
Infrastructure - Read-only snapshot loader mapping database rows to domain entities.
"""

from collections import defaultdict

import structlog
from sqlalchemy.orm import Session
from sqlmodel import select

from stockledger.domain import entities
from stockledger.domain.entities import (
    TRANSACTION_TYPES,
    CashVoucher,
    InternalTransfer,
    InvoiceDocument,
    LedgerSnapshot,
    StoreTransfer,
    Transaction,
)
from stockledger.domain.services import ISnapshotRepository
from stockledger.domain.value_objects import (
    ZERO,
    AccountClass,
    LineEntry,
    MonetaryTotals,
    PaymentMethod,
    SettlementTarget,
    SettlementType,
    TransactionKind,
    VoucherEntityType,
)
from stockledger.infrastructure.database import models

logger = structlog.get_logger(__name__)


class SnapshotRepository(ISnapshotRepository):
    """Loads the whole ledger as one immutable LedgerSnapshot. Never writes."""

    def __init__(self, session: Session):
        self.session = session

    def load(self) -> LedgerSnapshot:
        accounts = tuple(
            account
            for row in self.session.execute(select(models.Account).order_by(models.Account.id)).scalars()
            if (account := self._to_account(row)) is not None
        )
        items = tuple(
            self._to_item(row)
            for row in self.session.execute(select(models.Item).order_by(models.Item.code)).scalars()
        )

        lines: dict[int, list[LineEntry]] = defaultdict(list)
        line_rows = self.session.execute(
            select(models.TransactionLine).order_by(models.TransactionLine.id)
        ).scalars()
        for row in line_rows:
            lines[row.transaction_id].append(
                LineEntry(item_code=row.item_code, quantity=row.quantity, price=row.price)
            )

        transactions = tuple(
            transaction
            for row in self.session.execute(
                select(models.LedgerTransaction).order_by(models.LedgerTransaction.id)
            ).scalars()
            if (transaction := self._to_transaction(row, tuple(lines.get(row.id, ())))) is not None
        )

        logger.info(
            "snapshot_loaded",
            accounts=len(accounts),
            items=len(items),
            transactions=len(transactions),
        )
        return LedgerSnapshot(accounts=accounts, items=items, transactions=transactions)

    def _to_account(self, row: models.Account) -> entities.Account | None:
        try:
            account_class = AccountClass(row.account_class)
        except ValueError:
            logger.warning("unknown_account_class", account_id=row.id, account_class=row.account_class)
            return None
        return entities.Account(
            id=row.id,
            code=row.code,
            name=row.name,
            account_class=account_class,
            opening_balance=row.opening_balance if row.opening_balance is not None else ZERO,
            branch_id=row.branch_id,
        )

    def _to_item(self, row: models.Item) -> entities.Item:
        return entities.Item(
            code=row.code,
            name=row.name,
            unit=row.unit,
            purchase_price=row.purchase_price,
            opening_stock=row.opening_stock,
            reorder_level=row.reorder_level,
            is_stocked=row.is_stocked,
        )

    def _to_transaction(
        self,
        row: models.LedgerTransaction,
        lines: tuple[LineEntry, ...],
    ) -> Transaction | None:
        try:
            kind = TransactionKind(row.kind)
        except ValueError:
            logger.warning("unknown_transaction_kind", reference=row.reference, kind=row.kind)
            return None

        cls = TRANSACTION_TYPES[kind]
        common = {
            "id": row.reference,
            "date": row.transaction_date,
            "branch_id": row.branch_id,
            "sequence": row.id or 0,
        }

        if issubclass(cls, InvoiceDocument):
            return cls(
                **common,
                party_id=row.party_id,
                totals=MonetaryTotals(
                    subtotal=row.subtotal,
                    discount=row.discount if row.discount is not None else ZERO,
                    tax=row.tax if row.tax is not None else ZERO,
                    net=row.net,
                ),
                lines=lines,
                payment_method=self._payment_method(row),
                settlement=self._target(row.settlement_type, row.settlement_id, row.reference),
            )

        if issubclass(cls, CashVoucher):
            return cls(
                **common,
                entity_type=self._entity_type(row.entity_type),
                entity_id=row.entity_id,
                amount=row.amount,
                settlement=self._target(row.settlement_type, row.settlement_id, row.reference),
                expense_type=row.expense_type,
                price_before_tax=row.price_before_tax,
                tax_price=row.tax_price,
            )

        if cls is StoreTransfer:
            return StoreTransfer(
                **common,
                from_store_id=row.store_id,
                to_store_id=row.to_store_id,
                lines=lines,
            )

        if cls is InternalTransfer:
            return InternalTransfer(
                **common,
                source=self._target(row.source_type, row.source_id, row.reference),
                destination=self._target(row.settlement_type, row.settlement_id, row.reference),
                amount=row.amount,
            )

        return cls(**common, store_id=row.store_id, lines=lines)

    def _payment_method(self, row: models.LedgerTransaction) -> PaymentMethod:
        if row.payment_method is None:
            return PaymentMethod.CREDIT
        try:
            return PaymentMethod(row.payment_method.upper())
        except ValueError:
            logger.warning("unknown_payment_method", reference=row.reference, payment_method=row.payment_method)
            return PaymentMethod.CREDIT

    def _target(self, target_type: str | None, target_id: str | None, reference: str) -> SettlementTarget | None:
        if target_type is None:
            return None
        try:
            return SettlementTarget(target_type=SettlementType(target_type.upper()), target_id=target_id)
        except ValueError:
            logger.warning("unknown_settlement_type", reference=reference, settlement_type=target_type)
            return None

    def _entity_type(self, value: str | None) -> VoucherEntityType | str:
        if value is None:
            return ""
        try:
            return VoucherEntityType(value)
        except ValueError:
            return value
