"""
VAT Aggregator - VAT declaration, running VAT statement and VAT position.
"""

from collections.abc import Iterable
from decimal import Decimal

import structlog

from .classifier import entity_type_value, in_range, transaction_date
from .entities import CashVoucher, InvoiceDocument, Transaction
from .value_objects import (
    ZERO,
    Direction,
    TransactionKind,
    VatDeclaration,
    VatStatement,
    VatStatementRow,
    VoucherEntityType,
    parse_period,
    to_decimal,
)

logger = structlog.get_logger(__name__)

# Invoice kinds whose tax is collected; the other invoice kinds pay VAT.
COLLECTED_INVOICE_KINDS = (TransactionKind.SALES_INVOICE, TransactionKind.PURCHASE_RETURN)


def _matches_branch(transaction: Transaction, branch_filter: str | None) -> bool:
    return branch_filter is None or transaction.branch_id == branch_filter


def _voucher_tax(voucher: CashVoucher) -> tuple[Direction, Decimal] | None:
    """VAT effect of a voucher: settlements with the tax authority and expense tax."""
    entity_type = entity_type_value(voucher.entity_type)
    if entity_type == VoucherEntityType.VAT.value:
        amount = to_decimal(voucher.amount)
        if amount is None:
            return None
        if voucher.kind == TransactionKind.RECEIPT_VOUCHER:
            return Direction.DEBIT, amount
        return Direction.CREDIT, amount

    if entity_type == VoucherEntityType.EXPENSE_TYPE.value and voucher.kind == TransactionKind.PAYMENT_VOUCHER:
        tax = to_decimal(voucher.tax_price)
        if tax is None or tax == ZERO:
            return None
        return Direction.CREDIT, tax
    return None


class VatService:
    """
    Service - VAT computations over a date range.
    output_vat = sales tax - sales return tax; input_vat = purchase tax - purchase return tax.
    """

    def compute_vat_declaration(
        self,
        invoices: Iterable[InvoiceDocument],
        returns: Iterable[InvoiceDocument],
        period_start,
        period_end,
        branch_filter: str | None = None,
    ) -> VatDeclaration:
        start, end = parse_period(period_start, period_end)
        subtotals: dict[TransactionKind, Decimal] = {}
        taxes: dict[TransactionKind, Decimal] = {}

        for document in (*invoices, *returns):
            if not isinstance(document, InvoiceDocument):
                continue
            tx_date = transaction_date(document)
            if tx_date is None or not in_range(tx_date, start, end):
                continue
            if not _matches_branch(document, branch_filter):
                continue
            subtotals[document.kind] = subtotals.get(document.kind, ZERO) + (to_decimal(document.totals.subtotal) or ZERO)
            taxes[document.kind] = taxes.get(document.kind, ZERO) + (to_decimal(document.totals.tax) or ZERO)

        def tax(kind: TransactionKind) -> Decimal:
            return taxes.get(kind, ZERO)

        def subtotal(kind: TransactionKind) -> Decimal:
            return subtotals.get(kind, ZERO)

        output_vat = tax(TransactionKind.SALES_INVOICE) - tax(TransactionKind.SALES_RETURN)
        input_vat = tax(TransactionKind.PURCHASE_INVOICE) - tax(TransactionKind.PURCHASE_RETURN)

        return VatDeclaration(
            period_start=start,
            period_end=end,
            branch_id=branch_filter,
            sales_subtotal=subtotal(TransactionKind.SALES_INVOICE),
            sales_tax=tax(TransactionKind.SALES_INVOICE),
            returns_subtotal=subtotal(TransactionKind.SALES_RETURN),
            returns_tax=tax(TransactionKind.SALES_RETURN),
            purchases_subtotal=subtotal(TransactionKind.PURCHASE_INVOICE),
            purchases_tax=tax(TransactionKind.PURCHASE_INVOICE),
            purchase_returns_subtotal=subtotal(TransactionKind.PURCHASE_RETURN),
            purchase_returns_tax=tax(TransactionKind.PURCHASE_RETURN),
            output_vat=output_vat,
            input_vat=input_vat,
            net_vat=output_vat - input_vat,
        )

    def declaration_for(
        self,
        transactions: Iterable[Transaction],
        period_start,
        period_end,
        branch_filter: str | None = None,
    ) -> VatDeclaration:
        """Split a mixed transaction list into invoices and returns, then declare."""
        invoices: list[InvoiceDocument] = []
        returns: list[InvoiceDocument] = []
        for transaction in transactions:
            if transaction.kind in (TransactionKind.SALES_INVOICE, TransactionKind.PURCHASE_INVOICE):
                invoices.append(transaction)
            elif transaction.kind in (TransactionKind.SALES_RETURN, TransactionKind.PURCHASE_RETURN):
                returns.append(transaction)
        return self.compute_vat_declaration(invoices, returns, period_start, period_end, branch_filter)

    def vat_statement(
        self,
        transactions: Iterable[Transaction],
        period_start,
        period_end,
        branch_filter: str | None = None,
    ) -> VatStatement:
        """
        Running VAT ledger. DEBIT rows are collected VAT, CREDIT rows are paid VAT.
        net_vat = opening_balance + total_collected - total_paid.
        """
        start, end = parse_period(period_start, period_end)
        transactions = list(transactions)

        opening = ZERO
        in_period: list[tuple[VatStatementRow, int]] = []
        for row, sequence in self._movements(transactions, branch_filter):
            if row.date < start:
                opening += row.tax if row.direction == Direction.DEBIT else -row.tax
            elif row.date <= end:
                in_period.append((row, sequence))
        in_period.sort(key=lambda pair: (pair[0].date, pair[1]))

        rows: list[VatStatementRow] = []
        running = opening
        total_collected = ZERO
        total_paid = ZERO
        for row, _ in in_period:
            if row.direction == Direction.DEBIT:
                total_collected += row.tax
                running += row.tax
            else:
                total_paid += row.tax
                running -= row.tax
            rows.append(VatStatementRow(
                date=row.date,
                transaction_id=row.transaction_id,
                kind=row.kind,
                amount=row.amount,
                tax=row.tax,
                direction=row.direction,
                balance=running,
            ))

        logger.debug("vat_statement_built", rows=len(rows), period_start=str(start), period_end=str(end))
        return VatStatement(
            period_start=start,
            period_end=end,
            branch_id=branch_filter,
            opening_balance=opening,
            rows=tuple(rows),
            total_collected=total_collected,
            total_paid=total_paid,
            net_vat=opening + total_collected - total_paid,
        )

    def vat_position(self, transactions: Iterable[Transaction], period_start, as_of) -> Decimal:
        """VAT owed to the tax authority from the movements dated in [period_start, as_of]."""
        start, end = parse_period(period_start, as_of)
        position = ZERO
        for row, _ in self._movements(transactions, None):
            if in_range(row.date, start, end):
                position += row.tax if row.direction == Direction.DEBIT else -row.tax
        return position

    def _movements(self, transactions: Iterable[Transaction], branch_filter: str | None):
        """Yield (row, sequence) per VAT-bearing transaction; row balances are unset."""
        for transaction in transactions:
            if not _matches_branch(transaction, branch_filter):
                continue
            tx_date = transaction_date(transaction)
            if tx_date is None:
                continue

            if isinstance(transaction, InvoiceDocument):
                tax = to_decimal(transaction.totals.tax) or ZERO
                if tax == ZERO:
                    continue
                direction = Direction.DEBIT if transaction.kind in COLLECTED_INVOICE_KINDS else Direction.CREDIT
                amount = to_decimal(transaction.totals.subtotal) or ZERO
            elif isinstance(transaction, CashVoucher):
                effect = _voucher_tax(transaction)
                if effect is None:
                    continue
                direction, tax = effect
                amount = to_decimal(transaction.amount) or ZERO
            else:
                continue

            yield VatStatementRow(
                date=tx_date,
                transaction_id=transaction.id,
                kind=transaction.kind,
                amount=amount,
                tax=tax,
                direction=direction,
                balance=ZERO,
            ), transaction.sequence
