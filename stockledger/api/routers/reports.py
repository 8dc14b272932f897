"""
API Routers - Point-in-time ledger reports.
Every request loads one read-only snapshot and evaluates it sequentially.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from stockledger.application.dto.report_dto import (
    AccountBalanceDTO,
    AccountStatementDTO,
    BalanceSheetDTO,
    IncomeStatementDTO,
    InventoryValuationDTO,
    VatDeclarationDTO,
    VatStatementDTO,
)
from stockledger.core.config import Settings, get_settings
from stockledger.domain.entities import Account, LedgerSnapshot
from stockledger.domain.services import BalanceService, InventoryValuationService
from stockledger.domain.statements import StatementComposer
from stockledger.domain.tax import VatService
from stockledger.infrastructure.database import get_db
from stockledger.infrastructure.repository import SnapshotRepository

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


def get_snapshot(db: Session = Depends(get_db)) -> LedgerSnapshot:
    """Dependency - Load the ledger snapshot for one request."""
    return SnapshotRepository(db).load()


def _get_account(snapshot: LedgerSnapshot, account_id: str) -> Account:
    account = snapshot.get_account(account_id)
    if account is None:
        raise HTTPException(status_code=404, detail=f"Account {account_id} not found")
    return account


@router.get("/balance-sheet", response_model=BalanceSheetDTO)
def get_balance_sheet(
    as_of: str = Query(..., description="Reporting date (YYYY-MM-DD)"),
    period_start: str | None = Query(None, description="Start of the profit period; defaults to fiscal year start"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
    settings: Settings = Depends(get_settings),
):
    """
    Balance sheet as of a date.

    Reports `reconciled=false` with the difference instead of failing when
    assets and liabilities + equity disagree.
    """
    sheet = StatementComposer().compose_balance_sheet(
        snapshot.accounts,
        snapshot.items,
        snapshot.transactions,
        as_of,
        capital=settings.capital,
        period_start=period_start,
        tolerance=settings.reconciliation_tolerance,
        fiscal_year_start_month=settings.fiscal_year_start_month,
    )
    return BalanceSheetDTO.model_validate(sheet)


@router.get("/income-statement", response_model=IncomeStatementDTO)
def get_income_statement(
    from_date: str = Query(..., description="Period start (YYYY-MM-DD)"),
    to_date: str = Query(..., description="Period end (YYYY-MM-DD)"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
):
    statement = StatementComposer().compose_income_statement(
        snapshot.transactions, snapshot.items, from_date, to_date,
    )
    return IncomeStatementDTO.model_validate(statement)


@router.get("/vat-declaration", response_model=VatDeclarationDTO)
def get_vat_declaration(
    from_date: str = Query(..., description="Period start (YYYY-MM-DD)"),
    to_date: str = Query(..., description="Period end (YYYY-MM-DD)"),
    branch_id: str | None = Query(None, description="Restrict to one branch"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
):
    declaration = VatService().declaration_for(snapshot.transactions, from_date, to_date, branch_id)
    return VatDeclarationDTO.model_validate(declaration)


@router.get("/vat-statement", response_model=VatStatementDTO)
def get_vat_statement(
    from_date: str = Query(..., description="Period start (YYYY-MM-DD)"),
    to_date: str = Query(..., description="Period end (YYYY-MM-DD)"),
    branch_id: str | None = Query(None, description="Restrict to one branch"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
):
    statement = VatService().vat_statement(snapshot.transactions, from_date, to_date, branch_id)
    return VatStatementDTO.model_validate(statement)


@router.get("/inventory-valuation", response_model=InventoryValuationDTO)
def get_inventory_valuation(
    as_of: str = Query(..., description="Valuation date (YYYY-MM-DD)"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
):
    valuation = InventoryValuationService().value_inventory(snapshot.items, snapshot.transactions, as_of)
    return InventoryValuationDTO.model_validate(valuation)


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceDTO)
def get_account_balance(
    account_id: str = Path(..., description="Account id"),
    as_of: str = Query(..., description="Balance date (YYYY-MM-DD)"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
):
    account = _get_account(snapshot, account_id)
    balance = BalanceService().compute_balance(account, snapshot.transactions, as_of)
    return AccountBalanceDTO.model_validate(balance)


@router.get("/accounts/{account_id}/statement", response_model=AccountStatementDTO)
def get_account_statement(
    account_id: str = Path(..., description="Account id"),
    from_date: str = Query(..., description="Period start (YYYY-MM-DD)"),
    to_date: str = Query(..., description="Period end (YYYY-MM-DD)"),
    snapshot: LedgerSnapshot = Depends(get_snapshot),
):
    account = _get_account(snapshot, account_id)
    statement = BalanceService().account_statement(account, snapshot.transactions, from_date, to_date)
    return AccountStatementDTO.model_validate(statement)
