"""Application layer - Report DTOs."""

from stockledger.application.dto.report_dto import (
    AccountBalanceDTO,
    AccountStatementDTO,
    BalanceSheetDTO,
    DataQualityWarningDTO,
    IncomeStatementDTO,
    InventoryValuationDTO,
    VatDeclarationDTO,
    VatStatementDTO,
)
