"""Domain layer - Pure Python ledger reconstruction and statement logic."""

from stockledger.domain.classifier import POSTING_RULES, TransactionClassifier
from stockledger.domain.entities import (
    Account,
    InternalTransfer,
    Item,
    LedgerSnapshot,
    PaymentVoucher,
    PurchaseInvoice,
    PurchaseReturn,
    ReceiptVoucher,
    SalesInvoice,
    SalesReturn,
    StoreIssue,
    StoreReceipt,
    StoreTransfer,
    Transaction,
)
from stockledger.domain.exceptions import ValidationError
from stockledger.domain.services import (
    AccountLedgerIndex,
    BalanceService,
    InventoryValuationService,
    StockService,
)
from stockledger.domain.statements import StatementComposer
from stockledger.domain.tax import VatService
from stockledger.domain.value_objects import (
    AccountBalance,
    AccountClass,
    BalanceSheet,
    DataQualityWarning,
    IncomeStatement,
    InventorySnapshot,
    TransactionKind,
    VatDeclaration,
    WarningCode,
)
