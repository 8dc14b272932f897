"""Infrastructure layer."""

from stockledger.infrastructure.database import SessionLocal, get_db, init_db
from stockledger.infrastructure.database.models import (
    Account,
    Item,
    LedgerTransaction,
    TransactionLine,
)
from stockledger.infrastructure.repository import SnapshotRepository
