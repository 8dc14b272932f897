#!/usr/bin/env python3
"""
Database Seeding Script - StockLedger demo ledger
Seeds a small, reconciled trading company for manual testing of the reports.
"""

from datetime import date
from decimal import Decimal

ACCOUNTS = [
    # id, code, name, class, opening balance
    ("SF-001", "SF-001", "Main safe", "SAFE", Decimal("100000")),
    ("BK-001", "BK-001", "Operating bank", "BANK", Decimal("0")),
    ("C001", "C001", "Nile Trading", "CUSTOMER", Decimal("5000")),
    ("S001", "S001", "Delta Supplies", "SUPPLIER", Decimal("0")),
    ("CA-002", "CA-002", "Partner current account", "PARTNER_CURRENT_ACCOUNT", Decimal("0")),
]

ITEMS = [
    # code, name, purchase price, opening stock, reorder level
    ("101", "Laptop 14in", Decimal("4200"), Decimal("50"), Decimal("10")),
]

TRANSACTIONS = [
    {
        "reference": "PI-1", "kind": "PURCHASE_INVOICE", "transaction_date": date(2025, 2, 1),
        "party_id": "S001", "payment_method": "CREDIT",
        "subtotal": Decimal("42000"), "tax": Decimal("6300"), "net": Decimal("48300"),
        "lines": [("101", Decimal("10"), Decimal("4200"))],
    },
    {
        "reference": "SI-1", "kind": "SALES_INVOICE", "transaction_date": date(2025, 3, 1),
        "party_id": "C001", "payment_method": "CREDIT",
        "subtotal": Decimal("4800"), "tax": Decimal("720"), "net": Decimal("5520"),
        "lines": [("101", Decimal("1"), Decimal("4800"))],
    },
    {
        "reference": "RV-1", "kind": "RECEIPT_VOUCHER", "transaction_date": date(2025, 3, 5),
        "entity_type": "customer", "entity_id": "C001", "amount": Decimal("5000"),
        "settlement_type": "SAFE", "settlement_id": "SF-001",
    },
    {
        "reference": "PV-1", "kind": "PAYMENT_VOUCHER", "transaction_date": date(2025, 4, 1),
        "entity_type": "supplier", "entity_id": "S001", "amount": Decimal("8000"),
        "settlement_type": "SAFE", "settlement_id": "SF-001",
    },
]

CAPITAL = Decimal("315000")


def main():
    """Main function."""
    print("=" * 60)
    print("Database Seeding - StockLedger demo ledger")
    print("=" * 60)

    from stockledger.infrastructure.database import SessionLocal, init_db

    init_db()

    from stockledger.domain.statements import StatementComposer
    from stockledger.infrastructure.database.models import (
        Account,
        Item,
        LedgerTransaction,
        TransactionLine,
    )
    from stockledger.infrastructure.repository import SnapshotRepository

    db = SessionLocal()

    try:
        print(f"\n📦 Seeding {len(ACCOUNTS)} accounts...")
        for account_id, code, name, account_class, opening in ACCOUNTS:
            if db.get(Account, account_id) is None:
                db.add(Account(
                    id=account_id,
                    code=code,
                    name=name,
                    account_class=account_class,
                    opening_balance=opening,
                ))
        db.commit()
        print(f"✓ Seeded {len(ACCOUNTS)} accounts")

        print(f"\n📦 Seeding {len(ITEMS)} items...")
        for code, name, price, opening_stock, reorder_level in ITEMS:
            if db.get(Item, code) is None:
                db.add(Item(
                    code=code,
                    name=name,
                    purchase_price=price,
                    opening_stock=opening_stock,
                    reorder_level=reorder_level,
                ))
        db.commit()
        print(f"✓ Seeded {len(ITEMS)} items")

        print(f"\n📦 Seeding {len(TRANSACTIONS)} transactions...")
        for data in TRANSACTIONS:
            data = dict(data)
            lines = data.pop("lines", [])
            exists = db.query(LedgerTransaction).filter(LedgerTransaction.reference == data["reference"]).first()
            if exists:
                continue
            transaction = LedgerTransaction(**data)
            db.add(transaction)
            db.flush()
            for item_code, quantity, price in lines:
                db.add(TransactionLine(
                    transaction_id=transaction.id,
                    item_code=item_code,
                    quantity=quantity,
                    price=price,
                ))
        db.commit()
        print(f"✓ Seeded {len(TRANSACTIONS)} transactions")

        print("\n=== Validating Seed Data ===")

        snapshot = SnapshotRepository(db).load()
        sheet = StatementComposer().compose_balance_sheet(
            snapshot.accounts,
            snapshot.items,
            snapshot.transactions,
            date(2025, 12, 31),
            capital=CAPITAL,
        )

        if sheet.reconciled:
            print(f"✓ Balance sheet reconciled: Assets={sheet.assets}, L+E={sheet.liabilities_and_equity}")
        else:
            print(f"⚠️ Balance sheet not reconciled: difference={sheet.difference}")
        print(f"  Set STOCKLEDGER_CAPITAL={CAPITAL} for the API to report the same figures.")

        print("\n" + "=" * 60)
        print("Seeding completed successfully!")
        print("=" * 60)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
