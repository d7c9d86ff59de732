import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

from storepos.config import Config
from storepos.models.transaction import PaymentMethod, Transaction, TransactionLine
from storepos.services.report_service import ReportService
from storepos.utils.formatters import format_datetime


def make_transaction(transaction_id, timestamp, method, lines):
    items = tuple(
        TransactionLine(
            product_id=product_id, name=name, barcode=f"bc-{product_id}",
            category="Pantry", unit_price=Decimal(price), quantity=qty,
        )
        for product_id, name, price, qty in lines
    )
    subtotal = sum((line.line_total for line in items), Decimal(0))
    tax = subtotal * Decimal("0.08")
    return Transaction(
        transaction_id=transaction_id,
        idempotency_key=f"key-{transaction_id}",
        items=items,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        payment_method=method,
        cashier_id="c-1",
        customer_paid=subtotal + tax,
        change=Decimal(0),
        timestamp=timestamp,
    )


def store(db, transactions):
    async def _store():
        async with db.session() as session:
            for tx in transactions:
                await session.insert_transaction(tx.to_document())

    asyncio.run(_store())


def test_report_for_period(db):
    store(db, [
        make_transaction("t-1", datetime(2026, 3, 2, 10, tzinfo=timezone.utc), PaymentMethod.CASH,
                         [("a", "Bananas", "2.50", 4), ("b", "Milk", "3.00", 1)]),
        make_transaction("t-2", datetime(2026, 3, 3, 18, tzinfo=timezone.utc), PaymentMethod.CARD,
                         [("b", "Milk", "3.00", 2)]),
        # Outside the period
        make_transaction("t-3", datetime(2026, 3, 5, 9, tzinfo=timezone.utc), PaymentMethod.CARD,
                         [("a", "Bananas", "2.50", 10)]),
    ])
    reports = ReportService(db, timezone="UTC")

    report = asyncio.run(reports.generate_report(date(2026, 3, 2), date(2026, 3, 3)))

    assert report["period"] == {"start": "2026-03-02", "end": "2026-03-03"}
    assert report["total_transactions"] == 2
    assert report["items_sold"] == 7
    assert report["gross_sales"] == Decimal("20.52")
    assert report["tax_collected"] == Decimal("1.52")
    assert report["by_payment_method"] == {"card": Decimal("6.48"), "cash": Decimal("14.04")}
    assert [p["name"] for p in report["top_products"]] == ["Bananas", "Milk"]
    assert report["top_products"][1]["total_quantity"] == 3
    assert report["top_products"][1]["total_revenue"] == Decimal("9.00")


def test_report_uses_local_day_boundaries(db):
    # 23:30 UTC on March 2 is already March 3 in Tehran
    store(db, [
        make_transaction("t-1", datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc), PaymentMethod.CARD,
                         [("a", "Bananas", "2.50", 1)]),
    ])
    reports = ReportService(db, timezone="Asia/Tehran")

    march_2 = asyncio.run(reports.generate_report(date(2026, 3, 2), date(2026, 3, 2)))
    march_3 = asyncio.run(reports.generate_report(date(2026, 3, 3), date(2026, 3, 3)))

    assert march_2["total_transactions"] == 0
    assert march_3["total_transactions"] == 1


def test_empty_report(db):
    report = asyncio.run(ReportService(db, timezone="UTC").get_daily_report())

    assert report["total_transactions"] == 0
    assert report["gross_sales"] == Decimal("0.00")
    assert report["top_products"] == []


def test_format_datetime_converts_naive_utc(monkeypatch):
    monkeypatch.setattr(Config, "TIMEZONE", "Asia/Tehran")
    assert format_datetime(datetime(2026, 3, 2, 23, 30)) == "2026-03-03 03:00:00"
