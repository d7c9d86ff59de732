# storepos/services/report_service.py
from collections import defaultdict
from typing import Dict, Any, List
from datetime import datetime, date, time, timedelta
import pytz
from decimal import Decimal
from ..config import Config
from ..models.transaction import Transaction
from .money import round_money
from .transaction_service import TransactionService

class ReportService:
    """Sales summaries built from the transaction history"""
    
    def __init__(self, db, timezone: str = None):
        self.transactions = TransactionService(db)
        self.tz = pytz.timezone(timezone or Config.TIMEZONE)

    async def get_daily_report(self) -> Dict[str, Any]:
        today = datetime.now(self.tz).date()
        return await self.generate_report(today, today)

    async def get_weekly_report(self) -> Dict[str, Any]:
        today = datetime.now(self.tz).date()
        start_date = today - timedelta(days=7)
        return await self.generate_report(start_date, today)

    async def get_monthly_report(self) -> Dict[str, Any]:
        today = datetime.now(self.tz).date()
        start_date = today.replace(day=1)
        return await self.generate_report(start_date, today)

    async def generate_report(self, start_date: date, end_date: date) -> Dict[str, Any]:
        """Summarize sales between two local dates, both inclusive"""
        start = self.tz.localize(datetime.combine(start_date, time.min))
        end = self.tz.localize(datetime.combine(end_date + timedelta(days=1), time.min))

        history = await self.transactions.list_transactions(since=start)
        sales = [tx for tx in history if tx.timestamp < end]

        return {
            "period": {
                "start": start_date.strftime("%Y-%m-%d"),
                "end": end_date.strftime("%Y-%m-%d")
            },
            "total_transactions": len(sales),
            "items_sold": sum(tx.item_count for tx in sales),
            "gross_sales": round_money(sum((tx.total for tx in sales), Decimal(0))),
            "tax_collected": round_money(sum((tx.tax for tx in sales), Decimal(0))),
            "by_payment_method": self._by_payment_method(sales),
            "top_products": self._top_products(sales),
        }

    @staticmethod
    def _by_payment_method(sales: List[Transaction]) -> Dict[str, Decimal]:
        totals = defaultdict(Decimal)
        for tx in sales:
            totals[tx.payment_method.value] += tx.total
        return {method: round_money(amount) for method, amount in sorted(totals.items())}

    @staticmethod
    def _top_products(sales: List[Transaction], limit: int = 5) -> List[Dict[str, Any]]:
        stats: Dict[str, Dict[str, Any]] = {}
        for tx in sales:
            for line in tx.items:
                entry = stats.setdefault(line.product_id, {
                    "product_id": line.product_id,
                    "name": line.name,
                    "total_quantity": 0,
                    "total_revenue": Decimal(0),
                })
                entry["total_quantity"] += line.quantity
                entry["total_revenue"] += line.line_total

        ranked = sorted(stats.values(), key=lambda e: (-e["total_quantity"], e["name"]))
        for entry in ranked:
            entry["total_revenue"] = round_money(entry["total_revenue"])
        return ranked[:limit]
