"""
Transaction Service for ledger CRUD and dashboard aggregates
"""
from collections import OrderedDict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from finai.core.logging_config import LoggingConfig
from finai.models.transaction import Transaction

logger = LoggingConfig.get_logger(__name__)

TREND_PERIODS = ("daily", "weekly", "monthly")
MAX_TREND_POINTS = 10

DEMO_TRANSACTIONS = [
    {"date": date(2026, 1, 1), "description": "Netflix", "amount": Decimal("-15.99"), "category": "Suscripción"},
    {"date": date(2026, 1, 1), "description": "Spotify Premium", "amount": Decimal("-9.99"), "category": "Suscripción"},
    {"date": date(2025, 12, 30), "description": "Amazon Prime", "amount": Decimal("-14.99"), "category": "Suscripción"},
    {"date": date(2025, 12, 29), "description": "Supermercado", "amount": Decimal("-85.50"), "category": "Comida"},
    {"date": date(2025, 12, 28), "description": "Gasolina", "amount": Decimal("-45.00"), "category": "Transporte"},
    {"date": date(2025, 12, 27), "description": "Disney+", "amount": Decimal("-10.99"), "category": "Suscripción"},
    {"date": date(2025, 12, 26), "description": "Restaurante", "amount": Decimal("-67.80"), "category": "Comida"},
    {"date": date(2025, 12, 25), "description": "Apple Music", "amount": Decimal("-10.99"), "category": "Suscripción"},
    {"date": date(2025, 12, 24), "description": "Uber", "amount": Decimal("-23.50"), "category": "Transporte"},
    {"date": date(2025, 12, 23), "description": "HBO Max", "amount": Decimal("-9.99"), "category": "Suscripción"},
]


def _round(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _spent(transactions) -> Decimal:
    return sum((abs(Decimal(t.amount)) for t in transactions), Decimal("0"))


def _period_key(day: date, period: str) -> str:
    if period == "daily":
        return day.isoformat()
    if period == "weekly":
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return f"{day.year}-{day.month:02d}"


class TransactionService:
    """Service for managing ledger transactions"""

    def __init__(self, db: Session):
        self.db = db

    def list_transactions(self) -> List[Transaction]:
        """All transactions, newest date first"""
        return (
            self.db.query(Transaction)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .all()
        )

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def create_transaction(
        self,
        description: str,
        amount: Decimal,
        category: str = "Other",
        transaction_date: Optional[date] = None
    ) -> Transaction:
        """Create a new transaction

        Args:
            description: Free-text label
            amount: Signed amount (expenses negative)
            category: Category name
            transaction_date: Ledger date, today when omitted

        Returns:
            Created Transaction
        """
        try:
            transaction = Transaction(
                description=description,
                amount=amount,
                category=category,
                date=transaction_date or date.today(),
            )
            self.db.add(transaction)
            self.db.commit()
            self.db.refresh(transaction)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating transaction: {e}", exc_info=True)
            raise

        logger.info(
            f"Created transaction: {description}",
            extra={"transaction_id": transaction.id, "category": category}
        )
        return transaction

    def update_transaction(self, transaction_id: int, **changes: Any) -> Optional[Transaction]:
        """Apply the given non-None fields; None when the transaction does not exist"""
        transaction = self.get_transaction(transaction_id)
        if not transaction:
            return None

        field_map = {"transaction_date": "date"}
        for key, value in changes.items():
            if value is None:
                continue
            setattr(transaction, field_map.get(key, key), value)

        try:
            self.db.commit()
            self.db.refresh(transaction)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating transaction {transaction_id}: {e}", exc_info=True)
            raise

        logger.info("Updated transaction", extra={"transaction_id": transaction_id})
        return transaction

    def delete_transaction(self, transaction_id: int) -> bool:
        """Delete exactly one transaction; False when it does not exist"""
        transaction = self.get_transaction(transaction_id)
        if not transaction:
            return False

        self.db.delete(transaction)
        self.db.commit()
        logger.info("Deleted transaction", extra={"transaction_id": transaction_id})
        return True

    def seed_demo_transactions(self) -> int:
        """Insert the sample ledger when the table is empty"""
        if self.db.query(Transaction).count():
            return 0

        self.db.add_all(Transaction(**row) for row in DEMO_TRANSACTIONS)
        self.db.commit()
        logger.info(f"Seeded {len(DEMO_TRANSACTIONS)} demo transactions")
        return len(DEMO_TRANSACTIONS)

    def summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Dashboard widgets: today, last 7 days, per-category totals, daily average"""
        today = today or date.today()
        week_start = today - timedelta(days=6)
        transactions = self.list_transactions()

        today_total = _spent(t for t in transactions if t.date == today)
        week_total = _spent(t for t in transactions if week_start <= t.date <= today)
        total = _spent(transactions)

        by_category: Dict[str, Decimal] = {}
        for t in transactions:
            by_category[t.category] = by_category.get(t.category, Decimal("0")) + abs(Decimal(t.amount))
        ranked = sorted(by_category.items(), key=lambda item: item[1], reverse=True)

        active_days = len({t.date for t in transactions})
        average_daily = total / active_days if active_days else Decimal("0")

        return {
            "todayTotal": _round(today_total),
            "weekTotal": _round(week_total),
            "totalSpent": _round(total),
            "transactionCount": len(transactions),
            "categoryTotals": {name: _round(value) for name, value in ranked},
            "topCategories": [{"category": name, "total": _round(value)} for name, value in ranked[:3]],
            "averageDaily": _round(average_daily),
            "isAboveAverage": today_total > average_daily,
        }

    def trends(self, period: str = "weekly") -> Dict[str, Any]:
        """Spend grouped by period plus a month-over-month comparison

        Raises:
            ValueError: unknown period
        """
        if period not in TREND_PERIODS:
            raise ValueError(f"Unknown period '{period}', expected one of {', '.join(TREND_PERIODS)}")

        transactions = sorted(self.list_transactions(), key=lambda t: (t.date, t.id))

        grouped: "OrderedDict[str, Decimal]" = OrderedDict()
        monthly: "OrderedDict[str, List[Transaction]]" = OrderedDict()
        for t in transactions:
            key = _period_key(t.date, period)
            grouped[key] = grouped.get(key, Decimal("0")) + abs(Decimal(t.amount))
            monthly.setdefault(_period_key(t.date, "monthly"), []).append(t)

        points = [{"period": key, "total": _round(value)} for key, value in grouped.items()]

        return {
            "period": period,
            "points": points[-MAX_TREND_POINTS:],
            "comparison": self._compare_last_months(monthly),
        }

    @staticmethod
    def _compare_last_months(monthly: "OrderedDict[str, List[Transaction]]") -> Optional[Dict[str, Any]]:
        if len(monthly) < 2:
            return None

        (previous_month, previous), (current_month, current) = list(monthly.items())[-2:]
        previous_total = _spent(previous)
        current_total = _spent(current)
        previous_avg = previous_total / len(previous)
        current_avg = current_total / len(current)

        def _change(new: Decimal, old: Decimal) -> Optional[float]:
            if not old:
                return None
            return _round((new - old) / old * 100)

        change = _change(current_total, previous_total)
        return {
            "currentMonth": current_month,
            "previousMonth": previous_month,
            "currentTotal": _round(current_total),
            "previousTotal": _round(previous_total),
            "change": change,
            "avgChange": _change(current_avg, previous_avg),
            "isIncreasing": current_total > previous_total,
        }
