"""
Transaction model: one ledger entry
"""
from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String

from finai.core.database import Base


class Transaction(Base):
    """Ledger entry; expenses carry a negative amount"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, default=date.today, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=False, default="Other")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
            "amount": float(self.amount) if self.amount is not None else 0.0,
            "category": self.category,
        }

    def __repr__(self):
        return f"<Transaction(id={self.id}, date={self.date}, amount={self.amount}, category={self.category})>"
