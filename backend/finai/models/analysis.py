"""
Analysis history model
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String

from finai.core.database import Base


class AnalysisMode:
    """Where an analysis came from"""
    DEMO = "demo"
    GROQ = "groq"


class AnalysisRecord(Base):
    """Persisted result of one analyze call"""
    __tablename__ = "analyses"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Summary figures (coerced from the provider's string numbers)
    total_spent = Column(Float, nullable=False, default=0.0)
    subscriptions = Column(Integer, nullable=False, default=0)
    subscription_cost = Column(Float, nullable=False, default=0.0)
    next_month = Column(Float, nullable=False, default=0.0)
    savings_potential = Column(Float, nullable=False, default=0.0)
    insights = Column(JSON, nullable=False, default=list)
    duplicates = Column(JSON, nullable=False, default=list)

    # Provenance
    transaction_count = Column(Integer, nullable=False, default=0)
    mode = Column(String(20), nullable=False, default=AnalysisMode.DEMO)
    model = Column(String(100), nullable=False)
    tokens_used = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "totalSpent": self.total_spent,
            "subscriptions": self.subscriptions,
            "subscriptionCost": self.subscription_cost,
            "predictions": {
                "nextMonth": self.next_month,
                "savings": self.savings_potential,
            },
            "savingsPotential": self.savings_potential,
            "insights": list(self.insights or []),
            "duplicates": list(self.duplicates or []),
            "transactionCount": self.transaction_count,
            "mode": self.mode,
            "model": self.model,
            "tokensUsed": self.tokens_used,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AnalysisRecord(id={self.id}, mode={self.mode}, total_spent={self.total_spent})>"
