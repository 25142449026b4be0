"""
SQLAlchemy models
"""
from finai.core.database import Base
from finai.models.analysis import AnalysisMode, AnalysisRecord  # noqa: F401
from finai.models.transaction import Transaction  # noqa: F401

__all__ = [
    "Base",
    "Transaction",
    "AnalysisRecord",
    "AnalysisMode",
]
