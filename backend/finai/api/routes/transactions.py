"""
API routes for transactions
"""
import datetime as dt
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from finai.api.responses import error_response
from finai.core.database import get_db
from finai.core.logging_config import LoggingConfig
from finai.services.transaction_service import TREND_PERIODS, TransactionService

router = APIRouter(prefix="/api/transactions", tags=["transactions"])
logger = LoggingConfig.get_logger(__name__)


class CreateTransactionRequest(BaseModel):
    """Request model for creating a transaction"""
    description: str = Field(..., min_length=1, max_length=255, description="Description")
    amount: Decimal = Field(..., max_digits=12, decimal_places=2, description="Signed amount, expenses negative")
    category: str = Field(default="Other", min_length=1, max_length=100, description="Category")
    date: Optional[dt.date] = Field(default=None, description="Ledger date (YYYY-MM-DD), today when omitted")


class UpdateTransactionRequest(BaseModel):
    """Request model for updating a transaction"""
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date: Optional[dt.date] = None


@router.get("")
async def list_transactions(db: Session = Depends(get_db)):
    """List transactions, newest date first"""
    transactions = TransactionService(db).list_transactions()
    return {
        "success": True,
        "transactions": [t.to_dict() for t in transactions],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: CreateTransactionRequest,
    db: Session = Depends(get_db)
):
    """Create a transaction"""
    transaction = TransactionService(db).create_transaction(
        description=request.description.strip(),
        amount=request.amount,
        category=request.category.strip(),
        transaction_date=request.date,
    )
    return {"success": True, "transaction": transaction.to_dict()}


@router.get("/summary")
async def transactions_summary(db: Session = Depends(get_db)):
    """Today / week / per-category totals"""
    return {"success": True, "summary": TransactionService(db).summary()}


@router.get("/trends")
async def transactions_trends(
    period: str = Query(default="weekly", description=f"One of: {', '.join(TREND_PERIODS)}"),
    db: Session = Depends(get_db)
):
    """Spend grouped by day, ISO week or month"""
    try:
        trends = TransactionService(db).trends(period)
    except ValueError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    return {"success": True, "trends": trends}


@router.put("/{transaction_id}")
async def update_transaction(
    transaction_id: int,
    request: UpdateTransactionRequest,
    db: Session = Depends(get_db)
):
    """Update a transaction"""
    transaction = TransactionService(db).update_transaction(
        transaction_id,
        description=request.description,
        amount=request.amount,
        category=request.category,
        transaction_date=request.date,
    )
    if not transaction:
        return error_response(status.HTTP_404_NOT_FOUND, f"Transaction {transaction_id} not found")

    return {"success": True, "transaction": transaction.to_dict()}


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db)
):
    """Delete a transaction by id"""
    if not TransactionService(db).delete_transaction(transaction_id):
        return error_response(status.HTTP_404_NOT_FOUND, f"Transaction {transaction_id} not found")

    return {"success": True, "id": transaction_id}
