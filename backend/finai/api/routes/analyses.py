"""
API routes for AI analysis and analysis history
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from finai.api.responses import error_response
from finai.core.database import get_db
from finai.core.groq_client import GroqError
from finai.core.logging_config import LoggingConfig
from finai.services.analysis_service import (AnalysisError, AnalysisService,
                                             EmptyTransactionsError)

router = APIRouter(prefix="/api", tags=["analysis"])
logger = LoggingConfig.get_logger(__name__)


class TransactionPayload(BaseModel):
    """Transaction as sent by the dashboard"""
    id: Optional[int] = None
    date: Optional[str] = None
    description: str = Field(..., min_length=1)
    amount: Decimal
    category: str = "Other"


class AnalyzeRequest(BaseModel):
    """Request model for the analyze endpoint"""
    transactions: List[TransactionPayload] = Field(default_factory=list)


@router.post("/analyze")
async def analyze_transactions(
    request: AnalyzeRequest,
    db: Session = Depends(get_db)
):
    """
    Analyze a batch of transactions with the LLM (or the demo simulation)

    Returns:
        dict: success, analysis, tokensUsed, mode, model, analysisId
    """
    service = AnalysisService(db)

    try:
        outcome = await service.analyze(request.transactions)
    except EmptyTransactionsError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, e.message)
    except AnalysisError as e:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message, details=e.details)
    except GroqError as e:
        logger.error(f"Provider error during analysis: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error analyzing transactions",
            details=str(e)
        )
    except Exception as e:
        logger.error(f"Error analyzing transactions: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error analyzing transactions",
            details=str(e)
        )

    analysis_id = None
    if service.settings.save_analyses:
        try:
            analysis_id = service.save_analysis(outcome, len(request.transactions)).id
        except Exception as e:
            # A failed history write does not fail the analysis
            logger.warning(f"Analysis not saved to history: {e}")

    return {
        "success": True,
        "analysis": outcome.analysis,
        "tokensUsed": outcome.tokens_used,
        "mode": outcome.mode,
        "model": outcome.model,
        "analysisId": analysis_id,
    }


@router.get("/analyses")
async def list_analyses(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Most recent saved analyses, newest first"""
    analyses = AnalysisService(db).list_recent(limit)
    return {
        "success": True,
        "analyses": [a.to_dict() for a in analyses],
    }


@router.get("/analyses/{analysis_id}")
async def get_analysis(
    analysis_id: int,
    db: Session = Depends(get_db)
):
    """Get a saved analysis by id"""
    record = AnalysisService(db).get_analysis(analysis_id)
    if not record:
        return error_response(status.HTTP_404_NOT_FOUND, f"Analysis {analysis_id} not found")
    return {"success": True, "analysis": record.to_dict()}


@router.delete("/analyses/{analysis_id}")
async def delete_analysis(
    analysis_id: int,
    db: Session = Depends(get_db)
):
    """Delete a saved analysis"""
    if not AnalysisService(db).delete_analysis(analysis_id):
        return error_response(status.HTTP_404_NOT_FOUND, f"Analysis {analysis_id} not found")
    return {"success": True, "id": analysis_id}
