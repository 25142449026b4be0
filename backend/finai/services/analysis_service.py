"""
Analysis Service: prompt construction, provider call or demo simulation, response parsing
"""
import asyncio
import json
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from finai.core.config import Settings, get_settings
from finai.core.groq_client import GroqClient, get_groq_client
from finai.core.logging_config import LoggingConfig
from finai.core.metrics import analyses_total
from finai.models.analysis import AnalysisMode, AnalysisRecord

logger = LoggingConfig.get_logger(__name__)

SIMULATION_MODEL = "simulation"

SYSTEM_PROMPT = (
    "You are an expert financial advisor. "
    "You always answer with valid JSON, without markdown or any extra text."
)

PROMPT_TEMPLATE = """
You are an expert financial advisor. Analyze these transactions and provide:

TRANSACTIONS:
{transactions}

INSTRUCTIONS:
1. Identify spending patterns
2. Detect duplicated or unnecessary subscriptions
3. Calculate the total amount spent
4. Suggest 4 actionable insights (at most 100 characters each)
5. Identify areas where money can be saved

RESPONSE FORMAT (strict JSON):
{{
  "totalSpent": "number as string",
  "subscriptions": number of subscriptions found,
  "subscriptionCost": "total subscription cost as string",
  "predictions": {{
    "nextMonth": "predicted spending for next month",
    "savings": "estimated potential savings"
  }},
  "insights": [
    "insight 1",
    "insight 2",
    "insight 3",
    "insight 4"
  ],
  "duplicates": [
    {{
      "name": "Name of the duplicated service group",
      "count": number of services,
      "saving": potential saving as a number
    }}
  ]
}}

REPLY WITH THE JSON ONLY, WITHOUT ANY ADDITIONAL TEXT.
"""

_FENCE_PATTERN = re.compile(r"```json\n?|```\n?")
_CENTS = Decimal("0.01")


class AnalysisError(Exception):
    """Base error of the analysis pipeline"""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class EmptyTransactionsError(AnalysisError):
    """Nothing to analyze"""

    def __init__(self):
        super().__init__("No transactions were sent for analysis")


class EmptyProviderResponseError(AnalysisError):
    """Provider answered without any content"""

    def __init__(self):
        super().__init__("The AI did not generate a response", details="Empty response from provider")


class AnalysisParseError(AnalysisError):
    """Provider text could not be parsed as a JSON object"""

    def __init__(self, raw_response: str, reason: str = ""):
        super().__init__("Error processing the AI response", details=raw_response)
        self.raw_response = raw_response
        self.reason = reason


@dataclass
class AnalysisOutcome:
    """Parsed analysis plus provenance"""
    analysis: Dict[str, Any]
    tokens_used: int
    mode: str
    model: str


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(amount: Any) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def _format_amount(amount: Any) -> str:
    """Render an amount the way it reads in a ledger (-15.99, 120, 9.5)"""
    return format(_to_decimal(amount).normalize(), "f")


def to_number(value: Any) -> float:
    """Lenient numeric coercion for provider output ("$1,234.50" -> 1234.5)"""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        try:
            return float(Decimal(cleaned)) if cleaned else 0.0
        except InvalidOperation:
            return 0.0
    return 0.0


def build_prompt(transactions: Iterable[Any]) -> str:
    """Fill the analysis template with one line per transaction"""
    lines = "\n".join(
        f"- {t.description}: ${_format_amount(t.amount)} ({t.category})"
        for t in transactions
    )
    return PROMPT_TEMPLATE.format(transactions=lines)


def is_subscription(transaction: Any, subscription_categories: Sequence[str]) -> bool:
    category = (transaction.category or "").strip().lower()
    return category in {c.lower() for c in subscription_categories}


def simulate_analysis(
    transactions: Sequence[Any],
    subscription_categories: Sequence[str]
) -> Dict[str, Any]:
    """
    Fabricate an analysis locally (demo mode)

    totalSpent and subscriptionCost are sums of absolute amounts; predictions
    project a 5% increase and a 40% saving on subscriptions.
    """
    subscriptions = [t for t in transactions if is_subscription(t, subscription_categories)]
    total_spent = _money(sum((abs(_to_decimal(t.amount)) for t in transactions), Decimal("0")))
    subscription_cost = _money(sum((abs(_to_decimal(t.amount)) for t in subscriptions), Decimal("0")))

    next_month = _money(total_spent * Decimal("1.05"))
    savings = _money(subscription_cost * Decimal("0.4"))
    if total_spent:
        savings_percent = (savings / total_spent * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    else:
        savings_percent = Decimal("0")

    count = len(subscriptions)
    return {
        "totalSpent": str(total_spent),
        "subscriptions": count,
        "subscriptionCost": str(subscription_cost),
        "predictions": {
            "nextMonth": str(next_month),
            "savings": str(savings),
        },
        "insights": [
            f"Detected {count} active subscriptions costing ${subscription_cost}/month",
            f"You could save {savings_percent}% by cancelling services you don't use",
            f"Your projected monthly spending is ${next_month} if you keep this pace",
            "Review duplicated streaming and music subscriptions",
        ],
        "duplicates": [
            {
                "name": "Streaming services" if count > 2 else "Subscriptions",
                "count": count,
                "saving": float(savings),
            }
        ],
    }


def clean_response(text: str) -> str:
    """Strip markdown code-fence markers and surrounding whitespace"""
    return _FENCE_PATTERN.sub("", text).strip()


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant {name}")


def parse_analysis(text: str) -> Dict[str, Any]:
    """Parse provider text into an analysis object

    NaN, Infinity and -Infinity are rejected as in strict JSON.

    Raises:
        AnalysisParseError: text is not JSON or not a JSON object
    """
    cleaned = clean_response(text)
    try:
        parsed = json.loads(cleaned, parse_constant=_reject_constant)
    except ValueError as e:
        raise AnalysisParseError(text, reason=str(e)) from e

    if not isinstance(parsed, dict):
        raise AnalysisParseError(text, reason=f"expected a JSON object, got {type(parsed).__name__}")

    return parsed


class AnalysisService:
    """Service that turns a batch of transactions into an analysis and keeps its history"""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        client: Optional[GroqClient] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> GroqClient:
        if self._client is None:
            self._client = get_groq_client()
        return self._client

    @property
    def mode(self) -> str:
        return AnalysisMode.DEMO if self.settings.is_demo_mode else AnalysisMode.GROQ

    @property
    def model_name(self) -> str:
        return SIMULATION_MODEL if self.settings.is_demo_mode else self.settings.groq_model

    async def analyze(self, transactions: Sequence[Any]) -> AnalysisOutcome:
        """Run the pipeline once

        Args:
            transactions: objects exposing description, amount and category

        Returns:
            AnalysisOutcome

        Raises:
            EmptyTransactionsError, EmptyProviderResponseError, AnalysisParseError,
            GroqError (provider unreachable or failing)
        """
        if not transactions:
            raise EmptyTransactionsError()

        mode = self.mode
        logger.info(
            f"Analyzing {len(transactions)} transactions",
            extra={"mode": mode, "transaction_count": len(transactions)}
        )

        if self.settings.is_demo_mode:
            raw_response = json.dumps(
                simulate_analysis(transactions, self.settings.subscription_category_list),
                ensure_ascii=False
            )
            tokens_used = 0
            model = SIMULATION_MODEL
            if self.settings.demo_delay_seconds:
                await asyncio.sleep(self.settings.demo_delay_seconds)
        else:
            try:
                completion = await self.client.generate(
                    prompt=build_prompt(transactions),
                    system_prompt=SYSTEM_PROMPT,
                    model=self.settings.groq_model,
                    temperature=self.settings.llm_temperature,
                    max_tokens=self.settings.llm_max_tokens,
                )
            except Exception:
                analyses_total.labels(mode=mode, status="error").inc()
                raise
            raw_response = completion.content
            tokens_used = completion.tokens_used
            model = completion.model

            if not raw_response:
                logger.error("Provider returned an empty response", extra={"model": model})
                analyses_total.labels(mode=mode, status="empty_response").inc()
                raise EmptyProviderResponseError()

        try:
            analysis = parse_analysis(raw_response)
        except AnalysisParseError as e:
            logger.error(
                f"Error parsing analysis JSON: {e.reason}",
                extra={"raw_response": raw_response}
            )
            analyses_total.labels(mode=mode, status="parse_error").inc()
            raise

        analyses_total.labels(mode=mode, status="success").inc()
        logger.info("Analysis completed", extra={"mode": mode, "tokens_used": tokens_used})

        return AnalysisOutcome(
            analysis=analysis,
            tokens_used=tokens_used,
            mode=mode,
            model=model,
        )

    def save_analysis(self, outcome: AnalysisOutcome, transaction_count: int) -> AnalysisRecord:
        """Persist an analysis to history"""
        analysis = outcome.analysis
        predictions = analysis.get("predictions") or {}
        if not isinstance(predictions, dict):
            predictions = {}
        insights = analysis.get("insights") or []
        duplicates = analysis.get("duplicates") or []

        record = AnalysisRecord(
            total_spent=to_number(analysis.get("totalSpent")),
            subscriptions=int(to_number(analysis.get("subscriptions"))),
            subscription_cost=to_number(analysis.get("subscriptionCost")),
            next_month=to_number(predictions.get("nextMonth")),
            savings_potential=to_number(predictions.get("savings")),
            insights=[str(i) for i in insights] if isinstance(insights, list) else [],
            duplicates=[d for d in duplicates if isinstance(d, dict)] if isinstance(duplicates, list) else [],
            transaction_count=transaction_count,
            mode=outcome.mode,
            model=outcome.model,
            tokens_used=outcome.tokens_used,
        )

        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving analysis: {e}", exc_info=True)
            raise

        logger.info("Saved analysis", extra={"analysis_id": record.id, "mode": record.mode})
        return record

    def list_recent(self, limit: Optional[int] = None) -> List[AnalysisRecord]:
        """Newest analyses first"""
        limit = limit or self.settings.analysis_history_limit
        return (
            self.db.query(AnalysisRecord)
            .order_by(AnalysisRecord.created_at.desc(), AnalysisRecord.id.desc())
            .limit(limit)
            .all()
        )

    def get_analysis(self, analysis_id: int) -> Optional[AnalysisRecord]:
        return self.db.query(AnalysisRecord).filter(AnalysisRecord.id == analysis_id).first()

    def delete_analysis(self, analysis_id: int) -> bool:
        record = self.get_analysis(analysis_id)
        if not record:
            return False
        self.db.delete(record)
        self.db.commit()
        logger.info("Deleted analysis", extra={"analysis_id": analysis_id})
        return True
