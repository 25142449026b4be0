"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finai.api.responses import error_response
from finai.api.routes import analyses, health, metrics, transactions
from finai.core.config import get_settings
from finai.core.database import get_session_local, init_db
from finai.core.logging_config import LoggingConfig
from finai.core.middleware import LoggingContextMiddleware, MetricsMiddleware
from finai.services.transaction_service import TransactionService

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    logger.info(
        "Analysis configuration",
        extra={
            "groq_api_key_configured": bool(settings.groq_api_key),
            "demo_mode_setting": settings.demo_mode,
            "mode": settings.llm_mode,
            "model": "simulation" if settings.is_demo_mode else settings.groq_model,
        }
    )

    init_db()

    if settings.seed_demo_data:
        db = get_session_local()()
        try:
            TransactionService(db).seed_demo_transactions()
        finally:
            db.close()

    logger.info(
        f"{settings.app_name} listening on http://{settings.api_host}:{settings.api_port} "
        f"({'DEMO MODE, no AI' if settings.is_demo_mode else 'GROQ MODE'})"
    )

    yield

    logger.info(f"Shutting down {settings.app_name}...")


_settings = get_settings()
app = FastAPI(
    title=_settings.app_name,
    description="Personal finance dashboard API with AI spending analysis",
    version="0.1.0",
    lifespan=lifespan,
)

# Add logging context and metrics middleware (before CORS to capture all requests)
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(MetricsMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_errors(exc: RequestValidationError):
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid or missing input is a 400 with the validation errors attached"""
    details = _validation_errors(exc)
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "errors": details}
    )
    return error_response(400, "Invalid request", details=details)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    if isinstance(exc, FastAPIHTTPException):
        raise exc

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": type(exc).__name__
        }
    )


app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(transactions.router)
app.include_router(analyses.router)
