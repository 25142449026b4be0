"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/finai/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: backend/.env
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
# Values already present in the environment win over the file
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "FinAI"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # Logging
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"finai.api": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/finai.log",
        description="Path to log file (relative to project root)"
    )
    log_file_rotation: str = Field(
        default="midnight",
        description="Log file rotation: 'midnight' or a weekday 'W0'..'W6'"
    )
    log_file_retention: int = Field(default=30, ge=1, description="Number of rotated log files to keep")
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (API keys, tokens) - NOT RECOMMENDED"
    )

    # Database
    database_url: str = Field(default="sqlite:///./finai.db", description="SQLAlchemy database URL")
    database_pool_size: int = Field(default=5, ge=1, description="Database pool size (non-SQLite)")
    database_max_overflow: int = Field(default=10, ge=0, description="Database max overflow (non-SQLite)")

    # LLM provider (Groq, OpenAI-compatible API)
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key; demo mode when unset")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1", description="Groq API base URL")
    groq_model: str = Field(default="llama-3.3-70b-versatile", description="Chat completion model")
    demo_mode: bool = Field(default=False, description="Force the local analysis simulation")
    demo_delay_seconds: float = Field(
        default=1.5,
        ge=0.0,
        le=30.0,
        description="Artificial latency of the simulated analysis (seconds)"
    )
    llm_timeout_seconds: int = Field(default=30, ge=1, le=300, description="Provider request timeout (seconds)")
    llm_max_tokens: int = Field(default=1000, ge=50, le=8192, description="Max tokens in the completion")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")

    # Analysis
    subscription_categories: str = Field(
        default="Suscripción,Subscription,Subscriptions",
        description="Categories counted as subscriptions (comma-separated)"
    )
    save_analyses: bool = Field(default=True, description="Persist produced analyses to history")
    analysis_history_limit: int = Field(default=10, ge=1, le=100, description="Default history page size")
    seed_demo_data: bool = Field(default=False, description="Insert sample transactions on startup if empty")

    @property
    def subscription_category_list(self) -> List[str]:
        """Parse subscription categories from comma-separated string"""
        return [cat.strip() for cat in self.subscription_categories.split(",") if cat.strip()]

    @property
    def is_demo_mode(self) -> bool:
        """Demo mode when forced or when no API key is configured"""
        return self.demo_mode or not self.groq_api_key

    @property
    def llm_mode(self) -> str:
        return "demo" if self.is_demo_mode else "groq"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
