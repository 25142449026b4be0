"""
Groq API client (OpenAI-compatible chat completions)
"""
import time
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel

from finai.core.config import Settings, get_settings
from finai.core.logging_config import LoggingConfig
from finai.core.metrics import (llm_errors_total, llm_request_duration_seconds,
                                llm_requests_total, llm_tokens_total)

logger = LoggingConfig.get_logger(__name__)


class GroqResponse(BaseModel):
    """Chat completion result"""
    model: str
    content: str
    tokens_used: int = 0
    finish_reason: Optional[str] = None


class GroqError(Exception):
    """Raised when the provider cannot be reached or answers with an error"""
    pass


class GroqClient:
    """
    Client for the Groq chat completions endpoint.
    One request per call; the HTTP client's timeout is the only limit.
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> Settings:
        """Lazy load settings"""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def model(self) -> str:
        return self.settings.groq_model

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.groq_api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        **kwargs
    ) -> Dict:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return {
            "model": model,
            "messages": messages,
            "temperature": kwargs.get("temperature", self.settings.llm_temperature),
            "max_tokens": kwargs.get("max_tokens", self.settings.llm_max_tokens),
        }

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        **kwargs
    ) -> GroqResponse:
        """
        Send a chat completion request

        Args:
            prompt: User message
            system_prompt: Optional system message
            model: Model override (defaults to GROQ_MODEL)
            **kwargs: temperature, max_tokens

        Returns:
            GroqResponse with the first choice's content and total token usage
        """
        if not self.settings.groq_api_key:
            raise GroqError("GROQ_API_KEY is not configured")

        model_to_use = model or self.model
        payload = self._build_payload(prompt, system_prompt, model_to_use, **kwargs)
        base_url = self.settings.groq_base_url.rstrip("/")

        logger.info(
            "Sending chat completion request",
            extra={"model": model_to_use, "prompt_chars": len(prompt)}
        )

        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                base_url=base_url,
                timeout=float(self.settings.llm_timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post("/chat/completions", json=payload, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            self._record_error(model_to_use, "timeout")
            raise GroqError(f"Request to {base_url} timed out after {self.settings.llm_timeout_seconds}s") from e
        except httpx.HTTPStatusError as e:
            self._record_error(model_to_use, f"http_{e.response.status_code}")
            raise GroqError(f"HTTP error from Groq: {e.response.status_code} - {e.response.text}") from e
        except httpx.HTTPError as e:
            self._record_error(model_to_use, type(e).__name__)
            raise GroqError(f"Error calling Groq at {base_url}: {str(e)}") from e
        except ValueError as e:
            self._record_error(model_to_use, "invalid_json")
            raise GroqError(f"Groq returned a non-JSON body: {str(e)}") from e
        finally:
            llm_request_duration_seconds.labels(model=model_to_use).observe(time.time() - start_time)

        choices = data.get("choices") or []
        first = choices[0] if choices else {}
        content = (first.get("message") or {}).get("content") or ""
        tokens_used = (data.get("usage") or {}).get("total_tokens") or 0

        llm_requests_total.labels(model=model_to_use, status="success").inc()
        if tokens_used:
            llm_tokens_total.labels(model=model_to_use).inc(tokens_used)

        logger.info(
            "Chat completion received",
            extra={"model": model_to_use, "tokens_used": tokens_used, "content_chars": len(content)}
        )

        return GroqResponse(
            model=model_to_use,
            content=content,
            tokens_used=tokens_used,
            finish_reason=first.get("finish_reason"),
        )

    @staticmethod
    def _record_error(model: str, error_type: str):
        llm_requests_total.labels(model=model, status="error").inc()
        llm_errors_total.labels(model=model, error_type=error_type).inc()


# Global client instance
_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Get global Groq client instance"""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client
