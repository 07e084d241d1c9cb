from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from .errors import (
    BackendNetworkError,
    BackendResponseError,
    BackendTimeoutError,
    ConfigurationError,
)

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "deepseek/deepseek-chat"
DEFAULT_TIMEOUT_SECONDS = 30.0


class GenerationClient(Protocol):
    def send(self, system_directive: str, user_directive: str) -> str:
        """Return the backend's raw text or raise a ``BackendError``."""
        ...


class OpenRouterClient:
    """Chat-completions client for OpenRouter-compatible backends.

    Makes exactly one attempt per call; retrying is left to the caller.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = OPENROUTER_BASE_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        referer: str = "http://localhost:3000",
        app_title: str = "Section Orchestrator",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        headers = {"Content-Type": "application/json", "HTTP-Referer": referer, "X-Title": app_title}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def send(self, system_directive: str, user_directive: str) -> str:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_directive},
                {"role": "user", "content": user_directive},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        started = time.monotonic()
        try:
            response = self._client.post("/chat/completions", json=body)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(f"Generation request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise BackendResponseError(
                f"Generation backend returned {status}: {_error_message(exc.response)}",
                status_code=status,
            ) from exc
        except httpx.RequestError as exc:
            # Transport failures plus decoding and redirect errors.
            raise BackendNetworkError(f"Generation backend unreachable: {exc}") from exc

        text = _extract_text(response)
        logger.info(
            "Generated content",
            extra={
                "model": self.model,
                "input_length": len(system_directive) + len(user_directive),
                "output_length": len(text),
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return text

    def close(self) -> None:
        self._client.close()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text[:200]


def _extract_text(response: httpx.Response) -> str:
    try:
        payload: Any = response.json()
    except ValueError as exc:
        raise BackendResponseError(
            "Generation backend returned a non-JSON body", status_code=response.status_code
        ) from exc
    if not isinstance(payload, dict):
        raise BackendResponseError("Unexpected response shape", status_code=response.status_code)
    if payload.get("error"):
        raise BackendResponseError(_error_message(response), status_code=response.status_code)
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise BackendResponseError(
            "Generation backend response has no message content", status_code=response.status_code
        ) from exc
    if not isinstance(content, str):
        raise BackendResponseError("Message content is not text", status_code=response.status_code)
    return content


def create_generation_client(settings: Settings) -> GenerationClient:
    if settings.backend == "vertex":
        if not settings.project_id:
            raise ConfigurationError("PROJECT_ID is required for the vertex backend")
        from .vertex_ai_adapter import VertexAIGenerationClient

        return VertexAIGenerationClient(
            project_id=settings.project_id,
            location=settings.vertex_location,
            model_name=settings.model,
            max_output_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.timeout_seconds,
        )
    if not settings.openrouter_api_key:
        logger.warning("No OpenRouter API key configured; backend calls will be rejected")
    return OpenRouterClient(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.timeout_seconds,
    )


__all__ = [
    "DEFAULT_MODEL",
    "GenerationClient",
    "OPENROUTER_BASE_URL",
    "OpenRouterClient",
    "create_generation_client",
]
