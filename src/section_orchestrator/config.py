from __future__ import annotations

import logging
import os
from typing import Literal, Mapping

from google.cloud import secretmanager
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError
from .generation_client import DEFAULT_MODEL, OPENROUTER_BASE_URL

logger = logging.getLogger(__name__)

OPENROUTER_SECRET_ID = "openrouter-api-key"


class Settings(BaseModel):
    environment: str = "dev"
    project_id: str | None = None
    backend: Literal["openrouter", "vertex"] = "openrouter"
    model: str = DEFAULT_MODEL
    max_tokens: int = 2000
    temperature: float = 0.7
    timeout_seconds: float = 30.0
    openrouter_api_key: str | None = None
    openrouter_base_url: str = OPENROUTER_BASE_URL
    vertex_location: str = "asia-northeast1"
    conversation_max_age_hours: float = 24.0
    sweep_interval_seconds: float = 3600.0
    prompt_records_collection: str = "ai_prompts"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        mapping = {
            "environment": "ENVIRONMENT",
            "project_id": "PROJECT_ID",
            "backend": "GENERATION_BACKEND",
            "model": "GENERATION_MODEL",
            "max_tokens": "GENERATION_MAX_TOKENS",
            "temperature": "GENERATION_TEMPERATURE",
            "timeout_seconds": "GENERATION_TIMEOUT_SECONDS",
            "openrouter_api_key": "OPENROUTER_API_KEY",
            "openrouter_base_url": "OPENROUTER_BASE_URL",
            "vertex_location": "VERTEX_LOCATION",
            "conversation_max_age_hours": "CONVERSATION_MAX_AGE_HOURS",
            "sweep_interval_seconds": "CONVERSATION_SWEEP_INTERVAL_SECONDS",
            "prompt_records_collection": "PROMPT_RECORDS_COLLECTION",
        }
        values = {field: env[name] for field, name in mapping.items() if env.get(name)}
        if "model" not in values and values.get("backend") == "vertex":
            values["model"] = "gemini-1.5-pro"
        try:
            settings = cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid settings: {exc}") from exc

        if settings.backend == "openrouter" and not settings.openrouter_api_key and settings.project_id:
            settings.openrouter_api_key = get_secret(settings.project_id, OPENROUTER_SECRET_ID)
        return settings

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"


def get_secret(project_id: str, secret_id: str) -> str | None:
    """Fetch secret from Secret Manager.

    Args:
        project_id: GCP project ID
        secret_id: Secret ID

    Returns:
        Secret value or None if not found
    """
    try:
        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project_id}/secrets/{secret_id}/versions/latest"
        response = client.access_secret_version(name=name)
        return response.payload.data.decode("UTF-8")
    except Exception as exc:
        logger.warning(
            f"Failed to fetch secret {secret_id}: {exc}",
            exc_info=True,
        )
        return None


__all__ = ["Settings", "get_secret"]
