"""Settings loading tests."""

from unittest.mock import patch

import pytest

from section_orchestrator.config import Settings
from section_orchestrator.errors import ConfigurationError


def test_defaults_without_environment():
    """Empty environment gives dev defaults."""
    settings = Settings.from_env({})

    assert settings.is_dev
    assert settings.backend == "openrouter"
    assert settings.model == "deepseek/deepseek-chat"
    assert settings.timeout_seconds == 30.0
    assert settings.conversation_max_age_hours == 24.0


def test_values_read_from_environment():
    """Environment variables override defaults."""
    settings = Settings.from_env(
        {
            "ENVIRONMENT": "prod",
            "GENERATION_TIMEOUT_SECONDS": "12.5",
            "OPENROUTER_API_KEY": "sk-live",
            "CONVERSATION_SWEEP_INTERVAL_SECONDS": "60",
        }
    )

    assert not settings.is_dev
    assert settings.timeout_seconds == 12.5
    assert settings.openrouter_api_key == "sk-live"
    assert settings.sweep_interval_seconds == 60


def test_vertex_backend_defaults_to_gemini():
    """Choosing Vertex without a model picks a Gemini model."""
    settings = Settings.from_env({"GENERATION_BACKEND": "vertex", "PROJECT_ID": "p"})

    assert settings.model == "gemini-1.5-pro"


def test_invalid_values_raise_configuration_error():
    """Unparseable numbers are reported as configuration errors."""
    with pytest.raises(ConfigurationError):
        Settings.from_env({"GENERATION_MAX_TOKENS": "lots"})


def test_api_key_fetched_from_secret_manager():
    """A missing key is looked up in Secret Manager when a project is set."""
    with patch("section_orchestrator.config.get_secret", return_value="sk-secret") as get_secret:
        settings = Settings.from_env({"PROJECT_ID": "proj"})

    get_secret.assert_called_once_with("proj", "openrouter-api-key")
    assert settings.openrouter_api_key == "sk-secret"
