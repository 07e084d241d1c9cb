"""Vertex AI adapter tests with the SDK mocked out."""

import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions

from section_orchestrator.errors import (
    BackendNetworkError,
    BackendResponseError,
    BackendTimeoutError,
)
from section_orchestrator.vertex_ai_adapter import VertexAIGenerationClient


@pytest.fixture
def mock_model():
    with patch("section_orchestrator.vertex_ai_adapter.vertexai.init"), patch(
        "section_orchestrator.vertex_ai_adapter.GenerativeModel"
    ) as model_cls:
        yield model_cls


def test_send_passes_system_instruction(mock_model):
    """The system directive becomes the model's system instruction."""
    mock_model.return_value.generate_content.return_value = MagicMock(text='{"elements": []}')
    client = VertexAIGenerationClient(project_id="proj", model_name="gemini-1.5-pro")

    text = client.send("system", "user")

    assert text == '{"elements": []}'
    mock_model.assert_called_once_with("gemini-1.5-pro", system_instruction=["system"])
    args, kwargs = mock_model.return_value.generate_content.call_args
    assert args == ("user",)
    assert "generation_config" in kwargs


@pytest.mark.parametrize(
    "raised, expected",
    [
        (google_exceptions.DeadlineExceeded("late"), BackendTimeoutError),
        (google_exceptions.ServiceUnavailable("gone"), BackendNetworkError),
        (google_exceptions.RetryError("gave up", cause=None), BackendTimeoutError),
        (auth_exceptions.RefreshError("no token"), BackendNetworkError),
        (auth_exceptions.DefaultCredentialsError("no creds"), BackendNetworkError),
        (google_exceptions.InvalidArgument("bad"), BackendResponseError),
        (ValueError("blocked"), BackendResponseError),
    ],
)
def test_sdk_errors_are_classified(mock_model, raised, expected):
    """SDK failures map onto the backend error taxonomy."""
    mock_model.return_value.generate_content.side_effect = raised
    client = VertexAIGenerationClient(project_id="proj")

    with pytest.raises(expected):
        client.send("s", "u")


def test_slow_call_times_out(mock_model):
    """Calls exceeding the timeout raise BackendTimeoutError."""
    def slow(*args, **kwargs):
        time.sleep(0.5)
        return MagicMock(text="{}")

    mock_model.return_value.generate_content.side_effect = slow
    client = VertexAIGenerationClient(project_id="proj", timeout=0.05)

    with pytest.raises(BackendTimeoutError):
        client.send("s", "u")


def test_concurrent_calls_each_get_the_full_timeout(mock_model):
    """Parallel calls do not queue behind each other and eat into the timeout."""
    def slow(*args, **kwargs):
        time.sleep(0.3)
        return MagicMock(text="{}")

    mock_model.return_value.generate_content.side_effect = slow
    client = VertexAIGenerationClient(project_id="proj", timeout=1.0)
    errors = []
    results = []

    def call():
        try:
            results.append(client.send("s", "u"))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=call) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert results == ["{}"] * 8


def test_abandoned_call_does_not_block_the_next(mock_model):
    """A timed-out call leaves later calls unaffected."""
    def first_slow_then_fast(*args, **kwargs):
        if mock_model.return_value.generate_content.call_count == 1:
            time.sleep(0.5)
        return MagicMock(text='{"elements": []}')

    mock_model.return_value.generate_content.side_effect = first_slow_then_fast
    client = VertexAIGenerationClient(project_id="proj", timeout=0.1)

    with pytest.raises(BackendTimeoutError):
        client.send("s", "u")
    started = time.monotonic()
    assert client.send("s", "u") == '{"elements": []}'
    assert time.monotonic() - started < 0.3
