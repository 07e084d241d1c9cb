from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError

import vertexai
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from vertexai.generative_models import GenerationConfig, GenerativeModel

from .errors import BackendNetworkError, BackendResponseError, BackendTimeoutError

logger = logging.getLogger(__name__)


class VertexAIGenerationClient:
    """Adapter for Vertex AI Gemini models.

    Each call runs on its own daemon thread so the timeout is measured from
    the moment the call starts and an abandoned call never delays others.
    """

    def __init__(
        self,
        *,
        project_id: str,
        location: str = "asia-northeast1",
        model_name: str = "gemini-1.5-pro",
        max_output_tokens: int = 2000,
        temperature: float = 0.7,
        timeout: float = 30.0,
    ) -> None:
        """Initialize Vertex AI adapter.

        Args:
            project_id: GCP project ID
            location: Vertex AI location
            model_name: Model name (e.g., "gemini-1.5-pro")
            max_output_tokens: Maximum output tokens per call
            temperature: Sampling temperature (0.0 - 1.0)
            timeout: Seconds to wait for a single call
        """
        self.project_id = project_id
        self.location = location
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.timeout = timeout

        vertexai.init(project=project_id, location=location)

    def send(self, system_directive: str, user_directive: str) -> str:
        """Generate content for one prompt.

        Args:
            system_directive: System instruction for the model
            user_directive: User turn

        Returns:
            Generated text
        """
        future: Future[str] = Future()
        worker = threading.Thread(
            target=self._run,
            args=(future, system_directive, user_directive),
            name="vertex-ai-call",
            daemon=True,
        )
        worker.start()
        try:
            generated_text = future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            # The worker finishes on its own; its result is discarded.
            raise BackendTimeoutError(f"Vertex AI call exceeded {self.timeout}s") from exc
        except (google_exceptions.DeadlineExceeded, google_exceptions.RetryError) as exc:
            raise BackendTimeoutError(str(exc)) from exc
        except (google_exceptions.ServiceUnavailable, ConnectionError) as exc:
            raise BackendNetworkError(str(exc)) from exc
        except auth_exceptions.GoogleAuthError as exc:
            raise BackendNetworkError(f"Vertex AI credentials unavailable: {exc}") from exc
        except google_exceptions.GoogleAPICallError as exc:
            raise BackendResponseError(str(exc), status_code=exc.code) from exc
        except ValueError as exc:
            # response.text raises when the candidate was blocked or empty.
            raise BackendResponseError(f"Vertex AI returned no text: {exc}") from exc

        logger.info(
            "Generated content with Vertex AI",
            extra={
                "model": self.model_name,
                "temperature": self.temperature,
                "input_length": len(system_directive) + len(user_directive),
                "output_length": len(generated_text),
            },
        )
        return generated_text

    def _run(self, future: Future[str], system_directive: str, user_directive: str) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(self._generate(system_directive, user_directive))
        except Exception as exc:
            future.set_exception(exc)

    def _generate(self, system_directive: str, user_directive: str) -> str:
        model = GenerativeModel(self.model_name, system_instruction=[system_directive])
        response = model.generate_content(
            user_directive,
            generation_config=GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                response_mime_type="application/json",
            ),
        )
        return response.text


__all__ = ["VertexAIGenerationClient"]
