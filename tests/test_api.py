"""HTTP surface tests."""

import asyncio
import threading
from datetime import timedelta

import pytest
from conftest import FakeGenerationClient, backend_payload
from fastapi.testclient import TestClient

from section_orchestrator.config import Settings
from section_orchestrator.conversation_store import ConversationStore
from section_orchestrator.orchestrator import GenerationOrchestrator
from section_orchestrator.models.generation import GenerationResult
from services.api.main import _cancel_on_disconnect, create_app


@pytest.fixture
def backend():
    return FakeGenerationClient(default=backend_payload(("t1", "text", "<b>Hello</b>")))


@pytest.fixture
def api(backend):
    store = ConversationStore(max_age=timedelta(hours=24))
    orchestrator = GenerationOrchestrator(client=backend, store=store)
    app = create_app(settings=Settings(), store=store, orchestrator=orchestrator)
    with TestClient(app) as client:
        yield client


def test_health(api):
    """Health check answers ok."""
    response = api.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_generation_round_trip(api):
    """A camelCase request returns the camelCase result contract."""
    response = api.post(
        "/v1/generations",
        json={"instruction": "Add a heading", "currentElements": [], "userId": "u1", "mode": "generate"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["stepsCompleted"] == 1
    assert body["totalSteps"] == 1
    assert body["orchestrated"] is False
    assert body["elements"][0]["content"] == "Hello"
    assert "rawBackendResponse" not in body


def test_orchestrated_request(api, backend):
    """Complex instructions are planned and run step by step."""
    response = api.post(
        "/v1/generations",
        json={"instruction": "Create a complete e-commerce website", "userId": "u1"},
    )

    body = response.json()
    assert body["orchestrated"] is True
    assert body["totalSteps"] == 3
    assert len(backend.calls) == 3


def test_incoming_markup_is_sanitized(api, backend):
    """Element content is cleaned on ingestion as well as on output."""
    api.post(
        "/v1/generations",
        json={
            "instruction": "Add a button",
            "userId": "u1",
            "currentElements": [{"id": "x", "type": "text", "content": "<i>Our company</i>"}],
        },
    )

    system_directive = backend.calls[0][0]
    assert "business" in system_directive


def test_invalid_request_rejected(api):
    """Unknown modes are rejected by validation."""
    response = api.post(
        "/v1/generations",
        json={"instruction": "Add a heading", "userId": "u1", "mode": "delete"},
    )

    assert response.status_code == 422


class ClosableClient(FakeGenerationClient):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.closed = False

    def close(self):
        self.closed = True


def test_shutdown_closes_generation_client():
    """The backend client built into the app is closed with the app."""
    client = ClosableClient(default=backend_payload(("t1", "text", "Hi")))
    app = create_app(settings=Settings(), client=client)

    with TestClient(app) as api:
        api.post("/v1/generations", json={"instruction": "Add a heading", "userId": "u1"})
        assert not client.closed

    assert client.closed
    assert len(client.calls) == 1


class RecordingOrchestrator:
    def __init__(self):
        self.cancel_events = []

    def generate(self, request, *, cancel_event=None):
        self.cancel_events.append(cancel_event)
        return GenerationResult(success=True, steps_completed=1, total_steps=1)


def test_request_gets_a_cancel_event():
    """Each request hands the orchestrator its own unset cancel flag."""
    orchestrator = RecordingOrchestrator()
    app = create_app(settings=Settings(), orchestrator=orchestrator)

    with TestClient(app) as api:
        response = api.post("/v1/generations", json={"instruction": "Add a heading", "userId": "u1"})

    assert response.status_code == 200
    [event] = orchestrator.cancel_events
    assert isinstance(event, threading.Event)
    assert not event.is_set()


class FakeHttpRequest:
    def __init__(self, disconnect_after):
        self.polls = 0
        self.disconnect_after = disconnect_after

    async def is_disconnected(self):
        self.polls += 1
        return self.polls >= self.disconnect_after


def test_disconnect_sets_cancel_event():
    """A caller hanging up stops further plan steps from starting."""
    request = FakeHttpRequest(disconnect_after=3)
    event = threading.Event()

    asyncio.run(_cancel_on_disconnect(request, event, interval=0))

    assert event.is_set()
    assert request.polls == 3
