"""Shared fixtures: a scripted generation backend and a controllable clock."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from section_orchestrator.conversation_store import ConversationStore
from section_orchestrator.models.element import Element


class FakeGenerationClient:
    """Replays scripted responses; an Exception entry is raised instead."""

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default
        self.calls = []

    def send(self, system_directive, user_directive):
        self.calls.append((system_directive, user_directive))
        if self.responses:
            response = self.responses.pop(0)
        else:
            response = self.default
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def backend_payload(*elements, suggestions=None, reasoning="ok"):
    """Build a well-formed backend JSON response from (id, type, content) tuples."""
    return json.dumps(
        {
            "elements": [
                {
                    "id": element_id,
                    "type": element_type,
                    "content": content,
                    "styles": {"color": "#111111"},
                    "position": {"x": 0, "y": 0},
                    "size": {"width": 800, "height": 120},
                }
                for element_id, element_type, content in elements
            ],
            "suggestions": suggestions or [],
            "reasoning": reasoning,
        }
    )


def make_element(element_type, content="", element_id=None):
    data = {"type": element_type, "content": content}
    if element_id:
        data["id"] = element_id
    return Element.model_validate(data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return ConversationStore(clock=clock)


@pytest.fixture
def fake_client():
    return FakeGenerationClient()
