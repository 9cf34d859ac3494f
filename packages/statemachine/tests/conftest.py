"""Pytest configuration and shared fixtures for dataknobs_statemachine tests."""

import pytest
from pathlib import Path
import sys

# Add src to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_statemachine import EventHub, StatefulObject, StateMachine  # noqa: E402


class ReviewService:
    """Action target used by the document review fixtures."""

    def __init__(self):
        self.calls = []

    def multiply(self, a, b):
        self.calls.append((a, b))
        return a * b

    def decide(self, outcome):
        self.calls.append((outcome,))
        return outcome

    def record(self, log, context):
        log.append("called")
        context["count"] += 1
        return 0

    def fail(self):
        raise RuntimeError("review service unavailable")


@pytest.fixture
def review_service():
    """Provide a fresh action target."""
    return ReviewService()


@pytest.fixture
def review_config(review_service):
    """Document review configuration with an action on 'propose'."""
    return {
        "name": "document_review",
        "states": {
            "draft": {"type": "INITIAL"},
            "proposed": None,
            "accepted": None,
            "published": {"type": "FINAL"},
            "rejected": {"type": "FINAL"},
        },
        "transitions": {
            "propose": {
                "from": "draft",
                "to": "proposed",
                "action": {
                    "object": review_service,
                    "method": "multiply",
                    "arguments": [42, 0],
                },
            },
            "accept": {"from": "proposed", "to": "accepted"},
            "publish": {"from": "accepted", "to": "published"},
            "reject": {"from": ["proposed", "accepted"], "to": "rejected"},
        },
    }


@pytest.fixture
def event_hub():
    """Provide an empty event hub."""
    return EventHub()


@pytest.fixture
def recorded_events(event_hub):
    """Record every event dispatched through ``event_hub``."""
    events = []
    event_hub.subscribe_all(events.append)
    return events


@pytest.fixture
def machine(review_config, event_hub):
    """State machine configured with the document review graph."""
    return StateMachine(event_hub=event_hub, config=review_config)


@pytest.fixture
def entity():
    """Provide an uninitialized entity."""
    return StatefulObject()
