"""End-to-end document review workflow."""

import threading

import pytest
import yaml

from dataknobs_statemachine import (
    ConfigLoader,
    EventHub,
    EventName,
    StatefulObject,
    StateMachine,
    StateMachineError,
    StateType,
)


class Document(StatefulObject):
    def __init__(self, title):
        super().__init__()
        self.title = title


def test_document_review_lifecycle(machine, entity):
    assert machine.initialize(entity)
    assert entity.state.name == "draft"

    assert machine.can("propose", entity)
    assert not machine.can("accept", entity)
    assert not machine.can("reject", entity)
    assert not machine.can("publish", entity)

    assert machine.apply("propose", entity)
    assert entity.state.name == "proposed"
    assert not machine.can("propose", entity)
    assert machine.can("accept", entity)
    assert machine.can("reject", entity)
    assert not machine.can("publish", entity)

    assert machine.apply("accept", entity)
    assert entity.state.name == "accepted"
    assert machine.can("reject", entity)
    assert machine.can("publish", entity)

    assert machine.apply("reject", entity)
    assert entity.state.name == "rejected"
    assert entity.state.type is StateType.FINAL

    with pytest.raises(StateMachineError):
        machine.apply("publish", entity)
    assert entity.state.name == "rejected"


def test_machine_is_shared_between_entities(machine):
    first, second = Document("draft-plan"), Document("notes")
    machine.initialize(first)
    machine.initialize(second)

    machine.apply("propose", first)
    machine.apply("accept", first)

    assert first.state.name == "accepted"
    assert second.state.name == "draft"


def test_concurrent_use_with_distinct_entities(machine):
    documents = [Document(f"doc-{i}") for i in range(20)]

    def review(document):
        machine.initialize(document)
        machine.apply("propose", document)
        machine.apply("accept", document)
        machine.apply("publish", document)

    threads = [threading.Thread(target=review, args=(doc,)) for doc in documents]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(doc.state.name == "published" for doc in documents)


def test_yaml_workflow_with_registered_target(tmp_path):
    class Triage:
        def route(self, severity, threshold):
            return int(severity >= threshold)

    path = tmp_path / "tickets.yaml"
    path.write_text(yaml.dump({
        "name": "tickets",
        "states": {
            "new": "initial",
            "queued": None,
            "escalated": "breakpoint",
            "closed": "final",
        },
        "transitions": {
            "triage": {
                "from": "new",
                "to": ["queued", "escalated"],
                "action": {"target": "triage", "method": "route", "arguments": [7, 5]},
            },
            "close": {"from": ["queued", "escalated"], "to": "closed"},
        },
    }))

    loader = ConfigLoader()
    loader.register_target("triage", Triage())
    hub = EventHub()
    changes = []
    hub.subscribe(EventName.AFTER_STATE_CHANGE,
                  lambda e: changes.append((e.from_state.name, e.to_state.name)))

    machine = StateMachine(loader=loader, event_hub=hub)
    machine.configure(loader.load_from_file(path))

    ticket = StatefulObject()
    machine.initialize(ticket)
    machine.apply("triage", ticket)
    assert ticket.state.is_breakpoint
    machine.apply("close", ticket)

    assert changes == [("new", "escalated"), ("escalated", "closed")]
    assert machine.is_final(ticket)
