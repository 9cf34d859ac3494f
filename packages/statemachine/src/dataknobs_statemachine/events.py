"""Lifecycle notifications emitted by the state machine.

The machine reports every initialization and transition attempt through an
event hub. Delivery is synchronous, on the caller's thread, in this order:

``initialize``:
    onBeforeInitialize -> (state set) -> onAfterInitialize

``apply``:
    onBeforeApplyTransition -> [onBeforeStateChange -> (state set) ->
    onAfterStateChange] -> onAfterApplyTransition

The bracketed events are skipped when the transition resolves back to the
source state. A handler that raises aborts the remainder of the operation.

Example:
    ```python
    from dataknobs_statemachine.events import EventHub, EventName

    hub = EventHub()

    def audit(event):
        print(f"{event.entity} moved {event.from_state} -> {event.to_state}")

    subscription = hub.subscribe(EventName.AFTER_STATE_CHANGE, audit)
    machine = StateMachine(event_hub=hub, config=config)

    # Later, to stop receiving events:
    subscription.cancel()
    ```
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Protocol

if TYPE_CHECKING:
    from dataknobs_statemachine.core.entity import StatefulEntity
    from dataknobs_statemachine.core.state import State
    from dataknobs_statemachine.core.transition import Transition

logger = logging.getLogger(__name__)


class EventName(str, Enum):
    """Names of the notifications emitted by the machine."""

    BEFORE_INITIALIZE = "onBeforeInitialize"
    AFTER_INITIALIZE = "onAfterInitialize"
    BEFORE_APPLY_TRANSITION = "onBeforeApplyTransition"
    AFTER_APPLY_TRANSITION = "onAfterApplyTransition"
    BEFORE_STATE_CHANGE = "onBeforeStateChange"
    AFTER_STATE_CHANGE = "onAfterStateChange"


@dataclass
class StateMachineEvent:
    """Notification about an entity handled by a machine.

    Attributes:
        name: Which lifecycle point this event marks
        machine: The machine emitting the event
        entity: The entity being initialized or transitioned
        timestamp: When the event was created
    """

    name: EventName
    machine: Any
    entity: StatefulEntity
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to a dictionary with names in place of objects."""
        return {
            "name": self.name.value,
            "entity": repr(self.entity),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class StateEvent(StateMachineEvent):
    """Notification about an entity's visible state change."""

    from_state: State | None = None
    to_state: State | None = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["from_state"] = self.from_state.name if self.from_state else None
        data["to_state"] = self.to_state.name if self.to_state else None
        return data


@dataclass
class TransitionEvent(StateMachineEvent):
    """Notification about a transition attempt.

    Before the transition is resolved ``to_state`` equals ``from_state``;
    the after-event carries the resolved destination.
    """

    from_state: State | None = None
    to_state: State | None = None
    transition: Transition | None = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["from_state"] = self.from_state.name if self.from_state else None
        data["to_state"] = self.to_state.name if self.to_state else None
        data["transition"] = self.transition.name if self.transition else None
        return data


EventHandler = Callable[[StateMachineEvent], Any]


class IEventHub(Protocol):
    """Anything the machine can hand events to."""

    def dispatch(self, event: StateMachineEvent) -> None:
        ...


@dataclass
class Subscription:
    """Handle for a registered handler.

    Attributes:
        subscription_id: Unique identifier for this subscription
        event_name: The event subscribed to, or None for all events
        handler: The handler function
    """

    subscription_id: str
    event_name: EventName | None
    handler: EventHandler
    _hub: EventHub | None = field(default=None, repr=False)

    def cancel(self) -> None:
        """Stop delivering events to this handler."""
        if self._hub is not None:
            self._hub.unsubscribe(self)
            self._hub = None


class EventHub:
    """Synchronous observer registry keyed by event name.

    Handlers for a specific event run in subscription order, followed by
    handlers registered for all events. Handler exceptions propagate to the
    code that dispatched the event.
    """

    def __init__(self) -> None:
        self._handlers: Dict[EventName, List[Subscription]] = {}
        self._catch_all: List[Subscription] = []

    def subscribe(self, event_name: EventName | str, handler: EventHandler) -> Subscription:
        """Register a handler for one event.

        Args:
            event_name: An EventName or its string value (``"onAfterStateChange"``).
            handler: Callable receiving the event.

        Returns:
            Subscription that can be cancelled.
        """
        name = EventName(event_name)
        subscription = Subscription(str(uuid.uuid4()), name, handler, self)
        self._handlers.setdefault(name, []).append(subscription)
        return subscription

    def subscribe_all(self, handler: EventHandler) -> Subscription:
        """Register a handler receiving every event."""
        subscription = Subscription(str(uuid.uuid4()), None, handler, self)
        self._catch_all.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        if subscription.event_name is None:
            bucket = self._catch_all
        else:
            bucket = self._handlers.get(subscription.event_name, [])
        for index, existing in enumerate(bucket):
            if existing.subscription_id == subscription.subscription_id:
                del bucket[index]
                return True
        return False

    def has_subscribers(self, event_name: EventName | str | None = None) -> bool:
        """Check for subscribers to one event, or to any event."""
        if self._catch_all:
            return True
        if event_name is None:
            return any(self._handlers.values())
        return bool(self._handlers.get(EventName(event_name)))

    def clear(self) -> None:
        """Remove every subscription."""
        self._handlers.clear()
        self._catch_all.clear()

    def dispatch(self, event: StateMachineEvent) -> None:
        """Deliver an event to its handlers."""
        # Copy so handlers may cancel subscriptions while running
        handlers = list(self._handlers.get(event.name, [])) + list(self._catch_all)
        logger.debug(f"Dispatching {event.name.value} to {len(handlers)} handler(s)")
        for subscription in handlers:
            subscription.handler(event)


class NullEventHub:
    """Hub that drops every event."""

    def dispatch(self, event: StateMachineEvent) -> None:
        pass


__all__ = [
    "EventName",
    "StateMachineEvent",
    "StateEvent",
    "TransitionEvent",
    "EventHandler",
    "IEventHub",
    "EventHub",
    "NullEventHub",
    "Subscription",
]
