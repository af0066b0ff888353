"""Event system for the formstate engine.

FormManager emits a typed FormEvent for every mutation it performs: fields
added and removed, values changed, fields touched, validation outcomes and
visibility moves. A UI layer subscribes to re-render only what changed; the
same stream doubles as an audit trail of a form session.

Listeners are called synchronously, in registration order, while the
mutating operation is still running.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from formstate.types import FormEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form session.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_9f2c...")
        type: Event type from FormEventType
        form_id: ID of the FormManager that emitted the event
        field_name: Field the event is about
        ts: UTC timestamp when the event occurred
        reason: For visibility events, the field whose change triggered the
            evaluation. None otherwise.
        payload: Optional event-specific data (old/new values, error message)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=FormEventType.FIELD_HIDDEN,
        ...     form_id="form_001",
        ...     field_name="state",
        ...     ts=datetime.now(timezone.utc),
        ...     reason="country",
        ... )
        >>> event.type.value
        'field.hidden'
    """
    event_id: str
    type: FormEventType
    form_id: str
    field_name: str
    ts: datetime
    reason: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Normalize a string event type to FormEventType."""
        if isinstance(self.type, str) and not isinstance(self.type, FormEventType):
            object.__setattr__(self, "type", FormEventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Returns:
            Dictionary with camelCase keys. Timestamp is an ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "fieldName": self.field_name,
            "ts": self.ts.isoformat(),
        }
        if self.reason is not None:
            result["reason"] = self.reason
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Single-line JSON suitable for appending to a JSONL log.

        Payload values that are not JSON-serializable are rendered with str().
        """
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from a dictionary produced by to_dict()."""
        return cls(
            event_id=data["eventId"],
            type=FormEventType(data["type"]),
            form_id=data["formId"],
            field_name=data["fieldName"],
            ts=date_parser.isoparse(data["ts"]),
            reason=data.get("reason"),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously while the form is mid-operation and must
not mutate the form.
"""


class EventEmitter:
    """Dispatches FormEvents to subscribed listeners.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (a failing listener is logged, others still run)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(FormEventType.FIELD_HIDDEN, seen.append)
        >>> emitter.listener_count()
        1
    """

    def __init__(self):
        self._listeners: Dict[FormEventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: FormEventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: FormEventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe a wildcard listener. Unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners.

        Type-specific listeners run first, then wildcard listeners. A listener
        that raises is logged and skipped; the emitting operation carries on.
        """
        listeners = list(self._listeners.get(event.type, [])) + list(self._any_listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed on %s for field '%s'",
                    listener, event.type.value, event.field_name,
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[FormEventType] = None) -> int:
        """Count registered listeners, for one type or (default) all of them."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(ls) for ls in self._listeners.values())


__all__ = [
    "FormEvent",
    "EventListener",
    "EventEmitter",
]
