"""
Change notifications for connected POS clients.

Mutating routes call ``notify(resource, action, id)`` once their write has been
committed. Delivery is best effort: the transport (websocket fan-out, message
bus, ...) subscribes a listener here, and a failing listener never affects the
request that triggered it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


class Resource(str, Enum):
    register_sessions = "register_sessions"
    payments = "payments"


class Action(str, Enum):
    create = "create"
    update = "update"
    delete = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    resource: str
    action: str
    id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_message(self) -> dict:
        return {
            "type": "sync",
            "resource": self.resource,
            "action": self.action,
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
        }


Listener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, resource: str, action: str, record_id: Optional[str] = None) -> int:
        """Dispatch an event to every listener and return how many received it."""
        event = ChangeEvent(
            resource=getattr(resource, "value", resource),
            action=getattr(action, "value", action),
            id=record_id,
        )
        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Change listener failed for %s.%s id=%s", event.resource, event.action, record_id)
                continue
            delivered += 1
        logger.debug("Broadcast %s.%s id=%s to %s listener(s)", event.resource, event.action, record_id, delivered)
        return delivered


notifier = ChangeNotifier()
