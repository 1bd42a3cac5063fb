"""Tracking events emitted by the audit workflows.

The pipeline and the application orchestrator report user actions and
audit outcomes to an injected sink.  Sinks are optional; the default one
only writes to the log.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

SCHEMA_AUDIT_CLICKED = "schema_audit_clicked"
POST_AUDIT_CLICKED = "post_audit_clicked"
CONNECT_WORDPRESS_CLICKED = "connect_wordpress_clicked"
PUBLISH_SCHEMA_CLICKED = "publish_schema_clicked"
AUDIT_COMPLETED = "audit_completed"


class EventSink(Protocol):
    def track(self, event_name: str, properties: dict[str, Any]) -> None:
        ...


class LoggingEventSink:
    """Write every event to the log at INFO."""

    def track(self, event_name: str, properties: dict[str, Any]) -> None:
        logger.info("event %s %s", event_name, properties)


class RecordingEventSink:
    """Keep events in memory, mostly useful for tests and the CLI summary."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def track(self, event_name: str, properties: dict[str, Any]) -> None:
        self.events.append((event_name, dict(properties)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit(
    sink: Optional[EventSink],
    event_name: str,
    action: Optional[str] = None,
    **properties: Any,
) -> None:
    """Send an event to *sink*; sink errors are logged, never raised."""
    if sink is None:
        return
    payload = dict(properties)
    payload["timestamp"] = _timestamp()
    if action:
        payload["action"] = action
    try:
        sink.track(event_name, payload)
    except Exception as exc:
        logger.error("Tracking error for %s: %s", event_name, exc)
