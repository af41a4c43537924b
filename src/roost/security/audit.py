"""Security audit events for the admin.

Login attempts, rejected tokens, and destructive admin operations are
reported as ``SecurityEvent`` records. Nothing is delivered until an
application registers a sink; ``log_security_events`` installs one that
writes to the ``roost.security`` logger.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time
from typing import Any

logger = logging.getLogger("roost.security")


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """A structured security event."""

    name: str
    timestamp: float = field(default_factory=time)
    path: str | None = None
    method: str | None = None
    client: str | None = None
    user_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


type SecurityEventSink = Callable[[SecurityEvent], None]


_sink_lock = threading.Lock()
_sink: SecurityEventSink | None = None


def set_security_event_sink(sink: SecurityEventSink | None) -> None:
    """Set a process-wide sink for security events.

    Pass ``None`` to disable event delivery.
    """
    global _sink
    with _sink_lock:
        _sink = sink


def log_security_events(level: int = logging.INFO) -> None:
    """Route security events to the ``roost.security`` logger."""

    def _log(event: SecurityEvent) -> None:
        logger.log(
            level,
            "%s path=%s user=%s client=%s details=%s",
            event.name,
            event.path,
            event.user_id,
            event.client,
            event.details,
        )

    set_security_event_sink(_log)


def emit_security_event(
    name: str,
    *,
    request: Any | None = None,
    user_id: object | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit a best-effort security event to the configured sink."""
    with _sink_lock:
        sink = _sink
    if sink is None:
        return

    path = method = client = None
    if request is not None:
        path = getattr(request, "path", None)
        method = getattr(request, "method", None)
        client = getattr(request, "client_host", None)

    sink(
        SecurityEvent(
            name=name,
            path=path,
            method=method,
            client=client,
            user_id=str(user_id) if user_id is not None else None,
            details=details or {},
        )
    )
