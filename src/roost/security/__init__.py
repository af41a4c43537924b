"""Security helpers: password hashing, redirect safety, audit events."""

from roost.security.audit import (
    SecurityEvent,
    emit_security_event,
    log_security_events,
    set_security_event_sink,
)
from roost.security.passwords import hash_password, needs_rehash, verify_password
from roost.security.urls import is_safe_url, safe_next

__all__ = [
    "SecurityEvent",
    "emit_security_event",
    "hash_password",
    "is_safe_url",
    "log_security_events",
    "needs_rehash",
    "safe_next",
    "set_security_event_sink",
    "verify_password",
]
