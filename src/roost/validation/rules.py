"""Built-in validation rules for admin change forms.

Each validator is a callable with the signature::

    def rule(value: str) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized validators are factory functions that return a validator.
``rules_for_field`` picks the rules a reflected model field needs.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from roost.admin.fields import FieldInfo, FieldKind

type Validator = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: str) -> str | None:
    """Field must be present and non-empty."""
    if not value or not value.strip():
        return "This field is required."
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String must be at most *n* characters."""

    def check(value: str) -> str | None:
        if len(value) > n:
            return f"Ensure this value has at most {n} characters (it has {len(value)})."
        return None

    return check


def min_length(n: int) -> Validator:
    """String must be at least *n* characters."""

    def check(value: str) -> str | None:
        if len(value) < n:
            return f"Ensure this value has at least {n} characters (it has {len(value)})."
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Structure only, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: str) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not _EMAIL_RE.match(value):
        return "Enter a valid email address."
    return None


def uuid(value: str) -> str | None:
    try:
        UUID(value)
    except ValueError:
        return "Enter a valid UUID."
    return None


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(choices: Iterable[Any]) -> Validator:
    """Value must be one of *choices* (compared as strings)."""
    allowed = frozenset(str(c) for c in choices)

    def check(value: str) -> str | None:
        if value not in allowed:
            return "Select a valid choice."
        return None

    return check


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------


def integer(value: str) -> str | None:
    """Value must be a valid integer."""
    try:
        int(value)
    except (ValueError, TypeError):
        return "Enter a whole number."
    return None


def number(value: str) -> str | None:
    """Value must be a valid number (int, float, or decimal)."""
    try:
        Decimal(value)
    except (InvalidOperation, TypeError):
        return "Enter a number."
    if not Decimal(value).is_finite():
        return "Enter a number."
    return None


def date_value(value: str) -> str | None:
    try:
        date.fromisoformat(value)
    except ValueError:
        return "Enter a valid date."
    return None


def datetime_value(value: str) -> str | None:
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return "Enter a valid date/time."
    return None


def each(rule: Validator) -> Validator:
    """Apply *rule* to every comma-separated part of the value."""

    def check(value: str) -> str | None:
        from roost.admin.fields import split_keys

        for part in split_keys(value):
            error = rule(part)
            if error is not None:
                return error
        return None

    return check


# ---------------------------------------------------------------------------
# Field-driven rules
# ---------------------------------------------------------------------------


def rules_for_field(info: FieldInfo) -> list[Validator]:
    """Validators implied by a reflected model field.

    Presence comes first so an empty required value reports only that.
    """
    from roost.admin.fields import FieldKind

    rules: list[Validator] = []
    if info.is_required and not info.has_default:
        rules.append(required)
    if info.choices and info.kind is not FieldKind.BOOLEAN:
        rules.append(one_of(value for value, _ in info.choices))
    match info.kind:
        case FieldKind.CHAR | FieldKind.TEXT:
            if info.max_length is not None:
                rules.append(max_length(info.max_length))
        case FieldKind.INTEGER:
            rules.append(integer)
        case FieldKind.FLOAT | FieldKind.DECIMAL:
            rules.append(number)
        case FieldKind.DATE:
            rules.append(date_value)
        case FieldKind.DATETIME:
            rules.append(datetime_value)
        case FieldKind.UUID:
            rules.append(uuid)
        case FieldKind.FOREIGN_KEY | FieldKind.ONE_TO_ONE:
            rules.extend(_key_rules(info.key_kind))
        case FieldKind.MANY_TO_MANY:
            rules.extend(each(rule) for rule in _key_rules(info.key_kind))
    return rules


def _key_rules(kind: FieldKind | None) -> list[Validator]:
    from roost.admin.fields import FieldKind

    match kind:
        case FieldKind.AUTO | FieldKind.INTEGER:
            return [integer]
        case FieldKind.UUID:
            return [uuid]
    return []
