"""Bulk actions for the changelist.

An action is a callable ``(model_admin, request, pks) -> int | None``,
sync or async, that operates on the selected primary keys and returns
the number of affected records. ``ModelAdmin.actions`` lists actions by
name (methods on the ModelAdmin, or module-level functions registered
with ``@action``) or as callables directly::

    @action(description="Mark selected articles as published")
    async def publish(model_admin, request, pks):
        for pk in pks:
            await model_admin.store.update(pk, {"published": True})
        return len(pks)

    class ArticleAdmin(ModelAdmin):
        actions = ("delete_selected", publish)

Actions whose name mentions delete, remove, or purge are dangerous and
need an explicit confirmation step before they run.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from roost.context import current_user
from roost.security.audit import emit_security_event

if TYPE_CHECKING:
    from roost.admin.options import ModelAdmin
    from roost.http.request import Request

type ActionFunc = Callable[..., Any]

ACTION_PARAM = "action"
SELECTED_PARAM = "_selected_action"
CONFIRM_PARAM = "post"

_DANGEROUS = ("delete", "remove", "purge")
_VOWEL_Y = re.compile(r"[aeiou]y$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class AdminAction:
    """A resolved bulk action, ready to list in the action dropdown."""

    name: str
    func: ActionFunc
    label: str

    @property
    def is_dangerous(self) -> bool:
        return is_dangerous_action(self.name)


def action(*, description: str | None = None, name: str | None = None) -> Callable[[ActionFunc], ActionFunc]:
    """Attach a label (and optionally a name) to an action callable."""

    def decorator(func: ActionFunc) -> ActionFunc:
        if description is not None:
            func.short_description = description  # type: ignore[attr-defined]
        if name is not None:
            func.action_name = name  # type: ignore[attr-defined]
        return func

    return decorator


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def humanize_action_name(name: str) -> str:
    """``delete_selected`` -> ``Delete Selected``."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split("_"))


def is_dangerous_action(name: str) -> bool:
    lowered = name.lower()
    return any(pattern in lowered for pattern in _DANGEROUS)


def action_verb(name: str) -> str:
    first = name.split("_")[0]
    if not first:
        return "Perform"
    return first[:1].upper() + first[1:].lower()


def pluralize(word: str) -> str:
    """English plural for counts in confirmation messages."""
    if word.endswith(("s", "x", "ch")):
        return f"{word}es"
    if word.endswith("y") and not _VOWEL_Y.search(word):
        return f"{word[:-1]}ies"
    return f"{word}s"


def item_text(count: int, noun: str) -> str:
    return f"1 {noun}" if count == 1 else f"{count} {pluralize(noun)}"


def confirmation_message(name: str, count: int, noun: str) -> str:
    """The question shown before a bulk action runs."""
    items = item_text(count, noun)
    lowered = name.lower()
    if "delete" in lowered:
        return f"Are you sure you want to delete {items}? This action cannot be undone."
    if "remove" in lowered:
        return f"Are you sure you want to remove {items}? This action cannot be undone."
    if "purge" in lowered:
        return f"Are you sure you want to permanently purge {items}? This action cannot be undone."
    return f"Are you sure you want to {action_verb(name).lower()} {items}?"


def validate_action_selection(name: str | None, selected: Sequence[str] | None) -> str | None:
    """Error message for an unusable action submission, or None."""
    if not name or not name.strip():
        return "No action selected"
    if not selected:
        return "No items selected"
    return None


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_action(model_admin: ModelAdmin, entry: str | ActionFunc) -> AdminAction:
    """Turn an entry of ``ModelAdmin.actions`` into an ``AdminAction``.

    The resolved ``func`` is always called as ``func(request, pks)``:
    ModelAdmin methods are already bound, anything else gets the
    ModelAdmin bound as its first argument.

    Raises:
        LookupError: If a named action is neither a ModelAdmin method
            nor a built-in.
    """
    if isinstance(entry, str):
        name = entry
        method = getattr(model_admin, entry, None)
        if callable(method):
            target, func = method, method
        elif entry in _BUILTINS:
            target = _BUILTINS[entry]
            func = partial(target, model_admin)
        else:
            msg = f"Unknown admin action {entry!r} on {type(model_admin).__name__}"
            raise LookupError(msg)
    else:
        target = entry
        name = getattr(entry, "action_name", None) or entry.__name__
        func = partial(entry, model_admin)
    label = getattr(target, "short_description", None) or humanize_action_name(name)
    return AdminAction(name=name, func=func, label=label)


# ---------------------------------------------------------------------------
# Built-in actions
# ---------------------------------------------------------------------------


@action(description="Delete selected")
async def delete_selected(model_admin: ModelAdmin, request: Request, pks: Sequence[str]) -> int:
    """Delete the selected records in one store call."""
    deleted = await model_admin.store.delete_many(list(pks))
    emit_security_event(
        "admin.object.deleted",
        request=request,
        user_id=current_user().user_id,
        details={"model": model_admin.meta.model_name, "pks": list(pks), "count": deleted},
    )
    return deleted


_BUILTINS: dict[str, ActionFunc] = {
    "delete_selected": delete_selected,
}
