"""Add and change forms.

GET renders the form. POST validates; invalid input re-renders the form
with the submitted values and a 422. A store failure while saving is
logged and re-renders with a generic message and a 500. Success
redirects: ``_continue`` back to the object, ``_addanother`` to a blank
add form, otherwise to the changelist.

Relation fields offer the related model's records as choices, looked up
once per request; submitted keys outside those choices are rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from roost.admin.fields import FieldInfo, FieldKind, split_keys
from roost.errors import ObjectNotFound, PermissionDenied, ValidationFailed
from roost.http.response import Redirect
from roost.views import FORM_METHODS, require_method

if TYPE_CHECKING:
    from roost.admin.options import ModelAdmin
    from roost.admin.site import AdminSite
    from roost.http.request import Request
    from roost.http.response import Response

logger = logging.getLogger("roost.admin")

CHANGE_FORM_TEMPLATE = "admin/change_form.html"

FORM_ERROR = "Please correct the errors below."
SAVE_ERROR = "An error occurred while saving."

INPUT_WIDGETS = frozenset({"text", "number", "date", "datetime-local"})


@dataclass(frozen=True, slots=True)
class FormField:
    """One input on the change form.

    ``related`` holds the ``(key, label)`` choices of a relation field;
    a relation without them is edited as a plain key input.
    """

    info: FieldInfo
    value: str
    errors: tuple[str, ...] = ()
    readonly: bool = False
    related: tuple[tuple[str, str], ...] | None = None

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def label(self) -> str:
        return self.info.verbose_name

    @property
    def widget(self) -> str:
        if self.readonly:
            return "readonly"
        if self.info.is_relation and self.related is None:
            return "text"
        return self.info.widget

    @property
    def required(self) -> bool:
        return self.info.is_required and not self.info.has_default

    @property
    def input_type(self) -> str | None:
        """The ``<input type>`` for plain input widgets, else None."""
        widget = self.widget
        return widget if widget in INPUT_WIDGETS else None

    @property
    def checked(self) -> bool:
        return self.info.kind is FieldKind.BOOLEAN and self.value.lower() in ("true", "on", "1")

    @property
    def choices(self) -> tuple[tuple[str, str], ...]:
        if self.info.is_relation:
            return self.related or ()
        return tuple((str(v), label) for v, label in self.info.choices or ())

    @property
    def options(self) -> tuple[tuple[str, str, bool], ...]:
        """``(value, label, selected)`` for select widgets."""
        selected = set(split_keys(self.value)) if self.info.is_multiple else {self.value}
        return tuple((value, label, value in selected) for value, label in self.choices)


def _form_fields(
    model_admin: ModelAdmin,
    values: Mapping[str, str],
    errors: Mapping[str, list[str]] | None = None,
    relation_choices: Mapping[str, tuple[tuple[str, str], ...]] | None = None,
) -> list[FormField]:
    errors = errors or {}
    relation_choices = relation_choices or {}
    return [
        FormField(
            info=info,
            value=values.get(info.name) or "",
            errors=tuple(errors.get(info.name, ())),
            readonly=model_admin.is_field_readonly(info.name),
            related=relation_choices.get(info.name),
        )
        for info in model_admin.get_form_fields()
    ]


def _render_form(
    request: Request,
    site: AdminSite,
    model_admin: ModelAdmin,
    *,
    pk: str | None,
    record: Any | None,
    values: Mapping[str, str],
    relation_choices: Mapping[str, tuple[tuple[str, str], ...]],
    errors: Mapping[str, list[str]] | None = None,
    global_error: str | None = None,
    status: int = 200,
) -> Response:
    verb = "Add" if pk is None else "Change"
    context = {
        "title": f"{verb} {model_admin.meta.verbose_name}",
        "model_admin": model_admin,
        "meta": model_admin.meta,
        "is_add": pk is None,
        "object_id": pk,
        "object_label": model_admin.object_label(record) if record is not None else None,
        "form_action": model_admin.add_url if pk is None else model_admin.change_url(pk),
        "delete_url": model_admin.delete_url(pk) if pk is not None else None,
        "can_delete": record is not None and model_admin.has_delete_permission(request, record),
        "fields": _form_fields(model_admin, values, errors, relation_choices),
        "global_error": global_error,
    }
    return site.render(request, CHANGE_FORM_TEMPLATE, context, status=status)


def _success_url(model_admin: ModelAdmin, form: Mapping[str, str], record: Any) -> str:
    if "_continue" in form and model_admin.save_continue:
        return model_admin.change_url(model_admin.get_pk(record))
    if "_addanother" in form:
        return model_admin.add_url
    return model_admin.changelist_url


async def _changeform(request: Request, site: AdminSite, model_admin: ModelAdmin, pk: str | None) -> Response:
    require_method(request, FORM_METHODS)

    record = None
    if pk is not None:
        record = await model_admin.get_object(pk)
        if record is None:
            raise ObjectNotFound
        if not model_admin.has_view_permission(request, record):
            raise PermissionDenied
    elif not model_admin.has_add_permission(request):
        raise PermissionDenied

    relation_choices = await model_admin.relation_choices()
    if request.method != "POST":
        values = model_admin.initial_form_values(record)
        return _render_form(
            request, site, model_admin,
            pk=pk, record=record, values=values, relation_choices=relation_choices,
        )

    if pk is not None and not model_admin.has_change_permission(request, record):
        raise PermissionDenied

    form = await request.form()
    submitted = model_admin.form_values(form)
    try:
        cleaned = model_admin.full_clean(submitted, relation_choices)
    except ValidationFailed as exc:
        return _render_form(
            request, site, model_admin,
            pk=pk, record=record, values=submitted, relation_choices=relation_choices, errors=exc.errors,
            global_error=FORM_ERROR, status=exc.status,
        )

    target_pk = None if ("_saveasnew" in form and model_admin.save_as_new) else pk
    try:
        saved = await model_admin.save_model(target_pk, cleaned)
    except Exception:
        logger.exception("Saving %s %s failed", model_admin.meta.model_name, target_pk or "(new)")
        return _render_form(
            request, site, model_admin,
            pk=pk, record=record, values=submitted, relation_choices=relation_choices,
            global_error=SAVE_ERROR, status=500,
        )
    if saved is None:
        raise ObjectNotFound

    logger.info("%s %s %s", "Added" if target_pk is None else "Changed", model_admin.meta.model_name, model_admin.get_pk(saved))
    return Redirect(_success_url(model_admin, form, saved))


async def add_view(request: Request, site: AdminSite, model_admin: ModelAdmin) -> Response:
    return await _changeform(request, site, model_admin, None)


async def change_view(request: Request, site: AdminSite, model_admin: ModelAdmin) -> Response:
    return await _changeform(request, site, model_admin, request.path_params["id"])
