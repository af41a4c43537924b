"""Single-object delete: GET asks for confirmation, POST deletes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from roost.admin.actions import confirmation_message
from roost.context import current_user
from roost.errors import ObjectNotFound, PermissionDenied
from roost.http.response import Redirect
from roost.security.audit import emit_security_event
from roost.views import FORM_METHODS, require_method

if TYPE_CHECKING:
    from roost.admin.options import ModelAdmin
    from roost.admin.site import AdminSite
    from roost.http.request import Request
    from roost.http.response import Response

DELETE_TEMPLATE = "admin/delete_confirmation.html"


async def delete_view(request: Request, site: AdminSite, model_admin: ModelAdmin) -> Response:
    require_method(request, FORM_METHODS)
    pk = request.path_params["id"]
    record = await model_admin.get_object(pk)
    if record is None:
        raise ObjectNotFound
    if not model_admin.has_delete_permission(request, record):
        raise PermissionDenied

    if request.method != "POST":
        context = {
            "title": "Are you sure?",
            "model_admin": model_admin,
            "meta": model_admin.meta,
            "object_label": model_admin.object_label(record),
            "object_url": model_admin.change_url(pk),
            "form_action": model_admin.delete_url(pk),
            "message": confirmation_message("delete", 1, model_admin.meta.verbose_name.lower()),
        }
        return site.render(request, DELETE_TEMPLATE, context)

    if not await model_admin.delete_model(pk):
        raise ObjectNotFound
    emit_security_event(
        "admin.object.deleted",
        request=request,
        user_id=current_user().user_id,
        details={"model": model_admin.meta.model_name, "pks": [pk], "count": 1},
    )
    return Redirect(model_admin.changelist_url)
