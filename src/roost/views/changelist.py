"""Changelist: search, filters, sortable columns, pagination, bulk actions.

GET runs the query pipeline and renders the list. POST runs a bulk
action on the selected rows; dangerous actions first render a
confirmation page and only run once it is submitted with ``post=yes``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from roost._internal.invoke import invoke
from roost.admin.actions import (
    ACTION_PARAM,
    CONFIRM_PARAM,
    SELECTED_PARAM,
    confirmation_message,
    validate_action_selection,
)
from roost.errors import PermissionDenied
from roost.http.response import Redirect
from roost.query.filters import (
    DateRange,
    FilterConfig,
    FilterKind,
    FilterValues,
    clear_filter_params,
    count_active_filters,
    merge_filter_params,
    parse_filter_params,
)
from roost.query.pipeline import ORDER_PARAM, PAGE_PARAM, SEARCH_PARAM, ChangelistParams, PaginationResult, next_ordering
from roost.templating import qs
from roost.views import FORM_METHODS, require_method

if TYPE_CHECKING:
    from collections.abc import Mapping

    from roost.admin.options import ModelAdmin
    from roost.admin.site import AdminSite
    from roost.http.request import Request
    from roost.http.response import Response

logger = logging.getLogger("roost.admin")

CHANGELIST_TEMPLATE = "admin/change_list.html"
CONFIRM_TEMPLATE = "admin/action_confirmation.html"


# ---------------------------------------------------------------------------
# Template context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Column:
    name: str
    label: str
    sort_url: str
    sorted: str | None  # "asc", "desc", or None


@dataclass(frozen=True, slots=True)
class Cell:
    text: str
    link: str | None = None


@dataclass(frozen=True, slots=True)
class Row:
    pk: str
    cells: tuple[Cell, ...]


@dataclass(frozen=True, slots=True)
class FilterChoice:
    label: str
    url: str
    selected: bool


@dataclass(frozen=True, slots=True)
class FilterPanel:
    config: FilterConfig
    choices: tuple[FilterChoice, ...] = ()
    gte: str = ""
    lte: str = ""
    value: str = ""

    @property
    def kind(self) -> str:
        return self.config.kind.value


@dataclass(frozen=True, slots=True)
class PageLink:
    number: int
    url: str
    current: bool


def _columns(model_admin: ModelAdmin, request: Request, params: ChangelistParams) -> list[Column]:
    base = {k: v for k, v in request.query.to_dict().items() if k != PAGE_PARAM}
    columns = []
    for name in model_admin.display_fields:
        if params.ordering == name:
            state = "asc"
        elif params.ordering == f"-{name}":
            state = "desc"
        else:
            state = None
        url = qs(model_admin.changelist_url, base, **{ORDER_PARAM: next_ordering(name, params.ordering)})
        columns.append(Column(name, model_admin.column_label(name), url, state))
    return columns


def _rows(model_admin: ModelAdmin, records: list[Any], labels: Mapping[str, Mapping[str, str]]) -> list[Row]:
    links = set(model_admin.get_list_display_links())
    rows = []
    for record in records:
        pk = model_admin.get_pk(record)
        change_url = model_admin.change_url(pk)
        cells = tuple(
            Cell(model_admin.display_value(record, name, labels), change_url if name in links else None)
            for name in model_admin.display_fields
        )
        rows.append(Row(str(pk), cells))
    return rows


def _filter_panels(model_admin: ModelAdmin, request: Request, values: FilterValues) -> list[FilterPanel]:
    base = request.query.to_dict()
    configs = model_admin.filter_configs
    url = model_admin.changelist_url
    panels = []
    for config in configs:
        current = values.get(config.field)
        match config.kind:
            case FilterKind.BOOLEAN | FilterKind.CHOICE:
                others = {k: v for k, v in values.items() if k != config.field}
                choices = [FilterChoice("All", qs(url, merge_filter_params(base, others, configs)), current is None)]
                for raw, label in config.choices:
                    value: bool | str = (raw == "true") if config.kind is FilterKind.BOOLEAN else raw
                    href = qs(url, merge_filter_params(base, {**others, config.field: value}, configs))
                    choices.append(FilterChoice(label, href, current == value))
                panels.append(FilterPanel(config, tuple(choices)))
            case FilterKind.DATE_RANGE:
                bounds = current if isinstance(current, DateRange) else DateRange()
                panels.append(FilterPanel(config, gte=bounds.gte or "", lte=bounds.lte or ""))
            case _:
                panels.append(FilterPanel(config, value=current if isinstance(current, str) else ""))
    return panels


def _page_url(model_admin: ModelAdmin, request: Request, number: int) -> str:
    return qs(model_admin.changelist_url, request.query.to_dict(), **{PAGE_PARAM: number})


def _page_links(model_admin: ModelAdmin, request: Request, page: PaginationResult[Any]) -> list[PageLink]:
    base = request.query.to_dict()
    return [
        PageLink(n, qs(model_admin.changelist_url, base, **{PAGE_PARAM: n}), n == page.current_page)
        for n in page.page_range
    ]


async def _render_changelist(
    request: Request,
    site: AdminSite,
    model_admin: ModelAdmin,
    *,
    action_error: str | None = None,
) -> Response:
    params, page = await model_admin.get_changelist(request)
    labels = await model_admin.relation_labels(model_admin.display_fields)
    values = parse_filter_params(request.query, model_admin.filter_configs)
    search_base = {k: v for k, v in request.query.to_dict().items() if k not in (SEARCH_PARAM, PAGE_PARAM)}
    context = {
        "title": model_admin.meta.verbose_name_plural,
        "model_admin": model_admin,
        "meta": model_admin.meta,
        "params": params,
        "page": page,
        "columns": _columns(model_admin, request, params),
        "rows": _rows(model_admin, page.records, labels),
        "filters": _filter_panels(model_admin, request, values),
        "active_filter_count": count_active_filters(values),
        "clear_filters_url": qs(model_admin.changelist_url, clear_filter_params(request.query, model_admin.filter_configs)),
        "search_hidden": list(search_base.items()),
        "page_links": _page_links(model_admin, request, page),
        "previous_url": _page_url(model_admin, request, page.previous_page) if page.has_previous else None,
        "next_url": _page_url(model_admin, request, page.next_page) if page.has_next else None,
        "actions": model_admin.get_actions(),
        "action_error": action_error,
        "can_add": model_admin.has_add_permission(request),
    }
    return site.render(request, CHANGELIST_TEMPLATE, context)


# ---------------------------------------------------------------------------
# View
# ---------------------------------------------------------------------------


async def changelist_view(request: Request, site: AdminSite, model_admin: ModelAdmin) -> Response:
    require_method(request, FORM_METHODS)
    if not model_admin.has_view_permission(request):
        raise PermissionDenied
    if request.method != "POST":
        return await _render_changelist(request, site, model_admin)

    form = await request.form()
    name = form.get(ACTION_PARAM) or ""
    selected = form.get_list(SELECTED_PARAM)
    error = validate_action_selection(name, selected)
    action = model_admin.get_action(name) if error is None else None
    if error is None and action is None:
        error = "No action selected"
    if error is not None or action is None:
        return await _render_changelist(request, site, model_admin, action_error=error)

    if action.is_dangerous:
        if not model_admin.has_delete_permission(request):
            raise PermissionDenied
        if form.get(CONFIRM_PARAM) != "yes":
            context = {
                "title": "Are you sure?",
                "model_admin": model_admin,
                "meta": model_admin.meta,
                "action": action,
                "selected": selected,
                "message": confirmation_message(action.name, len(selected), model_admin.meta.verbose_name.lower()),
            }
            return site.render(request, CONFIRM_TEMPLATE, context)
    elif not model_admin.has_change_permission(request):
        raise PermissionDenied

    affected = await invoke(action.func, request, selected)
    logger.info("Action %s on %s affected %s record(s)", action.name, model_admin.meta.model_name, affected)
    return Redirect(model_admin.changelist_url)
