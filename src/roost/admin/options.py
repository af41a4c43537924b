"""Per-model admin configuration.

Subclass ``ModelAdmin`` to customize how a model appears in the admin::

    class ArticleAdmin(ModelAdmin):
        list_display = ("title", "status", "published", "created")
        search_fields = ("title", "body")
        list_filter = ("published", "status", "created")
        ordering = ("-created",)

    site.register(ArticleModel, ArticleAdmin)

Class attributes are read-only configuration. An instance is created by
the site at registration time, bound to its model, its record store, and
the site's URL prefix, and is shared by every request afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from urllib.parse import quote
from uuid import UUID

from roost.admin.actions import AdminAction, resolve_action
from roost.admin.fields import LABEL_FIELDS, FieldInfo, FieldKind, list_display_fields, reflect_model, split_keys
from roost.errors import NotRegistered, ValidationFailed
from roost.query.filters import filters_for_fields
from roost.query.memory import record_value
from roost.query.pipeline import (
    ChangelistParams,
    PaginationResult,
    apply_filters,
    apply_ordering,
    apply_search,
    paginate,
)
from roost.validation import ValidationResult, validate_fields

if TYPE_CHECKING:
    from roost.admin.site import AdminSite
    from roost.http.params import FormData
    from roost.http.request import Request
    from roost.query.source import RecordSource, RecordStore

logger = logging.getLogger("roost.admin")

_TRUE_VALUES = frozenset({"on", "true", "1", "yes"})

# Columns shown when list_display is not configured.
_DEFAULT_COLUMNS = 6


class ModelAdmin:
    """Admin options and behaviour for one registered model."""

    list_display: Sequence[str] = ()
    list_display_links: Sequence[str] = ()
    search_fields: Sequence[str] = ()
    list_filter: Sequence[str] = ()
    ordering: Sequence[str] = ()
    list_per_page: int = 100
    list_max_show_all: int = 200
    actions: Sequence[Any] = ("delete_selected",)
    fields: Sequence[str] = ()
    readonly_fields: Sequence[str] = ()
    fieldsets: Sequence[tuple[str | None, Mapping[str, Any]]] = ()
    search_placeholder: str = "Search..."
    empty_value_display: str = "-"
    save_continue: bool = True
    save_as_new: bool = False
    date_hierarchy: str | None = None
    verbose_name: str | None = None
    verbose_name_plural: str | None = None

    def __init__(
        self,
        model: type,
        store: RecordStore[Any],
        *,
        url_prefix: str = "/admin",
        site: AdminSite | None = None,
    ) -> None:
        self.model = model
        self.store = store
        self.site = site
        self.url_prefix = url_prefix.rstrip("/")
        self.meta, self.model_fields = reflect_model(
            model,
            verbose_name=self.verbose_name,
            verbose_name_plural=self.verbose_name_plural,
            ordering=self.ordering,
        )
        self._fields_by_name = {f.name: f for f in self.model_fields}
        self.filter_configs = filters_for_fields(self.model_fields, self.list_filter)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} for {self.meta.name}>"

    # -- URLs --

    def _build_url(self, suffix: str) -> str:
        return f"{self.url_prefix}/{self.meta.model_name}/{suffix}"

    @property
    def changelist_url(self) -> str:
        return self._build_url("")

    @property
    def add_url(self) -> str:
        return self._build_url("add/")

    def change_url(self, pk: object) -> str:
        return self._build_url(f"{quote(str(pk), safe='')}/")

    def delete_url(self, pk: object) -> str:
        return self._build_url(f"{quote(str(pk), safe='')}/delete/")

    # -- Fields --

    def get_field(self, name: str) -> FieldInfo | None:
        return self._fields_by_name.get(name)

    @property
    def display_fields(self) -> tuple[str, ...]:
        """Column names for the changelist; also the ordering allow-list."""
        if self.list_display:
            return tuple(self.list_display)
        return tuple(f.name for f in list_display_fields(self.model_fields)[:_DEFAULT_COLUMNS])

    def get_list_display_links(self) -> tuple[str, ...]:
        if self.list_display_links:
            return tuple(self.list_display_links)
        columns = self.display_fields
        return columns[:1]

    def is_field_readonly(self, name: str) -> bool:
        return name in self.readonly_fields

    def get_form_fields(self) -> tuple[FieldInfo, ...]:
        """Fields rendered on the change form, in order.

        ``fields`` selects and orders them when set; otherwise every
        editable field is shown.
        """
        if self.fields:
            return tuple(self._fields_by_name[n] for n in self.fields if n in self._fields_by_name)
        return tuple(f for f in self.model_fields if f.is_form_field)

    def get_editable_fields(self) -> tuple[FieldInfo, ...]:
        return tuple(f for f in self.get_form_fields() if f.is_form_field and not self.is_field_readonly(f.name))

    def column_label(self, name: str) -> str:
        info = self.get_field(name)
        if info is not None:
            return info.verbose_name
        attr = getattr(self, name, None)
        label = getattr(attr, "short_description", None)
        return label or name.replace("_", " ").capitalize()

    def value_for(self, record: Any, name: str) -> Any:
        """Raw value of column *name*: a model field or a ModelAdmin method."""
        if name not in self._fields_by_name:
            attr = getattr(self, name, None)
            if callable(attr):
                return attr(record)
        return record_value(record, name)

    def display_value(self, record: Any, name: str, labels: Mapping[str, Mapping[str, str]] | None = None) -> str:
        """Rendered cell for column *name*.

        *labels* comes from ``relation_labels`` and names related records
        for relation columns.
        """
        value = self.value_for(record, name)
        info = self.get_field(name)
        if info is None:
            return self.empty_value_display if value is None or value == "" else str(value)
        return info.display(value, self.empty_value_display, (labels or {}).get(name))

    def get_pk(self, record: Any) -> Any:
        return record_value(record, self.meta.primary_key)

    def object_label(self, record: Any) -> str:
        """How a single record is named in headings and confirmations."""
        if type(record).__str__ is not object.__str__:
            return str(record)
        return f"{self.meta.verbose_name} {self.get_pk(record)}"

    # -- Relations --

    def related_admin(self, info: FieldInfo) -> ModelAdmin | None:
        """The ModelAdmin for *info*'s related model, if the site has one."""
        if info.related_model is None or self.site is None:
            return None
        try:
            return self.site.get_model_admin(info.related_model)
        except NotRegistered:
            logger.debug("%s.%s relates to unregistered %s", self.meta.name, info.name, info.related_model.__name__)
            return None

    def label_for(self, record: Any, display_field: str | None = None) -> str:
        """How a record is named when another model points at it."""
        for name in (display_field, *LABEL_FIELDS):
            if name is None:
                continue
            value = record_value(record, name)
            if value is not None and value != "":
                return str(value)
        return self.object_label(record)

    async def related_choices(self, info: FieldInfo) -> tuple[tuple[str, str], ...] | None:
        """``(key, label)`` pairs for relation field *info*.

        Records come from the related model's own queryset and ordering.
        None when the related model is not registered on the site.
        """
        related = self.related_admin(info)
        if related is None:
            return None
        source = related.get_ordered_queryset(related.get_queryset(), None)
        return tuple(
            (str(related.get_pk(record)), related.label_for(record, info.display_field))
            for record in await source.fetch()
        )

    async def relation_choices(self) -> dict[str, tuple[tuple[str, str], ...]]:
        """Choices for every relation field on the change form."""
        choices = {}
        for info in self.get_form_fields():
            if info.is_relation:
                resolved = await self.related_choices(info)
                if resolved is not None:
                    choices[info.name] = resolved
        return choices

    async def relation_labels(self, names: Sequence[str]) -> dict[str, dict[str, str]]:
        """Key-to-label maps for the relation columns among *names*."""
        labels = {}
        for name in names:
            info = self.get_field(name)
            if info is not None and info.is_relation:
                resolved = await self.related_choices(info)
                if resolved is not None:
                    labels[name] = dict(resolved)
        return labels

    # -- Query pipeline --

    def get_queryset(self, request: Request | None = None) -> RecordSource[Any]:
        """The base source for the changelist. Override to pre-filter."""
        return self.store.source()

    def get_search_results(self, source: RecordSource[Any], query: str) -> RecordSource[Any]:
        return apply_search(source, query, self.search_fields)

    def get_filtered_queryset(self, source: RecordSource[Any], params: Mapping[str, Any]) -> RecordSource[Any]:
        return apply_filters(source, params, self.filter_configs)

    def get_ordered_queryset(self, source: RecordSource[Any], ordering: str | None) -> RecordSource[Any]:
        return apply_ordering(source, ordering, self.display_fields, self.ordering)

    async def paginate(self, source: RecordSource[Any], page: int, page_size: int | None = None) -> PaginationResult[Any]:
        return await paginate(source, page, page_size or self.list_per_page)

    async def get_changelist(self, request: Request) -> tuple[ChangelistParams, PaginationResult[Any]]:
        """Run the full pipeline for a changelist request."""
        params = ChangelistParams.from_query(request.query)
        source = self.get_queryset(request)
        source = self.get_search_results(source, params.query)
        source = self.get_filtered_queryset(source, request.query)
        source = self.get_ordered_queryset(source, params.ordering)
        page_size = self.list_per_page
        if params.show_all and await source.count() <= self.list_max_show_all:
            page_size = self.list_max_show_all
        return params, await self.paginate(source, params.page, page_size)

    # -- Forms --

    def form_values(self, form: FormData) -> dict[str, str]:
        """Submitted values as strings; many-to-many selections are comma-joined."""
        values = {name: form.get(name) or "" for name in form}
        for info in self.get_editable_fields():
            if info.is_multiple:
                values[info.name] = ",".join(v for v in form.get_list(info.name) if v)
        return values

    def validate_form(self, data: Mapping[str, str]) -> ValidationResult:
        """Check submitted values against field constraints.

        Override to add cross-field checks; call ``super()`` first.
        """
        return validate_fields(data, self.get_editable_fields())

    def clean_form(self, data: Mapping[str, str]) -> dict[str, Any]:
        """Convert validated string values into model values."""
        return {f.name: clean_value(f, data.get(f.name)) for f in self.get_editable_fields()}

    def full_clean(
        self,
        data: Mapping[str, str],
        relation_choices: Mapping[str, Sequence[tuple[str, str]]] | None = None,
    ) -> dict[str, Any]:
        """Validate then clean *data*.

        Relation values must be among *relation_choices* when the field
        has an entry there.

        Raises:
            ValidationFailed: With the per-field messages.
        """
        result = self.validate_form(data)
        for info in self.get_editable_fields():
            choices = (relation_choices or {}).get(info.name)
            if choices is None or info.name in result.errors:
                continue
            allowed = {key for key, _ in choices}
            if any(key not in allowed for key in split_keys(data.get(info.name))):
                result = result.with_error(info.name, "Select a valid choice.")
        if not result:
            raise ValidationFailed(result.errors)
        return self.clean_form(data)

    def initial_form_values(self, record: Any | None = None) -> dict[str, str]:
        """String values to pre-fill the change form with."""
        values: dict[str, str] = {}
        for info in self.get_form_fields():
            value = record_value(record, info.name) if record is not None else info.default
            values[info.name] = format_value(value)
        return values

    # -- Persistence --

    async def get_object(self, pk: str) -> Any | None:
        return await self.store.get(pk)

    async def save_model(self, pk: str | None, values: Mapping[str, Any]) -> Any:
        """Create (``pk`` is None) or update a record; returns it."""
        if pk is None:
            return await self.store.create(values)
        return await self.store.update(pk, values)

    async def delete_model(self, pk: str) -> bool:
        return await self.store.delete(pk)

    # -- Actions --

    def get_actions(self) -> list[AdminAction]:
        return [resolve_action(self, entry) for entry in self.actions]

    def get_action(self, name: str) -> AdminAction | None:
        return next((a for a in self.get_actions() if a.name == name), None)

    # -- Permissions --

    def has_view_permission(self, request: Request, obj: Any | None = None) -> bool:
        return True

    def has_add_permission(self, request: Request) -> bool:
        return True

    def has_change_permission(self, request: Request, obj: Any | None = None) -> bool:
        return True

    def has_delete_permission(self, request: Request, obj: Any | None = None) -> bool:
        return True


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------


def clean_value(info: FieldInfo, raw: str | None) -> Any:
    """Coerce a submitted string for *info*. Assumes it already validated."""
    if info.kind is FieldKind.BOOLEAN:
        return (raw or "").lower() in _TRUE_VALUES
    if info.is_multiple:
        return [related_key(info, key) for key in split_keys(raw)]
    if raw is None or not raw.strip():
        if info.has_default:
            return info.default
        if info.null or info.kind not in (FieldKind.CHAR, FieldKind.TEXT):
            return None
        return ""
    match info.kind:
        case FieldKind.INTEGER:
            return int(raw)
        case FieldKind.FLOAT:
            return float(raw)
        case FieldKind.DECIMAL:
            return Decimal(raw)
        case FieldKind.DATE:
            return date.fromisoformat(raw)
        case FieldKind.DATETIME:
            return datetime.fromisoformat(raw)
        case FieldKind.UUID:
            return UUID(raw)
        case FieldKind.FOREIGN_KEY | FieldKind.ONE_TO_ONE:
            return related_key(info, raw.strip())
    if info.choices:
        for value, _ in info.choices:
            if str(value) == raw:
                return value
    return raw


def format_value(value: Any) -> str:
    """Render a model value into a form input's string value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else ""
    if isinstance(value, list | tuple | set | frozenset):
        return ",".join(format_value(v) for v in value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def related_key(info: FieldInfo, raw: str) -> Any:
    """Coerce a submitted related key to the related primary key's type."""
    match info.key_kind:
        case FieldKind.AUTO | FieldKind.INTEGER:
            return int(raw)
        case FieldKind.UUID:
            return UUID(raw)
    return raw
