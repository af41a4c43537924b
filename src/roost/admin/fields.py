"""Model field reflection.

Models are plain dataclasses. Admin-relevant metadata (verbose name,
choices, max length, primary key, editability) rides along in the
dataclass field metadata via ``model_field``. ``reflect_model`` turns a
model class into a tuple of ``FieldInfo`` plus a ``ModelMeta``, once, at
registration time. Views and the query pipeline only ever see the
reflected, immutable description.

Usage::

    @dataclass
    class ArticleModel:
        id: int = model_field(primary_key=True, default=None)
        title: str = model_field(max_length=200, default="")
        status: str = model_field(choices=[("draft", "Draft"), ("live", "Live")], default="draft")
        published: bool = False
        created: date | None = None
        author: int | None = model_field(related=AuthorModel, default=None)
        tags: list[int] = model_field(related=TagModel, default_factory=list)

    meta, fields = reflect_model(ArticleModel)

Relation fields store related primary keys; the admin resolves them to
labels through the related model's registered store.
"""

from __future__ import annotations

import dataclasses
import re
import types
from collections.abc import Iterable, Mapping
from dataclasses import MISSING, dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from functools import cache
from typing import Any, Union, get_args, get_origin, get_type_hints
from uuid import UUID

from roost.errors import ConfigurationError

_METADATA_KEY = "roost"


class FieldKind(StrEnum):
    """Closed set of field shapes the admin knows how to list, filter, and edit."""

    AUTO = "auto"
    CHAR = "char"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    UUID = "uuid"
    FOREIGN_KEY = "foreignkey"
    ONE_TO_ONE = "onetoone"
    MANY_TO_MANY = "manytomany"


_KIND_BY_TYPE: dict[type, FieldKind] = {
    bool: FieldKind.BOOLEAN,
    int: FieldKind.INTEGER,
    float: FieldKind.FLOAT,
    Decimal: FieldKind.DECIMAL,
    datetime: FieldKind.DATETIME,
    date: FieldKind.DATE,
    str: FieldKind.CHAR,
    UUID: FieldKind.UUID,
}

# Fields too large to be useful as list columns.
_WIDE_KINDS = frozenset({FieldKind.TEXT})

RELATION_KINDS = frozenset({FieldKind.FOREIGN_KEY, FieldKind.ONE_TO_ONE, FieldKind.MANY_TO_MANY})

# Attributes tried, in order, when naming a related record.
LABEL_FIELDS = ("name", "title", "label", "email", "username")

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True, slots=True)
class FieldOptions:
    """Per-field admin metadata, stored in ``dataclasses.field(metadata=...)``."""

    verbose_name: str | None = None
    help_text: str | None = None
    max_length: int | None = None
    choices: tuple[tuple[Any, str], ...] | None = None
    primary_key: bool = False
    editable: bool = True
    blank: bool = False
    kind: FieldKind | None = None
    auto_now: bool = False
    auto_now_add: bool = False
    related: type | None = None
    display_field: str | None = None


def model_field(
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    verbose_name: str | None = None,
    help_text: str | None = None,
    max_length: int | None = None,
    choices: Iterable[tuple[Any, str]] | None = None,
    primary_key: bool = False,
    editable: bool = True,
    blank: bool = False,
    kind: FieldKind | None = None,
    auto_now: bool = False,
    auto_now_add: bool = False,
    related: type | None = None,
    display_field: str | None = None,
) -> Any:
    """A ``dataclasses.field`` carrying admin metadata.

    *related* makes the field a relation to another registered model.
    The field holds the related primary key, or a list of them when it
    is annotated as a sequence (many-to-many). Pass
    ``kind=FieldKind.ONE_TO_ONE`` to mark a single relation as one-to-one.
    *display_field* names the related attribute shown in selects and
    list columns.
    """
    options = FieldOptions(
        verbose_name=verbose_name,
        help_text=help_text,
        max_length=max_length,
        choices=tuple(choices) if choices is not None else None,
        primary_key=primary_key,
        editable=editable,
        blank=blank,
        kind=kind,
        auto_now=auto_now,
        auto_now_add=auto_now_add,
        related=related,
        display_field=display_field,
    )
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata={_METADATA_KEY: options},
    )


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """Reflected description of one model field."""

    name: str
    kind: FieldKind
    verbose_name: str
    help_text: str | None = None
    max_length: int | None = None
    choices: tuple[tuple[Any, str], ...] | None = None
    primary_key: bool = False
    editable: bool = True
    auto: bool = False
    null: bool = False
    blank: bool = False
    has_default: bool = False
    default: Any = None
    related_model: type | None = None
    display_field: str | None = None

    @property
    def is_relation(self) -> bool:
        return self.kind in RELATION_KINDS

    @property
    def is_multiple(self) -> bool:
        """Many-to-many: the value is a list of related keys."""
        return self.kind is FieldKind.MANY_TO_MANY

    @property
    def key_kind(self) -> FieldKind | None:
        """Kind of the related model's primary key."""
        if self.related_model is None:
            return None
        return primary_key_kind(self.related_model)

    @property
    def is_required(self) -> bool:
        if self.kind is FieldKind.BOOLEAN or self.is_multiple:
            return False
        return not (self.blank or self.null or self.primary_key)

    @property
    def is_form_field(self) -> bool:
        """Shown and validated on the change form."""
        return self.editable and not self.auto and not self.primary_key

    @property
    def widget(self) -> str:
        """Input widget name used by the change form template."""
        if self.choices and self.kind is not FieldKind.BOOLEAN:
            return "select"
        return _WIDGETS.get(self.kind, "text")

    def display(self, value: Any, empty: str = "-", labels: Mapping[str, str] | None = None) -> str:
        """Human-readable rendering of *value* for list and detail views.

        *labels* maps related keys to record labels for relation fields;
        keys without a label are shown as-is.
        """
        if value is None or value == "":
            return empty
        if self.is_relation:
            labels = labels or {}
            keys = value if self.is_multiple else [value]
            return ", ".join(labels.get(str(k), str(k)) for k in keys) or empty
        if self.kind is FieldKind.BOOLEAN:
            return "Yes" if value else "No"
        if self.choices:
            for choice_value, label in self.choices:
                if choice_value == value or str(choice_value) == str(value):
                    return label
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M")
        if isinstance(value, date):
            return value.isoformat()
        return str(value)


_WIDGETS: dict[FieldKind, str] = {
    FieldKind.AUTO: "readonly",
    FieldKind.TEXT: "textarea",
    FieldKind.INTEGER: "number",
    FieldKind.FLOAT: "number",
    FieldKind.DECIMAL: "number",
    FieldKind.BOOLEAN: "checkbox",
    FieldKind.DATE: "date",
    FieldKind.DATETIME: "datetime-local",
    FieldKind.FOREIGN_KEY: "select",
    FieldKind.ONE_TO_ONE: "select",
    FieldKind.MANY_TO_MANY: "multiselect",
}


@dataclass(frozen=True, slots=True)
class ModelMeta:
    """Model-level names derived once at registration."""

    name: str
    model_name: str  # lowercased, used in URLs and route names
    verbose_name: str
    verbose_name_plural: str
    primary_key: str
    ordering: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def humanize(name: str) -> str:
    """``ArticleModel`` -> ``Article``; ``blog_post`` -> ``Blog post``."""
    if name.endswith("Model") and name != "Model":
        name = name[: -len("Model")]
    words = _CAMEL_BOUNDARY.sub(" ", name).replace("_", " ").split()
    if not words:
        return name
    text = " ".join(words)
    return text[0].upper() + text[1:]


def pluralize(word: str) -> str:
    """Naive English plural: ``Article`` -> ``Articles``."""
    return f"{word}s"


# ---------------------------------------------------------------------------
# Reflection
# ---------------------------------------------------------------------------


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin is types.UnionType or origin is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        nullable = len(args) != len(get_args(annotation))
        return (args[0] if len(args) == 1 else Any), nullable
    return annotation, False


def _relation_kind(annotation: Any, options: FieldOptions) -> FieldKind:
    if options.kind is not None and options.kind not in RELATION_KINDS:
        msg = f"A related field cannot have kind {options.kind.value!r}"
        raise ConfigurationError(msg)
    if get_origin(annotation) in _SEQUENCE_TYPES or annotation in _SEQUENCE_TYPES:
        return FieldKind.MANY_TO_MANY
    if options.kind is FieldKind.MANY_TO_MANY:
        msg = "A many-to-many field must be annotated as a list of keys"
        raise ConfigurationError(msg)
    return options.kind or FieldKind.FOREIGN_KEY


def _kind_for(annotation: Any, options: FieldOptions) -> FieldKind:
    if options.related is not None:
        return _relation_kind(annotation, options)
    if options.kind in RELATION_KINDS:
        msg = f"Field kind {options.kind.value!r} needs model_field(related=...)"
        raise ConfigurationError(msg)
    if options.kind is not None:
        return options.kind
    if options.primary_key and annotation is int:
        return FieldKind.AUTO
    if isinstance(annotation, type):
        for py_type, kind in _KIND_BY_TYPE.items():
            if issubclass(annotation, py_type):
                return kind
    return FieldKind.CHAR


def reflect_field(dc_field: dataclasses.Field[Any], annotation: Any) -> FieldInfo:
    """Build the ``FieldInfo`` for one dataclass field."""
    options: FieldOptions = dc_field.metadata.get(_METADATA_KEY, FieldOptions())
    py_type, nullable = _unwrap_optional(annotation)
    kind = _kind_for(py_type, options)
    has_default = dc_field.default is not MISSING or dc_field.default_factory is not MISSING
    auto = kind is FieldKind.AUTO or options.auto_now or options.auto_now_add
    return FieldInfo(
        name=dc_field.name,
        kind=kind,
        verbose_name=options.verbose_name or humanize(dc_field.name),
        help_text=options.help_text,
        max_length=options.max_length,
        choices=options.choices,
        primary_key=options.primary_key,
        editable=options.editable and not auto,
        auto=auto,
        null=nullable,
        blank=options.blank,
        has_default=has_default and dc_field.default is not None,
        default=dc_field.default if dc_field.default is not MISSING else None,
        related_model=options.related,
        display_field=options.display_field,
    )


def reflect_model(
    model: type,
    *,
    verbose_name: str | None = None,
    verbose_name_plural: str | None = None,
    ordering: Iterable[str] = (),
) -> tuple[ModelMeta, tuple[FieldInfo, ...]]:
    """Reflect a dataclass model into its ``ModelMeta`` and field tuple.

    Raises:
        ConfigurationError: If *model* is not a dataclass.
    """
    if not dataclasses.is_dataclass(model):
        msg = f"{model!r} is not a dataclass; admin models must be dataclasses"
        raise ConfigurationError(msg)

    hints = get_type_hints(model)
    fields = tuple(reflect_field(f, hints.get(f.name, Any)) for f in dataclasses.fields(model))
    primary_key = next((f.name for f in fields if f.primary_key), None)
    if primary_key is None:
        primary_key = "id" if any(f.name == "id" for f in fields) else fields[0].name

    meta_attrs: Mapping[str, Any] = getattr(model, "AdminMeta", None).__dict__ if hasattr(model, "AdminMeta") else {}
    name = model.__name__
    singular = verbose_name or meta_attrs.get("verbose_name") or humanize(name)
    meta = ModelMeta(
        name=name,
        model_name=name.lower(),
        verbose_name=singular,
        verbose_name_plural=verbose_name_plural or meta_attrs.get("verbose_name_plural") or pluralize(singular),
        primary_key=primary_key,
        ordering=tuple(ordering) or tuple(meta_attrs.get("ordering", ())),
    )
    return meta, fields


def list_display_fields(fields: Iterable[FieldInfo]) -> tuple[FieldInfo, ...]:
    """Fields suitable as list columns (large text excluded)."""
    return tuple(f for f in fields if f.kind not in _WIDE_KINDS)


@cache
def primary_key_kind(model: type) -> FieldKind:
    """Kind of *model*'s primary key field."""
    meta, fields = reflect_model(model)
    return next(f.kind for f in fields if f.name == meta.primary_key)


def split_keys(raw: str | None) -> list[str]:
    """Comma-separated related keys, as submitted by a many-to-many input."""
    return [part.strip() for part in (raw or "").split(",") if part.strip()]
