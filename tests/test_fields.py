"""Tests for model field reflection."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from roost.admin.fields import (
    FieldKind,
    humanize,
    list_display_fields,
    model_field,
    reflect_model,
)
from roost.errors import ConfigurationError


@dataclass
class BlogPostModel:
    title: str = model_field(max_length=120, help_text="Shown in listings")
    id: int | None = model_field(primary_key=True, default=None)
    status: str = model_field(choices=[("d", "Draft"), ("p", "Published")], default="d")
    featured: bool = False
    rating: float = 0.0
    price: Decimal | None = None
    published_on: date | None = None
    updated_at: datetime | None = model_field(auto_now=True, default=None)
    ref: UUID | None = None
    body: str = model_field(kind=FieldKind.TEXT, blank=True, default="")


def _fields() -> dict:
    _, fields = reflect_model(BlogPostModel)
    return {f.name: f for f in fields}


class TestHumanize:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("ArticleModel", "Article"),
            ("blog_post", "Blog post"),
            ("BlogPost", "Blog Post"),
            ("HTTPServer", "HTTP Server"),
            ("Model", "Model"),
        ],
    )
    def test_humanize(self, name: str, expected: str) -> None:
        assert humanize(name) == expected


class TestReflectModel:
    def test_meta(self) -> None:
        meta, _ = reflect_model(BlogPostModel)
        assert meta.name == "BlogPostModel"
        assert meta.model_name == "blogpostmodel"
        assert meta.verbose_name == "Blog Post"
        assert meta.verbose_name_plural == "Blog Posts"
        assert meta.primary_key == "id"

    def test_field_order(self) -> None:
        _, fields = reflect_model(BlogPostModel)
        assert [f.name for f in fields][:3] == ["title", "id", "status"]

    def test_kinds(self) -> None:
        fields = _fields()
        assert fields["id"].kind is FieldKind.AUTO
        assert fields["title"].kind is FieldKind.CHAR
        assert fields["featured"].kind is FieldKind.BOOLEAN
        assert fields["rating"].kind is FieldKind.FLOAT
        assert fields["price"].kind is FieldKind.DECIMAL
        assert fields["published_on"].kind is FieldKind.DATE
        assert fields["updated_at"].kind is FieldKind.DATETIME
        assert fields["ref"].kind is FieldKind.UUID
        assert fields["body"].kind is FieldKind.TEXT

    def test_primary_key_not_editable(self) -> None:
        pk = _fields()["id"]
        assert pk.primary_key
        assert pk.auto
        assert not pk.editable
        assert not pk.is_form_field

    def test_auto_now_not_editable(self) -> None:
        assert not _fields()["updated_at"].is_form_field

    def test_metadata_carried(self) -> None:
        title = _fields()["title"]
        assert title.max_length == 120
        assert title.help_text == "Shown in listings"
        assert title.verbose_name == "Title"

    def test_optional_is_nullable(self) -> None:
        fields = _fields()
        assert fields["published_on"].null
        assert not fields["title"].null

    def test_required(self) -> None:
        fields = _fields()
        assert fields["title"].is_required
        assert not fields["featured"].is_required
        assert not fields["published_on"].is_required
        assert not fields["body"].is_required

    def test_defaults(self) -> None:
        fields = _fields()
        assert not fields["title"].has_default
        assert fields["status"].has_default
        assert fields["status"].default == "d"
        assert not fields["published_on"].has_default

    def test_widgets(self) -> None:
        fields = _fields()
        assert fields["title"].widget == "text"
        assert fields["status"].widget == "select"
        assert fields["featured"].widget == "checkbox"
        assert fields["rating"].widget == "number"
        assert fields["published_on"].widget == "date"
        assert fields["body"].widget == "textarea"

    def test_admin_meta_overrides(self) -> None:
        @dataclass
        class Person:
            id: int = 0
            name: str = ""

            class AdminMeta:
                verbose_name_plural = "People"
                ordering = ("name",)

        meta, _ = reflect_model(Person)
        assert meta.verbose_name == "Person"
        assert meta.verbose_name_plural == "People"
        assert meta.ordering == ("name",)

    def test_primary_key_falls_back_to_first_field(self) -> None:
        @dataclass
        class Setting:
            key: str = ""
            value: str = ""

        meta, _ = reflect_model(Setting)
        assert meta.primary_key == "key"

    def test_not_a_dataclass(self) -> None:
        class Plain:
            pass

        with pytest.raises(ConfigurationError, match="not a dataclass"):
            reflect_model(Plain)


class TestDisplay:
    def test_boolean(self) -> None:
        featured = _fields()["featured"]
        assert featured.display(True) == "Yes"
        assert featured.display(False) == "No"

    def test_choice_label(self) -> None:
        assert _fields()["status"].display("p") == "Published"

    def test_empty(self) -> None:
        assert _fields()["title"].display(None) == "-"
        assert _fields()["title"].display("", empty="(none)") == "(none)"

    def test_dates(self) -> None:
        fields = _fields()
        assert fields["published_on"].display(date(2024, 5, 6)) == "2024-05-06"
        assert fields["updated_at"].display(datetime(2024, 5, 6, 7, 8, 9)) == "2024-05-06 07:08"

    def test_list_display_excludes_text(self) -> None:
        _, fields = reflect_model(BlogPostModel)
        assert "body" not in [f.name for f in list_display_fields(fields)]
