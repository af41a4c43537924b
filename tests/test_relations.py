"""Relation fields: foreign keys, one-to-one, and many-to-many."""

from dataclasses import dataclass

import pytest

from roost.admin import ModelAdmin, model_field
from roost.admin.fields import FieldKind, reflect_model
from roost.admin.options import clean_value, format_value
from roost.admin.site import AdminSite
from roost.app import AdminApp
from roost.auth.users import MemoryUserStore
from roost.config import AdminConfig
from roost.errors import ConfigurationError, ValidationFailed
from roost.query import MemoryStore
from roost.testing import TestClient, admin_token, assert_redirect
from roost.validation import rules_for_field, validate

POSTS = "/admin/postmodel/"


@dataclass
class AuthorModel:
    name: str
    email: str = ""
    id: int | None = model_field(primary_key=True, default=None)


@dataclass
class TagModel:
    label: str
    id: int | None = model_field(primary_key=True, default=None)


@dataclass
class EditorModel:
    id: int | None = model_field(primary_key=True, default=None)


@dataclass
class ProfileModel:
    bio: str
    id: int | None = model_field(primary_key=True, default=None)
    author: int | None = model_field(related=AuthorModel, kind=FieldKind.ONE_TO_ONE, default=None)


@dataclass
class PostModel:
    title: str = model_field(max_length=100)
    id: int | None = model_field(primary_key=True, default=None)
    author: int | None = model_field(related=AuthorModel, default=None)
    reviewer: int | None = model_field(related=AuthorModel, display_field="email", default=None)
    tags: list[int] = model_field(related=TagModel, default_factory=list)
    editor: int | None = model_field(related=EditorModel, default=None)


class AuthorAdmin(ModelAdmin):
    ordering = ("name",)


class PostAdmin(ModelAdmin):
    list_display = ("title", "author", "tags")


def _field(model: type, name: str):
    _, fields = reflect_model(model)
    return next(f for f in fields if f.name == name)


@pytest.fixture
def posts() -> MemoryStore[PostModel]:
    return MemoryStore(PostModel, [
        PostModel(title="Dispossessed", id=1, author=1, tags=[1, 2]),
        PostModel(title="Kindred", id=2, author=2),
    ])


@pytest.fixture
def site(users: MemoryUserStore, posts: MemoryStore[PostModel]) -> AdminSite:
    site = AdminSite(AdminConfig(secret_key="relation-secret"), user_store=users)
    site.register(AuthorModel, AuthorAdmin, store=MemoryStore(AuthorModel, [
        AuthorModel(name="Ursula", email="u@example.com", id=1),
        AuthorModel(name="Octavia", email="o@example.com", id=2),
    ]))
    site.register(TagModel, store=MemoryStore(TagModel, [TagModel("fiction", 1), TagModel("classics", 2)]))
    site.register(PostModel, PostAdmin, store=posts)
    return site


@pytest.fixture
def post_admin(site: AdminSite) -> ModelAdmin:
    return site.get_model_admin(PostModel)


@pytest.fixture
def app(site: AdminSite) -> AdminApp:
    return AdminApp(site)


@pytest.fixture
def token(app: AdminApp) -> str:
    return admin_token(app)


# ---------------------------------------------------------------------------
# Reflection
# ---------------------------------------------------------------------------


class TestRelationReflection:
    def test_foreign_key(self) -> None:
        info = _field(PostModel, "author")
        assert info.kind is FieldKind.FOREIGN_KEY
        assert info.related_model is AuthorModel
        assert info.key_kind is FieldKind.AUTO
        assert info.widget == "select"
        assert info.is_relation
        assert not info.is_required

    def test_one_to_one(self) -> None:
        info = _field(ProfileModel, "author")
        assert info.kind is FieldKind.ONE_TO_ONE
        assert info.widget == "select"

    def test_many_to_many_from_list_annotation(self) -> None:
        info = _field(PostModel, "tags")
        assert info.kind is FieldKind.MANY_TO_MANY
        assert info.is_multiple
        assert info.widget == "multiselect"
        assert not info.is_required

    def test_display_field(self) -> None:
        assert _field(PostModel, "reviewer").display_field == "email"

    def test_relation_kind_needs_related_model(self) -> None:
        @dataclass
        class Broken:
            owner: int = model_field(kind=FieldKind.FOREIGN_KEY, default=0)

        with pytest.raises(ConfigurationError, match="related="):
            reflect_model(Broken)

    def test_many_to_many_needs_list(self) -> None:
        @dataclass
        class Broken:
            tags: int = model_field(related=TagModel, kind=FieldKind.MANY_TO_MANY, default=0)

        with pytest.raises(ConfigurationError, match="list of keys"):
            reflect_model(Broken)

    def test_related_field_cannot_be_scalar_kind(self) -> None:
        @dataclass
        class Broken:
            owner: int = model_field(related=AuthorModel, kind=FieldKind.TEXT, default=0)

        with pytest.raises(ConfigurationError, match="cannot have kind"):
            reflect_model(Broken)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


class TestRelationValues:
    def test_clean_foreign_key_to_int(self) -> None:
        assert clean_value(_field(PostModel, "author"), "2") == 2
        assert clean_value(_field(PostModel, "author"), "") is None

    def test_clean_many_to_many(self) -> None:
        info = _field(PostModel, "tags")
        assert clean_value(info, "1, 3") == [1, 3]
        assert clean_value(info, "") == []
        assert clean_value(info, None) == []

    def test_format_list(self) -> None:
        assert format_value([1, 3]) == "1,3"
        assert format_value([]) == ""

    def test_display_uses_labels(self) -> None:
        tags = _field(PostModel, "tags")
        assert tags.display([1, 3], labels={"1": "fiction", "3": "poetry"}) == "fiction, poetry"
        assert tags.display([1, 9], labels={"1": "fiction"}) == "fiction, 9"
        assert tags.display([]) == "-"
        assert _field(PostModel, "author").display(2, labels={"2": "Octavia"}) == "Octavia"

    def test_keys_must_match_related_pk_type(self) -> None:
        rules = {
            "author": rules_for_field(_field(PostModel, "author")),
            "tags": rules_for_field(_field(PostModel, "tags")),
        }
        result = validate({"author": "abc", "tags": "1,x"}, rules)
        assert result.errors == {"author": ["Enter a whole number."], "tags": ["Enter a whole number."]}


# ---------------------------------------------------------------------------
# Choices through the site
# ---------------------------------------------------------------------------


class TestRelatedChoices:
    async def test_follow_related_ordering(self, post_admin: ModelAdmin) -> None:
        choices = await post_admin.related_choices(post_admin.get_field("author"))
        assert choices == (("2", "Octavia"), ("1", "Ursula"))

    async def test_display_field_names_records(self, post_admin: ModelAdmin) -> None:
        choices = await post_admin.related_choices(post_admin.get_field("reviewer"))
        assert choices == (("2", "o@example.com"), ("1", "u@example.com"))

    async def test_unregistered_model_has_no_choices(self, post_admin: ModelAdmin) -> None:
        assert await post_admin.related_choices(post_admin.get_field("editor")) is None
        assert "editor" not in await post_admin.relation_choices()

    async def test_unbound_admin_has_no_choices(self) -> None:
        admin = PostAdmin(PostModel, MemoryStore(PostModel))
        assert await admin.related_choices(admin.get_field("author")) is None

    async def test_relation_labels(self, post_admin: ModelAdmin, posts: MemoryStore[PostModel]) -> None:
        labels = await post_admin.relation_labels(post_admin.display_fields)
        assert labels == {
            "author": {"1": "Ursula", "2": "Octavia"},
            "tags": {"1": "fiction", "2": "classics"},
        }
        record = await posts.get("1")
        assert post_admin.display_value(record, "tags", labels) == "fiction, classics"

    async def test_label_falls_back_to_object_label(self, site: AdminSite) -> None:
        site.register(EditorModel, store=MemoryStore(EditorModel, [EditorModel(7)]))
        post_admin = site.get_model_admin(PostModel)
        assert await post_admin.related_choices(post_admin.get_field("editor")) == (("7", "Editor 7"),)

    async def test_full_clean_rejects_unknown_keys(self, post_admin: ModelAdmin) -> None:
        choices = await post_admin.relation_choices()
        with pytest.raises(ValidationFailed) as exc_info:
            post_admin.full_clean({"title": "x", "author": "9", "tags": "1,5"}, choices)
        assert exc_info.value.errors == {
            "author": ["Select a valid choice."],
            "tags": ["Select a valid choice."],
        }

    async def test_full_clean_keeps_known_keys(self, post_admin: ModelAdmin) -> None:
        choices = await post_admin.relation_choices()
        cleaned = post_admin.full_clean({"title": "x", "author": "2", "tags": "2", "editor": "4"}, choices)
        assert cleaned == {"title": "x", "author": 2, "reviewer": None, "tags": [2], "editor": 4}


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class TestRelationViews:
    async def test_changelist_shows_labels(self, app: AdminApp, token: str) -> None:
        async with TestClient(app, token=token) as client:
            response = await client.get(POSTS)
        assert response.status == 200
        assert "Ursula" in response.text
        assert "fiction, classics" in response.text

    async def test_change_form_selects(self, app: AdminApp, token: str) -> None:
        async with TestClient(app, token=token) as client:
            response = await client.get(f"{POSTS}1/")
        assert response.status == 200
        assert '<option value="1" selected>Ursula</option>' in response.text
        assert '<option value="2">Octavia</option>' in response.text
        assert 'name="tags" id="id_tags" multiple' in response.text
        assert '<option value="2" selected>classics</option>' in response.text
        assert 'type="text" name="editor"' in response.text

    async def test_save_relations(self, app: AdminApp, token: str, posts: MemoryStore[PostModel]) -> None:
        form = [("title", "Kindred"), ("author", "1"), ("tags", "1"), ("tags", "2")]
        async with TestClient(app, token=token) as client:
            response = await client.post(f"{POSTS}2/", form=form)
        assert_redirect(response, POSTS)
        post = await posts.get("2")
        assert post.author == 1
        assert post.tags == [1, 2]

    async def test_clearing_multiselect(self, app: AdminApp, token: str, posts: MemoryStore[PostModel]) -> None:
        async with TestClient(app, token=token) as client:
            await client.post(f"{POSTS}1/", form={"title": "Dispossessed", "author": "1"})
        assert (await posts.get("1")).tags == []

    async def test_unknown_key_rejected(self, app: AdminApp, token: str, posts: MemoryStore[PostModel]) -> None:
        async with TestClient(app, token=token) as client:
            response = await client.post(f"{POSTS}2/", form={"title": "Kindred", "author": "9"})
        assert response.status == 422
        assert "Select a valid choice." in response.text
        assert (await posts.get("2")).author == 2
