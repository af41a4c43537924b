"""Shared fixtures: an article model registered on an in-memory admin site."""

from dataclasses import dataclass
from datetime import date

import pytest

from roost.admin import ModelAdmin, model_field
from roost.admin.fields import FieldKind
from roost.admin.site import AdminSite
from roost.app import AdminApp
from roost.auth.users import AdminUser, MemoryUserStore
from roost.config import AdminConfig
from roost.query.memory import MemoryStore
from roost.security.passwords import hash_password
from roost.testing import admin_token

SECRET = "test-secret"
PASSWORD = "correct horse battery staple"
PASSWORD_HASH = hash_password(PASSWORD)


@dataclass
class ArticleModel:
    title: str = model_field(max_length=200)
    id: int | None = model_field(primary_key=True, default=None)
    status: str = model_field(choices=[("draft", "Draft"), ("live", "Live")], default="draft")
    published: bool = False
    created: date | None = None
    views: int = 0
    body: str = model_field(kind=FieldKind.TEXT, blank=True, default="")


class ArticleAdmin(ModelAdmin):
    list_display = ("title", "status", "published", "created")
    search_fields = ("title", "body")
    list_filter = ("published", "status", "created")
    ordering = ("title",)


def sample_articles() -> list[ArticleModel]:
    return [
        ArticleModel(id=1, title="Hello world", status="live", published=True, created=date(2024, 1, 10)),
        ArticleModel(id=2, title="Python tips", status="live", published=True, created=date(2024, 2, 5), body="asyncio"),
        ArticleModel(id=3, title="Draft notes", status="draft", published=False, created=date(2024, 3, 1)),
        ArticleModel(id=4, title="Release plan", status="draft", published=False, created=None),
        ArticleModel(id=5, title="Changelog", status="live", published=True, created=date(2024, 3, 20)),
    ]


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def users() -> MemoryUserStore:
    return MemoryUserStore([
        AdminUser(id=1, email="admin@example.com", password_hash=PASSWORD_HASH, is_admin=True),
        AdminUser(id=2, email="staff@example.com", password_hash=PASSWORD_HASH, is_admin=False),
        AdminUser(id=3, email="gone@example.com", password_hash=PASSWORD_HASH, is_active=False, is_admin=True),
    ])


@pytest.fixture
def store() -> MemoryStore[ArticleModel]:
    return MemoryStore(ArticleModel, sample_articles())


@pytest.fixture
def site(users: MemoryUserStore, store: MemoryStore[ArticleModel]) -> AdminSite:
    site = AdminSite(AdminConfig(secret_key=SECRET), user_store=users)
    site.register(ArticleModel, ArticleAdmin, store=store)
    return site


@pytest.fixture
def app(site: AdminSite) -> AdminApp:
    return AdminApp(site)


@pytest.fixture
def token(app: AdminApp) -> str:
    return admin_token(app)
