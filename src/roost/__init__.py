"""Roost: an admin panel for dataclass models, served over ASGI.

Register models on an ``AdminSite`` and mount the ``AdminApp``; roost
builds the route table, the searchable/filterable/paginated changelists,
the add/change/delete forms, and guards every page with a signed bearer
token.

Basic usage::

    from dataclasses import dataclass
    from roost import AdminApp, AdminConfig, AdminSite, ModelAdmin, model_field

    @dataclass
    class ArticleModel:
        id: int | None = model_field(primary_key=True, default=None)
        title: str = model_field(max_length=200, default="")
        published: bool = False

    site = AdminSite(AdminConfig(secret_key="change-me"), user_store=users)

    @site.admin_for(ArticleModel)
    class ArticleAdmin(ModelAdmin):
        list_display = ("title", "published")
        search_fields = ("title",)
        list_filter = ("published",)

    app = AdminApp(site)

SQLite storage::

    from roost.data import Database, SQLStore
    db = Database("sqlite:///admin.db")
    site.register(ArticleModel, ArticleAdmin, store=SQLStore(db, ArticleModel))
"""

__version__ = "0.1.0"
__all__ = [
    "AdminApp",
    "AdminConfig",
    "AdminSite",
    "AuthGuard",
    "AuthGuardConfig",
    "AuthGuardResult",
    "ConfigurationError",
    "HTTPError",
    "ModelAdmin",
    "Redirect",
    "Request",
    "Response",
    "RoostError",
    "action",
    "current_user",
    "get_request",
    "model_field",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "AdminApp":
        from roost.app import AdminApp

        return AdminApp

    if name == "AdminConfig":
        from roost.config import AdminConfig

        return AdminConfig

    if name in ("AdminSite", "ModelAdmin", "action", "model_field"):
        from roost import admin

        return getattr(admin, name)

    if name in ("AuthGuard", "AuthGuardConfig", "AuthGuardResult"):
        from roost.auth import guard

        return getattr(guard, name)

    if name in ("ConfigurationError", "HTTPError", "RoostError"):
        from roost import errors

        return getattr(errors, name)

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from roost.http import response

        return getattr(response, name)

    if name in ("current_user", "get_request"):
        from roost import context

        return getattr(context, name)

    msg = f"module 'roost' has no attribute {name!r}"
    raise AttributeError(msg)
