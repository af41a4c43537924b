"""The admin site: model registry and route table owner.

An ``AdminSite`` is an explicit object, never a module global. Models
are registered during a single-writer setup phase; each ``register`` or
``unregister`` builds a fresh immutable ``RegistrySnapshot`` (the
ModelAdmin mapping plus its ``RouteTable``) and swaps the reference under
a lock. Requests read whatever snapshot is current without locking, so a
late registration never exposes a half-built table.

Usage::

    site = AdminSite(AdminConfig(secret_key="..."), user_store=users)
    site.register(ArticleModel, ArticleAdmin)

    @site.admin_for(CommentModel)
    class CommentAdmin(ModelAdmin):
        list_display = ("author", "created")

    site.reverse("admin:articlemodel_change", id=3)   # "/admin/articlemodel/3/"
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from roost.admin.fields import reflect_model
from roost.admin.options import ModelAdmin
from roost.auth.guard import AuthGuard, AuthGuardConfig
from roost.auth.users import UserStore
from roost.config import AdminConfig
from roost.context import current_user
from roost.errors import AlreadyRegistered, ConfigurationError, ModelNotRegistered, NotRegistered
from roost.http.request import Request
from roost.http.response import Response
from roost.query.memory import MemoryStore
from roost.query.source import RecordStore
from roost.routing.dispatcher import RouteMatch, dispatch
from roost.routing.pattern import CompiledRoute, ViewKind, compile_route
from roost.routing.table import RouteTable
from roost.templating import create_environment, render as render_template
from roost.views import auth as auth_views
from roost.views import changeform, changelist, dashboard, delete, static

logger = logging.getLogger("roost.admin")

ROUTE_NAMESPACE = "admin"

# Path segments taken by site routes; a model with one of these names would be unreachable.
RESERVED_NAMES = frozenset({"static", "login", "logout"})


@dataclass(frozen=True, slots=True)
class AppEntry:
    """One registered model as listed on the dashboard."""

    model_name: str
    name: str
    verbose_name: str
    verbose_name_plural: str
    changelist_url: str
    add_url: str


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Immutable view of the registry at one point in time."""

    admins: Mapping[str, ModelAdmin] = field(default_factory=lambda: MappingProxyType({}))
    routes: RouteTable = field(default_factory=RouteTable)


def route_name(model_name: str, action: str) -> str:
    """``admin:<model>_<action>``."""
    return f"{ROUTE_NAMESPACE}:{model_name}_{action}"


def build_routes(prefix: str, admins: Mapping[str, ModelAdmin]) -> RouteTable:
    """Compile the site's routes in dispatch order.

    Site routes come first, then per model: changelist, add, change,
    delete. ``add`` precedes the ``:id`` route so the literal wins.
    """
    routes: list[CompiledRoute] = [
        compile_route(f"{prefix}/static/:folder/:file/", f"{ROUTE_NAMESPACE}:static", ViewKind.STATIC, static.static_view),
        compile_route(f"{prefix}/login/", f"{ROUTE_NAMESPACE}:login", ViewKind.LOGIN, auth_views.login_view),
        compile_route(f"{prefix}/logout/", f"{ROUTE_NAMESPACE}:logout", ViewKind.LOGOUT, auth_views.logout_view),
        compile_route(f"{prefix}/", f"{ROUTE_NAMESPACE}:index", ViewKind.INDEX, dashboard.index_view),
    ]
    for model_name in admins:
        base = f"{prefix}/{model_name}"
        routes += [
            compile_route(f"{base}/", route_name(model_name, "changelist"), ViewKind.LIST, changelist.changelist_view, model_name),
            compile_route(f"{base}/add/", route_name(model_name, "add"), ViewKind.ADD, changeform.add_view, model_name),
            compile_route(f"{base}/:id/", route_name(model_name, "change"), ViewKind.CHANGE, changeform.change_view, model_name),
            compile_route(f"{base}/:id/delete/", route_name(model_name, "delete"), ViewKind.DELETE, delete.delete_view, model_name),
        ]
    return RouteTable.build(routes)


class AdminSite:
    """Registry of ModelAdmins for one admin panel."""

    def __init__(
        self,
        config: AdminConfig | None = None,
        *,
        user_store: UserStore | None = None,
        guard: AuthGuard | None = None,
    ) -> None:
        self.config = config or AdminConfig()
        self.user_store = user_store
        self.guard = guard or AuthGuard(AuthGuardConfig.from_admin_config(self.config))
        self.templates = create_environment(self.config)
        self._lock = threading.Lock()
        self._snapshot = RegistrySnapshot(routes=build_routes(self.url_prefix, {}))

    def __repr__(self) -> str:
        return f"<AdminSite {self.url_prefix!r} models={list(self._snapshot.admins)}>"

    # -- Properties --

    @property
    def url_prefix(self) -> str:
        return self.config.url_prefix

    @property
    def title(self) -> str:
        return self.config.site_title

    @property
    def header(self) -> str:
        return self.config.site_header

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    @property
    def routes(self) -> RouteTable:
        return self._snapshot.routes

    @property
    def login_url(self) -> str:
        return f"{self.url_prefix}/login/"

    @property
    def index_url(self) -> str:
        return f"{self.url_prefix}/"

    def __iter__(self) -> Iterator[ModelAdmin]:
        return iter(self._snapshot.admins.values())

    def __len__(self) -> int:
        return len(self._snapshot.admins)

    def __contains__(self, model: object) -> bool:
        return isinstance(model, type) and model.__name__.lower() in self._snapshot.admins

    # -- Registration (single writer) --

    def register(
        self,
        model: type,
        admin_class: type[ModelAdmin] | None = None,
        *,
        store: RecordStore[Any] | None = None,
    ) -> ModelAdmin:
        """Register *model* and rebuild the route table.

        Without a *store*, records live in a ``MemoryStore``.

        Raises:
            AlreadyRegistered: If a model with the same name is registered.
            ConfigurationError: If *admin_class* is not a ModelAdmin.
        """
        admin_class = admin_class or ModelAdmin
        if not (isinstance(admin_class, type) and issubclass(admin_class, ModelAdmin)):
            msg = f"{admin_class!r} is not a ModelAdmin subclass"
            raise ConfigurationError(msg)

        with self._lock:
            model_name = model.__name__.lower()
            if model_name in self._snapshot.admins:
                msg = f"The model {model.__name__} is already registered"
                raise AlreadyRegistered(msg)
            if model_name in RESERVED_NAMES:
                msg = f"Model name {model_name!r} collides with a built-in admin route"
                raise ConfigurationError(msg)
            if store is None:
                meta, _ = reflect_model(model)
                store = MemoryStore(model, pk_field=meta.primary_key)
            model_admin = admin_class(model, store, url_prefix=self.url_prefix, site=self)
            self._swap({**self._snapshot.admins, model_name: model_admin})

        logger.info("Registered %s with %s", model.__name__, admin_class.__name__)
        return model_admin

    def admin_for(
        self,
        model: type,
        *,
        store: RecordStore[Any] | None = None,
    ) -> Callable[[type[ModelAdmin]], type[ModelAdmin]]:
        """Class decorator form of ``register``."""

        def decorator(admin_class: type[ModelAdmin]) -> type[ModelAdmin]:
            self.register(model, admin_class, store=store)
            return admin_class

        return decorator

    def unregister(self, model: type) -> None:
        """Remove *model* and rebuild the route table.

        Raises:
            NotRegistered: If *model* is not registered.
        """
        with self._lock:
            model_name = model.__name__.lower()
            if model_name not in self._snapshot.admins:
                msg = f"The model {model.__name__} is not registered"
                raise NotRegistered(msg)
            admins = {k: v for k, v in self._snapshot.admins.items() if k != model_name}
            self._swap(admins)
        logger.info("Unregistered %s", model.__name__)

    def _swap(self, admins: dict[str, ModelAdmin]) -> None:
        # Caller holds the lock.
        routes = build_routes(self.url_prefix, admins)
        self._snapshot = RegistrySnapshot(admins=MappingProxyType(admins), routes=routes)

    # -- Lookup --

    def is_registered(self, model: type) -> bool:
        return model in self

    def get_model_admin(self, model: type) -> ModelAdmin:
        """Raises ``NotRegistered`` for an unknown model."""
        admin = self._snapshot.admins.get(model.__name__.lower())
        if admin is None:
            msg = f"The model {model.__name__} is not registered"
            raise NotRegistered(msg)
        return admin

    def get_model_admin_by_name(self, name: str) -> ModelAdmin:
        """Case-insensitive lookup by model name, for request handling.

        Raises:
            ModelNotRegistered: 404 when no such model is registered.
        """
        admin = self._snapshot.admins.get(name.lower())
        if admin is None:
            raise ModelNotRegistered
        return admin

    def resolve(self, path: str) -> RouteMatch:
        """Dispatch *path* against the current route table."""
        return dispatch(self._snapshot.routes, path)

    def reverse(self, name: str, **params: object) -> str:
        """Path for route *name*.

        Raises:
            ReverseUrlError: Unknown name or a missing ``id``.
        """
        return self._snapshot.routes.reverse(name, params)

    def static_url(self, path: str) -> str:
        return f"{self.url_prefix}/static/{path}"

    def app_list(self) -> list[AppEntry]:
        """Registered models for the dashboard and navigation, by verbose name."""
        entries = [
            AppEntry(
                model_name=admin.meta.model_name,
                name=admin.meta.name,
                verbose_name=admin.meta.verbose_name,
                verbose_name_plural=admin.meta.verbose_name_plural,
                changelist_url=admin.changelist_url,
                add_url=admin.add_url,
            )
            for admin in self._snapshot.admins.values()
        ]
        return sorted(entries, key=lambda e: e.verbose_name_plural.lower())

    # -- Rendering --

    def render(
        self,
        request: Request,
        template: str,
        context: Mapping[str, Any] | None = None,
        *,
        status: int = 200,
    ) -> Response:
        """Render an admin template with the site-wide context.

        htmx fragment requests get only the ``content`` block.
        """
        ctx = {
            "site": self,
            "request": request,
            "user": current_user(),
            "app_list": self.app_list(),
            "css_url": self.static_url("css/admin.css"),
            "js_url": self.static_url("js/admin.js"),
            "logout_url": self.reverse("admin:logout"),
            "index_url": self.index_url,
            **(context or {}),
        }
        body = render_template(self.templates, template, ctx, fragment=request.is_fragment)
        return Response(body=body, status=status)
