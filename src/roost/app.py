"""ASGI application for an admin site.

``AdminApp`` wraps an ``AdminSite`` in an ASGI 3 callable. It speaks the
lifespan protocol (connecting an optional ``Database`` on startup and
closing it on shutdown, plus user hooks) and hands every HTTP scope to
the request pipeline in ``roost.server.handler``.

Usage::

    site = AdminSite(AdminConfig.from_env(), user_store=users)
    site.register(ArticleModel, ArticleAdmin, store=SQLStore(db, ArticleModel))
    app = AdminApp(site, database=db)

    # any ASGI server
    # uvicorn myproject.admin:app
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.invoke import invoke
from roost.server.handler import handle_request

if TYPE_CHECKING:
    from roost.admin.site import AdminSite
    from roost.data.database import Database

logger = logging.getLogger("roost.server")


class AdminApp:
    """ASGI entry point for one ``AdminSite``."""

    __slots__ = ("_shutdown_hooks", "_startup_hooks", "database", "site")

    def __init__(self, site: AdminSite, *, database: Database | None = None) -> None:
        self.site = site
        self.database = database
        self._startup_hooks: list[Callable[[], Any]] = []
        self._shutdown_hooks: list[Callable[[], Any]] = []

    def __repr__(self) -> str:
        return f"<AdminApp {self.site!r}>"

    def on_startup(self, func: Callable[[], Any]) -> Callable[[], Any]:
        """Register a sync or async hook run once at lifespan startup.

        Hooks run in registration order, after the database connects.
        """
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[[], Any]) -> Callable[[], Any]:
        """Register a sync or async hook run once at lifespan shutdown."""
        self._shutdown_hooks.append(func)
        return func

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        await handle_request(scope, receive, send, site=self.site)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    if self.database is not None:
                        await self.database.connect()
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Admin startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                logger.info("Admin site ready at %s/ with %d model(s)", self.site.url_prefix, len(self.site))
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                if self.database is not None:
                    await self.database.disconnect()
                await send({"type": "lifespan.shutdown.complete"})
                return
