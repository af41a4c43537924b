"""Login and logout.

Login checks the submitted credentials against the site's ``UserStore``
and issues a short-lived access token. The token is handed over twice:
in an ``HttpOnly`` cookie scoped to the admin prefix, and in the
``X-Admin-Token`` header so ``admin.js`` can keep it for the
``Authorization`` header of later htmx requests. Navigation happens via
``X-Admin-Redirect`` after the script has stored the token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import anyio.to_thread

from roost._internal.invoke import invoke
from roost.auth.tokens import issue_access_token
from roost.auth.users import AdminUser
from roost.http.response import Response
from roost.security.audit import emit_security_event
from roost.security.passwords import verify_password
from roost.security.urls import safe_next
from roost.views import FORM_METHODS, require_method

if TYPE_CHECKING:
    from roost.admin.site import AdminSite
    from roost.http.request import Request

logger = logging.getLogger("roost.auth")

LOGIN_TEMPLATE = "admin/login.html"
LOGIN_SUCCESS_TEMPLATE = "admin/login_success.html"
LOGOUT_TEMPLATE = "admin/logout.html"

MISSING_CREDENTIALS = "Please enter both email and password."
INVALID_CREDENTIALS = "Invalid email or password."
INACTIVE_ACCOUNT = "This account is inactive."
NOT_ADMIN = "You do not have permission to access the admin panel."
NOT_CONFIGURED = "Authentication is not configured."


def _login_page(
    site: AdminSite,
    request: Request,
    *,
    error: str | None = None,
    email: str = "",
    next_url: str = "",
) -> Response:
    context = {"title": "Log in", "error": error, "email": email, "next": next_url}
    return site.render(request, LOGIN_TEMPLATE, context)


def _cookie_path(site: AdminSite) -> str:
    return site.url_prefix or "/"


async def _check_password(user: AdminUser, password: str) -> bool:
    try:
        return await anyio.to_thread.run_sync(verify_password, password, user.password_hash)
    except ValueError:
        logger.warning("Unrecognized password hash format for admin user %s", user.id)
        return False


async def login_view(request: Request, site: AdminSite) -> Response:
    """GET renders the form; POST authenticates and issues a token."""
    require_method(request, FORM_METHODS)
    next_url = request.query.get("next") or ""

    if request.method != "POST":
        return _login_page(site, request, next_url=next_url)

    form = await request.form()
    email = (form.get("email") or "").strip()
    password = form.get("password") or ""
    next_url = form.get("next") or next_url

    def failed(message: str, reason: str, user_id: object | None = None) -> Response:
        emit_security_event(
            "auth.login.failed",
            request=request,
            user_id=user_id,
            details={"email": email, "reason": reason},
        )
        return _login_page(site, request, error=message, email=email, next_url=next_url)

    if not email or not password:
        return _login_page(site, request, error=MISSING_CREDENTIALS, email=email, next_url=next_url)

    if site.user_store is None:
        logger.error("Admin login attempted but no user store is configured")
        return _login_page(site, request, error=NOT_CONFIGURED, email=email, next_url=next_url)

    user: AdminUser | None = await invoke(site.user_store.get_by_email, email)
    if user is None:
        return failed(INVALID_CREDENTIALS, "unknown user")
    if not await _check_password(user, password):
        return failed(INVALID_CREDENTIALS, "bad password", user.id)
    if not user.is_active:
        return failed(INACTIVE_ACCOUNT, "inactive", user.id)
    if not user.is_admin:
        return failed(NOT_ADMIN, "not admin", user.id)

    config = site.config
    token = issue_access_token(
        {"userId": user.id, "email": user.email, "isAdmin": user.is_admin},
        secret=config.secret_key,
        ttl=config.token_ttl,
        allow_unsigned=config.allows_unsigned_tokens,
    )
    redirect_to = safe_next(next_url, site.index_url)
    emit_security_event("auth.login.success", request=request, user_id=user.id)
    logger.info("Admin login for user %s", user.id)

    return (
        site.render(request, LOGIN_SUCCESS_TEMPLATE, {"title": "Logged in", "redirect_to": redirect_to, "token": token})
        .with_cookie(
            config.token_cookie,
            token,
            max_age=config.token_ttl,
            path=_cookie_path(site),
            secure=not config.debug,
        )
        .with_admin_token(token)
        .with_admin_redirect(redirect_to)
    )


async def logout_view(request: Request, site: AdminSite) -> Response:
    """Clear the token cookie and tell admin.js to forget its copy."""
    require_method(request, FORM_METHODS)
    login_url = site.login_url
    return (
        site.render(request, LOGOUT_TEMPLATE, {"title": "Logged out", "login_url": login_url})
        .without_cookie(site.config.token_cookie, path=_cookie_path(site))
        .with_admin_logout()
        .with_admin_redirect(login_url)
    )
