"""Stateless bearer-token guard for admin requests.

Reads a token from ``Authorization: Bearer <token>`` or, when the header
is absent, from the admin token cookie, and verifies it in a fixed
order. The first failing step short-circuits to an unauthenticated
result:

1. Structure: PyJWT reads the unverified header and payload, which must
   both be JSON objects.
2. Expiry: a numeric ``exp`` claim in the past rejects the token.
3. Algorithm: ``HS256`` needs a configured secret and a matching
   signature checked by PyJWT; ``none`` is accepted only in insecure dev mode
   with no secret configured; anything else is rejected.
4. Claims: ``userId`` (or ``sub``) as a number, ``email`` when it is a
   string, ``isAdmin`` only when it is literally ``true``.

The guard never raises and caches nothing, so one instance serves any
number of concurrent requests.

Usage::

    guard = AuthGuard(AuthGuardConfig(secret_key="s3cr3t"))
    result = await guard.authenticate(request)
    if not result.authenticated:
        raise Unauthenticated(login_url)
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from roost.auth.tokens import Algorithm, MalformedToken, decode_token, verify_hs256
from roost.security.audit import emit_security_event

if TYPE_CHECKING:
    from roost.config import AdminConfig
    from roost.http.request import Request

logger = logging.getLogger("roost.auth")


@dataclass(frozen=True, slots=True)
class AuthGuardResult:
    """Outcome of one authentication attempt. Never cached or persisted."""

    authenticated: bool
    user_id: int | float | None = None
    email: str | None = None
    is_admin: bool | None = None
    reason: str | None = None  # why it failed; for logs, never shown to users

    @classmethod
    def rejected(cls, reason: str) -> AuthGuardResult:
        return cls(authenticated=False, reason=reason)


@dataclass(frozen=True, slots=True)
class AuthGuardConfig:
    """Where to find the token and which tokens to trust."""

    secret_key: str = ""
    insecure_dev_mode: bool = False
    cookie_name: str = "adminToken"
    header_name: str = "Authorization"
    scheme: str = "Bearer"

    @property
    def allows_unsigned(self) -> bool:
        return self.insecure_dev_mode and not self.secret_key

    @classmethod
    def from_admin_config(cls, config: AdminConfig) -> AuthGuardConfig:
        return cls(
            secret_key=config.secret_key,
            insecure_dev_mode=config.insecure_dev_mode,
            cookie_name=config.token_cookie,
        )


class AuthGuard:
    """Verifies admin bearer tokens. Stateless per call."""

    __slots__ = ("_clock", "config")

    def __init__(
        self,
        config: AuthGuardConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or AuthGuardConfig()
        self._clock = clock
        if self.config.allows_unsigned:
            logger.warning("Auth guard running in insecure dev mode: unsigned tokens are accepted.")

    def extract_token(self, request: Request) -> str | None:
        """Token from the Authorization header, else from the cookie."""
        header = request.headers.get(self.config.header_name)
        if header:
            scheme, _, token = header.partition(" ")
            if scheme.lower() == self.config.scheme.lower() and token.strip():
                return token.strip()
            return None
        return request.cookies.get(self.config.cookie_name) or None

    async def authenticate(self, request: Request) -> AuthGuardResult:
        """Authenticate *request*. Never raises."""
        token = self.extract_token(request)
        if token is None:
            return AuthGuardResult.rejected("no token")
        result = self.verify(token)
        if not result.authenticated:
            logger.debug("Rejected admin token on %s %s: %s", request.method, request.path, result.reason)
            emit_security_event("auth.token.rejected", request=request, details={"reason": result.reason})
        return result

    def verify(self, token: str) -> AuthGuardResult:
        """Run the verification steps against a raw token string."""
        # 1. Structure
        try:
            decoded = decode_token(token)
        except MalformedToken as exc:
            return AuthGuardResult.rejected(f"malformed: {exc}")

        payload = decoded.payload

        # 2. Expiry
        exp = payload.get("exp")
        if _is_number(exp) and exp < self._clock():
            return AuthGuardResult.rejected("expired")

        # 3. Algorithm
        match Algorithm.parse(decoded.header.get("alg")):
            case Algorithm.HS256:
                if not self.config.secret_key:
                    return AuthGuardResult.rejected("HS256 token but no secret configured")
                if not verify_hs256(token, self.config.secret_key):
                    return AuthGuardResult.rejected("bad signature")
            case Algorithm.NONE:
                if not self.config.allows_unsigned:
                    return AuthGuardResult.rejected("unsigned token outside insecure dev mode")
            case _:
                return AuthGuardResult.rejected("unsupported algorithm")

        # 4. Claims
        email = payload.get("email")
        return AuthGuardResult(
            authenticated=True,
            user_id=_coerce_user_id(payload.get("userId", payload.get("sub"))),
            email=email if isinstance(email, str) else None,
            is_admin=payload.get("isAdmin") is True,
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_user_id(value: Any) -> int | float | None:
    """Numeric user id from a ``userId``/``sub`` claim; ``None`` if absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None
