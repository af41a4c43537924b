"""Signed-claims access tokens (``header.payload.signature``).

Tokens are JWTs encoded and verified with PyJWT. The set of algorithms
is closed; adding one means adding an ``Algorithm`` member and a branch
in the guard, nothing else accepts new values.

Usage::

    token = issue_access_token(
        {"userId": 1, "email": "a@example.com", "isAdmin": True},
        secret="s3cr3t",
        ttl=900,
    )
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import jwt

from roost.errors import ConfigurationError

# The guard checks expiry against its own clock before the signature.
_SIGNATURE_ONLY = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


class Algorithm(StrEnum):
    """Supported ``alg`` header values."""

    HS256 = "HS256"
    NONE = "none"

    @classmethod
    def parse(cls, value: object) -> Algorithm | None:
        """Map a raw ``alg`` claim to a member, or ``None`` if unsupported."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class MalformedToken(ValueError):  # noqa: N818 (reads better at call sites)
    """The token is not three base64url segments with JSON-object header and payload."""


@dataclass(frozen=True, slots=True)
class DecodedToken:
    """A structurally valid token. Nothing about it has been verified."""

    token: str
    header: dict[str, Any]
    payload: dict[str, Any]


def decode_token(token: str) -> DecodedToken:
    """Decode *token* without verifying its signature or claims.

    Raises:
        MalformedToken: Wrong segment count or undecodable header/payload.
    """
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise MalformedToken(str(exc)) from exc
    return DecodedToken(token=token, header=header, payload=payload)


def verify_hs256(token: str, secret: str) -> bool:
    """True when *token* carries a valid HS256 signature for *secret*."""
    try:
        jwt.decode(token, secret, algorithms=[Algorithm.HS256.value], options=_SIGNATURE_ONLY)
    except jwt.InvalidTokenError:
        return False
    return True


def encode_token(payload: dict[str, Any], *, secret: str = "", algorithm: Algorithm) -> str:
    """Serialize *payload* into a token signed with *algorithm*.

    Raises:
        ConfigurationError: HS256 requested without a secret.
    """
    match algorithm:
        case Algorithm.HS256:
            if not secret:
                msg = "HS256 tokens require a secret key"
                raise ConfigurationError(msg)
            return jwt.encode(payload, secret, algorithm=algorithm.value)
        case Algorithm.NONE:
            return jwt.encode(payload, None, algorithm=algorithm.value)


def issue_access_token(
    claims: dict[str, Any],
    *,
    secret: str = "",
    ttl: int = 900,
    allow_unsigned: bool = False,
    now: float | None = None,
) -> str:
    """Issue a short-lived access token carrying *claims*.

    Adds ``iat`` and ``exp``. Signs with HS256 when *secret* is set;
    otherwise emits an unsigned token, which is only permitted when
    *allow_unsigned* is true (insecure dev mode).

    Raises:
        ConfigurationError: No secret and unsigned tokens not allowed.
    """
    issued_at = int(now if now is not None else time.time())
    payload = {**claims, "iat": issued_at, "exp": issued_at + ttl}
    if secret:
        return encode_token(payload, secret=secret, algorithm=Algorithm.HS256)
    if not allow_unsigned:
        msg = "Cannot issue admin tokens without a secret key outside insecure dev mode"
        raise ConfigurationError(msg)
    return encode_token(payload, algorithm=Algorithm.NONE)
