"""Admin site configuration.

AdminConfig is a frozen dataclass, immutable after creation.
``AdminConfig.from_env`` seeds it from ``ROOST_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from roost.errors import ConfigurationError

logger = logging.getLogger("roost.auth")

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AdminConfig:
    """Admin configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AdminConfig(secret_key="s3cr3t", url_prefix="/backoffice")

    Unsigned access tokens are refused unless ``insecure_dev_mode`` is set
    *and* no ``secret_key`` is configured. Never enable it in production.
    """

    # Routing
    url_prefix: str = "/admin"

    # Branding
    site_title: str = "Admin"
    site_header: str = "Administration"

    # Security
    secret_key: str = ""
    insecure_dev_mode: bool = False
    token_cookie: str = "adminToken"
    token_ttl: int = 15 * 60  # seconds

    # Templates
    template_dir: str | Path | None = None  # Overrides for the bundled templates
    autoescape: bool = True

    debug: bool = False

    def __post_init__(self) -> None:
        prefix = "/" + self.url_prefix.strip("/")
        object.__setattr__(self, "url_prefix", prefix if prefix != "/" else "")
        if self.token_ttl <= 0:
            msg = f"token_ttl must be positive, got {self.token_ttl}"
            raise ConfigurationError(msg)

    @property
    def allows_unsigned_tokens(self) -> bool:
        """True only in explicit insecure dev mode with no secret configured."""
        return self.insecure_dev_mode and not self.secret_key

    def with_overrides(self, **changes: object) -> AdminConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]

    @classmethod
    def from_env(cls, prefix: str = "ROOST_", **defaults: object) -> AdminConfig:
        """Build a config from environment variables.

        Reads ``{prefix}SECRET_KEY``, ``{prefix}URL_PREFIX``,
        ``{prefix}DEBUG``, ``{prefix}INSECURE_DEV_MODE`` and
        ``{prefix}TOKEN_TTL``. Keyword arguments supply values for
        anything the environment does not set.
        """
        values: dict[str, object] = dict(defaults)
        env = os.environ

        if (secret := env.get(f"{prefix}SECRET_KEY")) is not None:
            values["secret_key"] = secret
        if (url_prefix := env.get(f"{prefix}URL_PREFIX")) is not None:
            values["url_prefix"] = url_prefix
        if (debug := env.get(f"{prefix}DEBUG")) is not None:
            values["debug"] = debug.lower() in _TRUTHY
        if (dev := env.get(f"{prefix}INSECURE_DEV_MODE")) is not None:
            values["insecure_dev_mode"] = dev.lower() in _TRUTHY
        if (ttl := env.get(f"{prefix}TOKEN_TTL")) is not None:
            try:
                values["token_ttl"] = int(ttl)
            except ValueError:
                msg = f"{prefix}TOKEN_TTL must be an integer, got {ttl!r}"
                raise ConfigurationError(msg) from None

        config = cls(**values)  # type: ignore[arg-type]
        if config.allows_unsigned_tokens:
            logger.warning(
                "Insecure dev mode is on and no secret key is set: "
                "unsigned admin tokens will be accepted."
            )
        return config
