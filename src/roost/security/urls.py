"""Redirect target validation for the login ``next`` parameter.

Only same-origin relative paths are followed after login; anything else
falls back to the admin index.
"""


def is_safe_url(url: str | None) -> bool:
    """Check whether *url* is a same-origin relative path.

    - Must be a non-empty string starting with ``/``
    - Must not start with ``//`` or ``/\\`` (protocol-relative)
    - Must not contain ``://`` (absolute URL with scheme)

    Examples::

        >>> is_safe_url("/admin/articlemodel/")
        True
        >>> is_safe_url("//evil.com")
        False
        >>> is_safe_url("https://evil.com")
        False
    """
    if not url or not isinstance(url, str):
        return False
    if not url.startswith("/"):
        return False
    if url.startswith(("//", "/\\")):
        return False
    return "://" not in url


def safe_next(url: str | None, fallback: str) -> str:
    """Return *url* if it is safe to redirect to, else *fallback*."""
    return url if url is not None and is_safe_url(url) else fallback
