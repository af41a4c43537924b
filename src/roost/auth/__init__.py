"""Admin authentication: token issuing, user lookup, and the stateless request guard."""

from roost.auth.guard import AuthGuard, AuthGuardConfig, AuthGuardResult
from roost.auth.tokens import Algorithm, MalformedToken, decode_token, encode_token, issue_access_token
from roost.auth.users import AdminUser, MemoryUserStore, UserStore

__all__ = [
    "AdminUser",
    "Algorithm",
    "AuthGuard",
    "AuthGuardConfig",
    "AuthGuardResult",
    "MalformedToken",
    "MemoryUserStore",
    "UserStore",
    "decode_token",
    "encode_token",
    "issue_access_token",
]
