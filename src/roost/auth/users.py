"""Admin user lookup for the login view.

The login view needs exactly one operation: find a user by email. Any
object with an ``async get_by_email`` (or a plain ``def``) returning an
``AdminUser`` satisfies ``UserStore``; ``MemoryUserStore`` covers tests
and single-operator deployments.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class AdminUser:
    """The fields the login flow reads from a user record."""

    id: int
    email: str
    password_hash: str
    is_active: bool = True
    is_admin: bool = False


@runtime_checkable
class UserStore(Protocol):
    async def get_by_email(self, email: str) -> AdminUser | None: ...


class MemoryUserStore:
    """A ``UserStore`` over a fixed set of users. Emails match case-insensitively."""

    __slots__ = ("_users",)

    def __init__(self, users: Iterable[AdminUser] = ()) -> None:
        self._users = {u.email.lower(): u for u in users}

    def add(self, user: AdminUser) -> None:
        self._users[user.email.lower()] = user

    async def get_by_email(self, email: str) -> AdminUser | None:
        return self._users.get(email.strip().lower())
