"""CurrentUserProvider implementations."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from famitree.application.dto import CurrentUser


class StaticUserProvider:
    """Always answers the same user (or nobody). For scripts and tests."""

    def __init__(self, user: CurrentUser | None = None) -> None:
        self._user = user

    def current_user(self) -> CurrentUser | None:
        return self._user

    def set_user(self, user: CurrentUser | None) -> None:
        self._user = user


class ContextUserProvider:
    """Per-request user held in a context variable, set with acting_as().

    Privilege is decided by membership in admin_ids.
    """

    def __init__(self, admin_ids: Iterable[str] = ()) -> None:
        self._admin_ids = frozenset(i.strip() for i in admin_ids if i and i.strip())
        self._current: ContextVar[CurrentUser | None] = ContextVar(
            "famitree_current_user", default=None
        )

    def resolve(self, user_id: str | None) -> CurrentUser | None:
        """Build the CurrentUser for a raw id (e.g. from a request header); None if blank."""
        user_id = (user_id or "").strip()
        if not user_id:
            return None
        return CurrentUser(id=user_id, is_privileged=user_id in self._admin_ids)

    def current_user(self) -> CurrentUser | None:
        return self._current.get()

    @contextmanager
    def acting_as(self, user: CurrentUser | None) -> Iterator[None]:
        token = self._current.set(user)
        try:
            yield
        finally:
            self._current.reset(token)
