"""Client that lists every user of the tenant."""

from __future__ import annotations

from typing import Any

from .auth0api import APIRateLimitReached, QuotaLimitExceeded, User, create_management

_PER_PAGE = 100
_FIELDS = ["user_id", "blocked", "last_login"]


class UsersClient:
    """Fetches all users, page by page."""

    def __init__(self, mgmt: Any) -> None:
        self.mgmt = mgmt

    def list(self) -> list[User]:
        """Return every user on the tenant."""
        users: list[User] = []
        page = 0
        while True:
            try:
                result = self.mgmt.list_users(
                    fields=_FIELDS, per_page=_PER_PAGE, page=page
                )
            except QuotaLimitExceeded as exc:
                raise APIRateLimitReached() from exc
            users.extend(result.items)
            if not result.has_next:
                return users
            page += 1


def new(domain: str, client_id: str, client_secret: str, token: str) -> UsersClient:
    """Create a users client from tenant settings."""
    return UsersClient(create_management(domain, client_id, client_secret, token))