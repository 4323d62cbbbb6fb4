"""Client that lists every application registered on the tenant."""

from __future__ import annotations

from typing import Any

from .auth0api import APIRateLimitReached, Application, QuotaLimitExceeded, create_management

_PER_PAGE = 100


class ApplicationClient:
    """Fetches all client applications, page by page."""

    def __init__(self, mgmt: Any) -> None:
        self.mgmt = mgmt

    def list(self) -> list[Application]:
        """Return every application on the tenant."""
        applications: list[Application] = []
        page = 0
        while True:
            try:
                result = self.mgmt.list_clients(
                    fields=["name"], per_page=_PER_PAGE, page=page
                )
            except QuotaLimitExceeded as exc:
                raise APIRateLimitReached() from exc
            applications.extend(result.items)
            if not result.has_next:
                return applications
            page += 1


def new(domain: str, client_id: str, client_secret: str, token: str) -> ApplicationClient:
    """Create an application client from tenant settings."""
    return ApplicationClient(create_management(domain, client_id, client_secret, token))