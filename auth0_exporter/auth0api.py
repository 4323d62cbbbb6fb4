"""Access to the Auth0 Management API endpoints the exporter reads."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable

import requests

_API_PATH = "/api/v2/"
_TIMEOUT = 30.0
_TOKEN_LEEWAY = 60.0
_FRACTION = re.compile(r"\.(\d+)")


class QuotaLimitExceeded(Exception):
    """The Management API refused a request because of its rate limit."""


class APIRateLimitReached(Exception):
    """A client stopped fetching because the API rate limit was reached."""

    def __init__(self, message: str = "client reached api rate limit") -> None:
        super().__init__(message)


class FetchCancelled(Exception):
    """A fetch was cut short; ``partial`` holds what was retrieved so far."""

    def __init__(
        self,
        message: str = "fetch was cancelled before completion",
        partial: Iterable[Any] = (),
    ) -> None:
        super().__init__(message)
        self.partial = list(partial)


class ClientInitError(Exception):
    """A client could not be set up from the given settings."""


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class Log:
    """One tenant log event."""

    log_id: str = ""
    type: str = ""
    date: datetime | None = None
    client_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Log:
        return cls(
            log_id=data.get("log_id") or "",
            type=data.get("type") or "",
            date=_parse_time(data.get("date")),
            client_name=data.get("client_name") or "",
        )


@dataclass(frozen=True)
class User:
    """One tenant user."""

    user_id: str = ""
    blocked: bool = False
    last_login: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            user_id=data.get("user_id") or "",
            blocked=bool(data.get("blocked", False)),
            last_login=_parse_time(data.get("last_login")),
        )


@dataclass(frozen=True)
class Application:
    """One tenant client application."""

    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Application:
        return cls(name=data.get("name") or "")


@dataclass(frozen=True)
class Page:
    """One page of a paginated listing."""

    items: list[Any] = field(default_factory=list)
    start: int = 0
    length: int = 0
    total: int = 0

    @property
    def has_next(self) -> bool:
        return self.length > 0 and self.start + self.length < self.total


def _base_url(domain: str) -> str:
    domain = domain.strip().rstrip("/")
    if domain.startswith(("http://", "https://")):
        return domain
    return "https://" + domain


def _query_params(
    fields: Iterable[str] | None = None,
    include_fields: bool = True,
    page: int | None = None,
    per_page: int | None = None,
    take: int | None = None,
    from_id: str | None = None,
    query: str | None = None,
    include_totals: bool | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if fields:
        params["fields"] = ",".join(fields)
        params["include_fields"] = "true" if include_fields else "false"
    for key, value in (
        ("page", page),
        ("per_page", per_page),
        ("take", take),
        ("from", from_id),
        ("q", query),
    ):
        if value is not None:
            params[key] = value
    if include_totals is not None:
        params["include_totals"] = "true" if include_totals else "false"
    return params


def _raise_for_status(response: Any) -> None:
    status = response.status_code
    if status == 429:
        raise QuotaLimitExceeded("api request limit was reached")
    if status >= 400:
        raise requests.HTTPError(
            f"auth0 management api answered with status {status}", response=response
        )


def _page(body: Any, key: str, build: Callable[[dict[str, Any]], Any]) -> Page:
    if isinstance(body, list):
        items = [build(item) for item in body]
        return Page(items=items, start=0, length=len(items), total=len(items))
    items = [build(item) for item in body.get(key, [])]
    return Page(
        items=items,
        start=int(body.get("start", 0)),
        length=int(body.get("length", len(items))),
        total=int(body.get("total", 0)),
    )


class Management:
    """A Management API connection using a static token or client credentials."""

    def __init__(
        self,
        domain: str,
        token: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        session: Any = None,
    ) -> None:
        if not domain:
            raise ClientInitError("missing auth0 domain")
        if not token and not (client_id and client_secret):
            raise ClientInitError(
                "a management api token or client credentials are required"
            )
        self.domain = domain
        self.base_url = _base_url(domain)
        self._static_token = token or None
        self._client_id = client_id
        self._client_secret = client_secret
        self._session = session if session is not None else requests.Session()
        self._access_token: str | None = None
        self._expires_at = 0.0

    def list_logs(self, **kwargs: Any) -> list[Log]:
        """List log events; keywords select fields, paging and checkpoints."""
        body = self._get("logs", _query_params(**kwargs))
        return [Log.from_dict(item) for item in body]

    def list_clients(self, **kwargs: Any) -> Page:
        """List one page of client applications."""
        kwargs.setdefault("include_totals", True)
        body = self._get("clients", _query_params(**kwargs))
        return _page(body, "clients", Application.from_dict)

    def list_users(self, **kwargs: Any) -> Page:
        """List one page of users."""
        kwargs.setdefault("include_totals", True)
        body = self._get("users", _query_params(**kwargs))
        return _page(body, "users", User.from_dict)

    def _bearer(self) -> str:
        if self._static_token:
            return self._static_token
        now = time.monotonic()
        if self._access_token is None or now >= self._expires_at:
            try:
                response = self._session.post(
                    self.base_url + "/oauth/token",
                    json={
                        "grant_type": "client_credentials",
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "audience": self.base_url + _API_PATH,
                    },
                    timeout=_TIMEOUT,
                )
            except requests.Timeout as exc:
                raise FetchCancelled("token request timed out") from exc
            _raise_for_status(response)
            body = response.json()
            self._access_token = body["access_token"]
            expires_in = float(body.get("expires_in", 0))
            self._expires_at = now + max(0.0, expires_in - _TOKEN_LEEWAY)
        return self._access_token

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        headers = {"Authorization": f"Bearer {self._bearer()}"}
        try:
            response = self._session.get(
                self.base_url + _API_PATH + path,
                params=params,
                headers=headers,
                timeout=_TIMEOUT,
            )
        except requests.Timeout as exc:
            raise FetchCancelled(f"request for {path} timed out") from exc
        _raise_for_status(response)
        return response.json()


def create_management(
    domain: str, client_id: str, client_secret: str, token: str
) -> Management:
    """Build a Management connection, collecting every setup problem."""
    problems: list[str] = []
    mgmt: Management | None = None
    if not domain:
        problems.append("missing auth0 domain")
    if token:
        try:
            mgmt = Management(domain, token=token)
        except ClientInitError as exc:
            problems.append(str(exc))
    if client_id and client_secret:
        try:
            mgmt = Management(domain, client_id=client_id, client_secret=client_secret)
        except ClientInitError as exc:
            problems.append(str(exc))
    if mgmt is None:
        problems.append(
            "unable to initialise the auth0 client, check the credentials are correct."
        )
    if problems:
        raise ClientInitError("; ".join(problems))
    return mgmt