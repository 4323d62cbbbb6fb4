"""The combined tenant client used by the exporter."""

from __future__ import annotations

from dataclasses import dataclass

from . import applications, logs, users


@dataclass
class Options:
    """Tenant settings used to build the clients."""

    domain: str = ""
    token: str = ""
    client_secret: str = ""
    client_id: str = ""


@dataclass
class Client:
    """The log, application and user clients of one tenant."""

    log: logs.LogClient
    app: applications.ApplicationClient
    user: users.UsersClient


def new_with_opts(opts: Options) -> Client:
    """Build every tenant client from ``opts``."""
    log_client = logs.new(opts.domain, opts.client_id, opts.client_secret, opts.token)
    app_client = applications.new(
        opts.domain, opts.client_id, opts.client_secret, opts.token
    )
    user_client = users.new(opts.domain, opts.client_id, opts.client_secret, opts.token)
    return Client(log=log_client, app=app_client, user=user_client)