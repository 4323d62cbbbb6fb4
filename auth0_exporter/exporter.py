"""Collection of tenant events into metrics, and the exporter's own probe metrics."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable

from .auth0api import APIRateLimitReached, FetchCancelled, Log, User
from .logger import Logger, logger_from_context
from .prom import Counter, Registry

SCRAPE_FAILURE_MESSAGE = (
    "Exporter encountered some issues when collecting events from Auth0, "
    "please check the exporter logs with --log.level debug"
)


class CollectError(Exception):
    """Events could not be collected from the tenant."""


class ScrapeError(Exception):
    """A metrics scrape failed and must be answered with a server error."""


def _checked(items: Any, kind: type, message: str) -> list[Any]:
    if not isinstance(items, list) or not all(isinstance(item, kind) for item in items):
        raise CollectError(message)
    return items


class Exporter:
    """Holds the exporter settings and turns tenant events into metrics."""

    def __init__(
        self,
        client: Any = None,
        *,
        start_time: date | None = None,
        namespace: str = "auth0",
        subsystem: str = "",
        metrics_addr: str = "",
        host_port: int = 0,
        profiling_enabled: bool = False,
        profiling_port: int = 0,
        tls_disabled: bool = False,
        auto_tls: bool = False,
        cert_file: str = "",
        key_file: str = "",
        tls_hosts: Iterable[str] | None = None,
        probe_addr: str = "",
        probe_port: int = 0,
        logger: Logger | None = None,
    ) -> None:
        self.client = client
        self.start_time = start_time if start_time is not None else datetime.now()
        self.namespace = namespace
        self.subsystem = subsystem
        self.metrics_addr = metrics_addr
        self.host_port = host_port
        self.profiling_enabled = profiling_enabled
        self.profiling_port = profiling_port
        self.tls_disabled = tls_disabled
        self.auto_tls = auto_tls
        self.cert_file = cert_file
        self.key_file = key_file
        self.tls_hosts = list(tls_hosts) if tls_hosts is not None else []
        self.probe_addr = probe_addr
        self.probe_port = probe_port
        self.logger = logger if logger is not None else logger_from_context()

        self.target_scrape_request_errors = Counter(
            "target_scrape_request_errors_total", "Errors in requests to the exporter"
        )
        self.total_scrapes = Counter(
            "target_scrape_request_total", "Total requests to the exporter"
        )
        self.probe_registry = Registry()
        self.probe_registry.register(self.target_scrape_request_errors, self.total_scrapes)

    def collect(self, metrics: Any) -> None:
        """Fetch logs from the start time and all users, and update ``metrics``."""
        log = self.logger.v(0)
        try:
            events = self.client.log.list(self.start_time)
        except FetchCancelled as exc:
            events = exc.partial
            log.error(
                exc,
                "Request was terminated by the client,"
                "the exporter could not finish polling the Auth0 log client to fetch the tenant logs."
                "Please increase the client timeout or try adding the --auth0.from flag",
                "logs_events_found", len(events), "from", self.start_time,
            )
        except Exception as exc:
            raise CollectError("error fetching the log events from Auth0") from exc

        events = _checked(
            events, Log, "Auth0 log client did not return the expected list of Log type"
        )
        for event in events:
            metrics.update(event)

        try:
            users = self.client.user.list()
        except FetchCancelled as exc:
            users = exc.partial
            log.error(
                exc,
                "Request was terminated by the client,"
                "the exporter could not finish polling the Auth0 user client to fetch the tenant users."
                "Please increase the client timeout",
                "users_found", len(users),
            )
        except Exception as exc:
            raise CollectError("error fetching the users from Auth0") from exc

        users = _checked(
            users, User,
            "auth0 client users fetch didn't return the expected list of User type",
        )
        metrics.process_users(users)

    def scrape(self, metrics: Any) -> str:
        """Collect into ``metrics`` and return them in the Prometheus text format."""
        log = self.logger
        log.info("handling request for the auth0 tenant metrics")
        registry = Registry()
        registry.register(*metrics.collectors())

        self.total_scrapes.inc()
        try:
            self.collect(metrics)
        except CollectError as exc:
            self.target_scrape_request_errors.inc()
            if isinstance(exc.__cause__, APIRateLimitReached):
                log.error(exc, "reached the Auth0 rate limit, fetching should resume shortly")
            else:
                log.error(
                    exc, "error collecting event metrics from the selected Auth0 tenant"
                )
                raise ScrapeError(SCRAPE_FAILURE_MESSAGE) from exc

        log.info("successfully collected metrics from the Auth0 tenant")
        return registry.expose()

    def probe(self) -> str:
        """Return the exporter's own metrics in the Prometheus text format."""
        return self.probe_registry.expose()