"""Command line entry point: the ``export`` and ``version`` commands."""

from __future__ import annotations

import argparse
import contextvars
import os
import signal
import sys
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Sequence

from . import version
from .auth0api import ClientInitError
from .client import Client, Options as ClientOptions, new_with_opts
from .exporter import Exporter
from .logger import (
    logger_from_context,
    new_prom_logger,
    new_prom_logger_with_opts,
    set_context_logger,
)
from .server import export

ENV_CLIENT_CREDENTIAL = "CLIENT_SECRET"
ENV_CLIENT_ID = "CLIENT_ID"
ENV_MGMT_CREDENTIAL = "TOKEN"
ENV_DOMAIN = "DOMAIN"

_DATE_FORMAT = "%Y-%m-%d"


@dataclass
class ExporterOptions:
    """Settings of the ``export`` command and the tenant client built from them."""

    profiling_enabled: bool = False
    profiling_port: int = 6060
    metrics_endpoint: str = "metrics"
    host_port: int = 9301
    log_level: str = "warn"
    from_fetch_time: str = field(
        default_factory=lambda: date.today().strftime(_DATE_FORMAT)
    )
    probe_port: int = 9302
    probe_addr: str = "probe"
    tls_disabled: bool = False
    auto_tls: bool = False
    cert_file: str = ""
    key_file: str = ""
    tls_hosts: list[str] = field(default_factory=list)
    namespace: str = ""
    subsystem: str = ""
    cfg: ClientOptions = field(default_factory=ClientOptions)
    client: Client | None = None

    def complete(self) -> None:
        """Build the tenant client and check the TLS files exist when TLS is on."""
        try:
            self.client = new_with_opts(self.cfg)
        except ClientInitError as exc:
            raise ClientInitError(
                f"failed to initialise exporter's connection to auth0: {exc}"
            ) from exc

        if not self.tls_disabled:
            if not os.path.exists(self.key_file):
                raise FileNotFoundError(
                    "failed to find the exporter's private key file. "
                    "TLS can be disabled with --tls.disabled"
                )
            if not os.path.exists(self.cert_file):
                raise FileNotFoundError(
                    "failed to find the exporter's certificate file. "
                    "TLS can be disabled with --tls.disabled"
                )


def _string_slice(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _add_export_flags(parser: argparse.ArgumentParser) -> None:
    add = parser.add_argument
    add("--log.level", dest="log_level", default="warn",
        help="Only log messages with the given severity or above. "
             "One of: [debug, info, warn, error]")
    add("--pprof.listen-address", dest="profiling_port", type=int, default=6060,
        help="Port where the pprof webserver will listen on.")
    add("--pprof.enabled", dest="profiling_enabled", action="store_true",
        help="Enable profiling on the exporter's profiling port.")
    add("--tls.disabled", dest="tls_disabled", action="store_true",
        help="Run exporter without TLS. TLS is enabled by default.")
    add("--tls.auto", dest="auto_tls", action="store_true",
        help="Allow the exporter to renew its certificates automatically. "
             "(Can only be used if the exporter is publicly accessible by the internet)")
    add("--tls.cert-file", dest="cert_file", default="",
        help="Path to the PEM encoded certificate for the auth0-exporter metrics to serve.")
    add("--tls.key-file", dest="key_file", default="",
        help="Path to the PEM encoded key for the auth0-exporter metrics server.")
    add("--tls.hosts", dest="tls_hosts", type=_string_slice, action="extend", default=[],
        help="The different allowed hosts for the exporter. "
             "Only works when --tls.auto has been enabled.")
    add("--auth0.from", dest="from_fetch_time",
        default=date.today().strftime(_DATE_FORMAT),
        help="Point in time from were to start fetching auth0 logs. (format: YYYY-MM-DD)")
    add("--auth0.domain", dest="domain", default=os.environ.get(ENV_DOMAIN, ""),
        help="Auth0 tenant's domain. (i.e: <tenant_name>.eu.auth0.com).")
    add("--auth0.token", dest="token", default=os.environ.get(ENV_MGMT_CREDENTIAL, ""),
        help="Auth0 management api static token. "
             "(the token can be used instead of client credentials).")
    add("--auth0.client-id", dest="client_id", default=os.environ.get(ENV_CLIENT_ID, ""),
        help="Auth0 management api client-id.")
    add("--auth0.client-secret", dest="client_secret",
        default=os.environ.get(ENV_CLIENT_CREDENTIAL, ""),
        help="Auth0 management api client-secret.")
    add("--namespace", dest="namespace", default="", help="Exporter's namespace.")
    add("--subsystem", dest="subsystem", default="", help="Exporter's subsystem.")
    add("--web.listen-address", dest="host_port", type=int, default=9301,
        help="Port where the exporter webserver will listen on.")
    add("--web.path", dest="metrics_endpoint", default="metrics",
        help="URL Path under which to expose the collected auth0 metrics.")
    add("--probe.listen-address", dest="probe_port", type=int, default=9302,
        help="Port where the probe webserver will listen on.")
    add("--probe.path", dest="probe_addr", default="probe",
        help="URL Path under which to expose the probe metrics.")


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the root command and its subcommands."""
    parser = argparse.ArgumentParser(
        prog="exporter",
        description="Exports Prometheus metrics for Auth0 Log Events.",
    )
    commands = parser.add_subparsers(dest="command")

    export_parser = commands.add_parser(
        "export",
        help="Start serving the auth0 metrics",
        description="This starts the exporter HTTP server on the given port.",
    )
    _add_export_flags(export_parser)

    version_parser = commands.add_parser(
        "version", help="Returns the binary build information."
    )
    version_parser.add_argument(
        "-v", "--version", dest="verbose", action="store_true",
        help="Verbose build information",
    )
    return parser


def _options_from_args(args: argparse.Namespace) -> ExporterOptions:
    return ExporterOptions(
        profiling_enabled=args.profiling_enabled,
        profiling_port=args.profiling_port,
        metrics_endpoint=args.metrics_endpoint,
        host_port=args.host_port,
        log_level=args.log_level,
        from_fetch_time=args.from_fetch_time,
        probe_port=args.probe_port,
        probe_addr=args.probe_addr,
        tls_disabled=args.tls_disabled,
        auto_tls=args.auto_tls,
        cert_file=args.cert_file,
        key_file=args.key_file,
        tls_hosts=list(args.tls_hosts),
        namespace=args.namespace,
        subsystem=args.subsystem,
        cfg=ClientOptions(
            domain=args.domain,
            token=args.token,
            client_secret=args.client_secret,
            client_id=args.client_id,
        ),
    )


def run_export(options: ExporterOptions) -> None:
    """Start the exporter with ``options`` and serve until interrupted."""
    log = new_prom_logger_with_opts(options.log_level)
    try:
        start = datetime.strptime(options.from_fetch_time, _DATE_FORMAT).date()
    except ValueError as exc:
        raise ValueError(f"failed to parse value in --auth0.from flag: {exc}") from exc

    exporter = Exporter(
        options.client,
        start_time=start,
        namespace=options.namespace,
        metrics_addr=options.metrics_endpoint,
        host_port=options.host_port,
        profiling_enabled=options.profiling_enabled,
        profiling_port=options.profiling_port,
        tls_disabled=options.tls_disabled,
        auto_tls=options.auto_tls,
        cert_file=options.cert_file,
        key_file=options.key_file,
        tls_hosts=options.tls_hosts,
        probe_addr=options.probe_addr,
        probe_port=options.probe_port,
        logger=log,
    )

    stop = threading.Event()
    previous = {}
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, lambda *_: stop.set())
    try:
        export(exporter, stop)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def run_version(verbose: bool) -> str:
    """Log the build information and return what was logged."""
    message = version.build_info() if verbose else version.info()
    logger_from_context().info(message)
    return message


def _main(argv: Sequence[str] | None) -> int:
    set_context_logger(new_prom_logger())
    log = logger_from_context()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "version":
        run_version(args.verbose)
        return 0

    try:
        options = _options_from_args(args)
        options.complete()
        run_export(options)
    except KeyboardInterrupt:
        return 0
    except Exception as exc:
        log.error(exc, str(exc))
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the process exit status."""
    return contextvars.copy_context().run(_main, argv)


if __name__ == "__main__":
    sys.exit(main())