"""HTTP servers that expose the tenant metrics, the probe and profiling ports."""

from __future__ import annotations

import json
import ssl
import threading
from contextlib import ExitStack
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import urlsplit

from . import version
from .auth0api import Application
from .exporter import CollectError, Exporter, ScrapeError
from .logger import Logger
from .metrics import Metrics

HTML_TYPE = "text/html; charset=UTF-8"
JSON_TYPE = "application/json; charset=UTF-8"
METRICS_TYPE = "text/plain; version=0.0.4; charset=utf-8"

Response = tuple[int, str, bytes]
Route = Callable[[], Response]


def index_page(metrics_addr: str) -> str:
    """Return the landing page that links to the metrics path."""
    return (
        "<html>\n"
        "\t\t\t<head><title>Auth0 Exporter</title></head>\n"
        "\t\t\t<body>\n"
        "\t\t\t<h1>Auth0 Exporter</h1>\n"
        f'\t\t\t<p><a href="{metrics_addr}">Metrics</a></p>\n'
        "\t\t\t</body>\n"
        "\t\t\t</html>"
    )


def _json(value: Any) -> bytes:
    return (json.dumps(value) + "\n").encode()


def _handler(routes: dict[str, Route], logger: Logger | None) -> type:
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            path = urlsplit(self.path).path or "/"
            route = routes.get(path)
            if route is None:
                status, ctype, body = 404, JSON_TYPE, _json({"message": "Not Found"})
            else:
                try:
                    status, ctype, body = route()
                except Exception:
                    status, ctype = 500, JSON_TYPE
                    body = _json({"message": "Internal Server Error"})
            self.send_response(status)
            self.send_header("Content-Type", ctype)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            if logger is not None:
                self._log_request(path, path if route is not None else "", status)

        def _log_request(self, path: str, route: str, status: int) -> None:
            forwarded = self.headers.get("X-Forwarded-For", "")
            remote_ip = (
                forwarded.split(",")[0].strip()
                or self.headers.get("X-Real-IP", "")
                or self.client_address[0]
            )
            logger.with_values(
                "requestID", self.headers.get("X-Request-ID", ""),
                "remote_ip", remote_ip,
                "host", self.headers.get("Host", ""),
                "uri", self.path,
                "method", self.command,
                "path", path,
                "route", route,
                "user_agent", self.headers.get("User-Agent", ""),
                "status", status,
            ).info("incoming request")

        def log_message(self, format: str, *args: Any) -> None:
            """Send the server's own access lines to the debug log, not stderr."""
            if logger is not None:
                logger.v(1).info(format % args)

    return Handler


def _serve(
    stack: ExitStack,
    port: int,
    routes: dict[str, Route],
    logger: Logger | None = None,
    tls: ssl.SSLContext | None = None,
) -> ThreadingHTTPServer:
    server = ThreadingHTTPServer(("", port), _handler(routes, logger))
    server.daemon_threads = True
    stack.callback(server.server_close)
    if tls is not None:
        server.socket = tls.wrap_socket(server.socket, server_side=True)
    return server


def export(exporter: Exporter, stop: threading.Event) -> None:
    """Serve the exporter until ``stop`` is set."""
    log = exporter.logger
    log.info("initialising exporter", "build", version.info())

    try:
        listed = exporter.client.app.list()
    except Exception as exc:
        raise CollectError("error fetching the auth0 tenant client applications.") from exc
    if not isinstance(listed, list) or not all(isinstance(a, Application) for a in listed):
        raise CollectError(
            "auth0 client applications fetch didn't return the expected list "
            "of applications client type"
        )
    applications = list(listed)

    def index() -> Response:
        return 200, HTML_TYPE, index_page(exporter.metrics_addr).encode()

    def healthz() -> Response:
        return 200, JSON_TYPE, _json("ok")

    def scrape() -> Response:
        metrics = Metrics(exporter.namespace, exporter.subsystem, applications)
        try:
            text = exporter.scrape(metrics)
        except ScrapeError as exc:
            return 500, JSON_TYPE, _json({"message": str(exc)})
        return 200, METRICS_TYPE, text.encode()

    def probe() -> Response:
        return 200, METRICS_TYPE, exporter.probe().encode()

    routes: dict[str, Route] = {"/": index, "/healthz": healthz}
    routes[f"/{exporter.metrics_addr}"] = scrape

    log.info(
        "starting exporter",
        "port", exporter.host_port,
        "metrics-address", "/" + exporter.metrics_addr,
    )

    tls: ssl.SSLContext | None = None
    if not exporter.tls_disabled and exporter.auto_tls:
        log.info("running exporter with auto TLS connection")
        raise ValueError(
            "automatic certificate management is unavailable; provide "
            "--tls.cert-file and --tls.key-file or use --tls.disabled"
        )
    if not exporter.tls_disabled:
        log.info("running exporter with TLS connection")
        tls = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        tls.load_cert_chain(exporter.cert_file, exporter.key_file)
    else:
        log.info("running exporter with insecure connection!")

    with ExitStack() as stack:
        servers = [_serve(stack, exporter.host_port, routes, log, tls)]
        if exporter.profiling_enabled:
            log.info("pprof profiling is activate", "port", exporter.profiling_port)
            servers.append(_serve(stack, exporter.profiling_port, {}))
        log.info(
            "starting metrics server",
            "port", exporter.probe_port, "endpoint", exporter.probe_addr,
        )
        servers.append(
            _serve(stack, exporter.probe_port, {f"/{exporter.probe_addr}": probe})
        )

        threads = [
            threading.Thread(target=server.serve_forever, daemon=True)
            for server in servers
        ]
        for thread in threads:
            thread.start()
        try:
            stop.wait()
        finally:
            for server in servers:
                server.shutdown()
            for thread in threads:
                thread.join()