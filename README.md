# auth0_exporter

A Prometheus exporter for Auth0 tenants. It reads the tenant's log events and
users through the Auth0 Management API and serves them as Prometheus counters:
logins, logouts, sign-ups, e-mail changes, phone number changes, user
deletions, API operations, passwordless codes and links, MFA push
notifications, e-mails, SMS and voice calls, and the number of users whose last
login falls within the last 30 days.

Every event counter carries a `client` label with the name of the Auth0
application the event came from. All applications of the tenant are looked up
when the exporter starts, so each counter starts at zero for every application.
The passwordless counter also carries a `type` label (`cls` or `cs`).

Each scrape of the metrics path builds a fresh set of counters, fetches the
tenant's logs starting from a checkpoint found before the `--auth0.from` day,
fetches all users, and returns the resulting counts.

## Installation

```
pip install .
```

## Credentials

The exporter needs the tenant domain plus either a Management API static token
or a client id and client secret. They can be given as flags or through the
environment:

| Environment variable | Flag                    |
|----------------------|-------------------------|
| `DOMAIN`             | `--auth0.domain`        |
| `TOKEN`              | `--auth0.token`         |
| `CLIENT_ID`          | `--auth0.client-id`     |
| `CLIENT_SECRET`      | `--auth0.client-secret` |

## Running

```
export DOMAIN=tenant.example.com
export TOKEN=token
auth0-exporter export --tls.disabled
```

TLS is on by default: without `--tls.disabled` the files given by
`--tls.cert-file` and `--tls.key-file` must exist, and the metrics server is
served over TLS with them. The process stops on SIGINT or SIGTERM.

The metrics server answers:

- `/` – a small index page linking to the metrics
- `/healthz` – a health check answering `"ok"`
- `/metrics` – the tenant metrics (path set with `--web.path`)

A second server, on the probe port, serves the exporter's own scrape counters
(`target_scrape_request_total`, `target_scrape_request_errors_total`) under
`/probe`. A scrape that hits the Auth0 rate limit still answers with the
counters gathered so far; any other collection failure answers with status 500.

Flags of `export`:

| Flag                     | Default   | Meaning                                              |
|--------------------------|-----------|------------------------------------------------------|
| `--web.listen-address`   | `9301`    | Port of the metrics server                           |
| `--web.path`             | `metrics` | Path of the tenant metrics                           |
| `--probe.listen-address` | `9302`    | Port of the probe server                             |
| `--probe.path`           | `probe`   | Path of the probe metrics                            |
| `--auth0.from`           | today     | Day (`YYYY-MM-DD`) from which to start reading logs  |
| `--namespace`            | empty     | Prefix added to every tenant metric name             |
| `--log.level`            | `warn`    | One of `debug`, `info`, `warn`, `error`              |
| `--tls.disabled`         | off       | Serve plain HTTP                                     |
| `--tls.cert-file`        | empty     | PEM certificate for the metrics server               |
| `--tls.key-file`         | empty     | PEM key for the metrics server                       |
| `--pprof.enabled`        | off       | Open an extra listener on the profiling port         |
| `--pprof.listen-address` | `6060`    | Port of that listener                                |

`--subsystem`, `--tls.auto` and `--tls.hosts` are accepted as well; see below.

Logs are written to standard error in logfmt.

## Version

```
auth0-exporter version
auth0-exporter version --version
```

The version is written as a log line; the second form writes the full build
information.

## Using the library

The metric set can be driven directly:

```python
from auth0_exporter.auth0api import Application, Log
from auth0_exporter.metrics import Metrics
from auth0_exporter.prom import Registry

metrics = Metrics("auth0", "", [Application(name="web")])
metrics.update(Log(type="s", client_name="web"))

registry = Registry()
registry.register(*metrics.collectors())
print(registry.expose())
```

`auth0_exporter.exporter.Exporter` runs a full collection into a `Metrics`
object with `scrape()`, and `auth0_exporter.server.export()` serves it until a
`threading.Event` is set.

## What it does not do

- Automatic certificates: `--tls.auto` is accepted, but starting with it (and
  TLS enabled) fails with an error; `--tls.hosts` therefore has no effect.
- Profiling: the listener opened by `--pprof.enabled` serves no profiling data
  and answers every path with 404.
- `--subsystem` is parsed but not applied to metric names by the `export`
  command.
- There is no API documentation server.