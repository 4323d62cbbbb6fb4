"""Structured logfmt logging with levels and context propagation."""

from __future__ import annotations

import contextvars
import sys
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, TextIO

LEVELS = ("debug", "info", "warn", "error")
DEFAULT_LEVEL = "info"

_MISSING = "(MISSING)"
_write_lock = threading.Lock()
_current: contextvars.ContextVar[Logger | None] = contextvars.ContextVar(
    "prom-logger", default=None
)


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _format(value: Any) -> str:
    text = "null" if value is None else str(value)
    needs_quotes = (
        text == ""
        or any(ch in text for ch in ' ="\\')
        or not text.isprintable()
    )
    if needs_quotes:
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        escaped = escaped.replace("\n", "\\n").replace("\t", "\\t")
        return f'"{escaped}"'
    return text


def _pairs(args: Iterable[Any]) -> Iterator[tuple[str, Any]]:
    items = iter(args)
    for key in items:
        yield str(key), next(items, _MISSING)


@dataclass(frozen=True)
class Logger:
    """A logfmt logger that writes lines at or above its level."""

    level: str = DEFAULT_LEVEL
    stream: TextIO | None = field(default=None, compare=False)
    values: tuple[Any, ...] = ()
    verbosity: int = 0

    def __post_init__(self) -> None:
        if self.level not in LEVELS:
            raise ValueError(f"unrecognized log level {self.level!r}")

    def info(self, msg: str, *args: Any) -> None:
        """Log an informational message; verbose loggers log at debug."""
        self._emit("info" if self.verbosity == 0 else "debug", msg, args)

    def error(self, err: BaseException | str | None, msg: str, *args: Any) -> None:
        """Log an error message together with the error that caused it."""
        self._emit("error", msg, args, err=err)

    def with_values(self, *args: Any) -> Logger:
        """Return a logger that adds the given key/value pairs to every line."""
        return replace(self, values=self.values + args)

    def v(self, level: int) -> Logger:
        """Return a logger with verbosity raised by ``level``."""
        if level < 0:
            raise ValueError("verbosity must not be negative")
        return replace(self, verbosity=self.verbosity + level)

    def _emit(
        self,
        level: str,
        msg: str,
        args: tuple[Any, ...],
        err: BaseException | str | None = None,
    ) -> None:
        if LEVELS.index(level) < LEVELS.index(self.level):
            return
        fields: list[tuple[str, Any]] = [
            ("ts", _timestamp()),
            ("level", level),
            ("msg", msg),
        ]
        if err is not None:
            fields.append(("err", err))
        fields.extend(_pairs(self.values))
        fields.extend(_pairs(args))
        line = " ".join(f"{key}={_format(value)}" for key, value in fields)
        with _write_lock:
            stream = self.stream if self.stream is not None else sys.stderr
            stream.write(line + "\n")
            stream.flush()


def new_prom_logger() -> Logger:
    """Return a logger at the default level writing to standard error."""
    return Logger()


def new_prom_logger_with_opts(level: str) -> Logger:
    """Return a logger at ``level``, or the default logger if it is unknown."""
    try:
        return Logger(level=level)
    except ValueError:
        return new_prom_logger()


def set_context_logger(logger: Logger) -> contextvars.Token:
    """Make ``logger`` the logger of the current context."""
    return _current.set(logger)


def logger_from_context() -> Logger:
    """Return the logger of the current context, or a new default one."""
    logger = _current.get()
    return logger if logger is not None else new_prom_logger()