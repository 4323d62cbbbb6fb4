"""Prometheus counters, counter vectors and text exposition."""

from __future__ import annotations

import math
import re
import threading
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable

_METRIC_NAME = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass
class Sample:
    """One collected value of a metric."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts with underscores; an empty name gives ''."""
    if not name:
        return ""
    return "_".join(part for part in (namespace, subsystem, name) if part)


class Counter:
    """A monotonically increasing value."""

    kind = "counter"

    def __init__(self, name: str, help: str) -> None:
        self.name = name
        self.help = help
        self.label_names: tuple[str, ...] = ()
        self.value = 0.0
        self._label_values: tuple[str, ...] = ()
        self._lock = threading.Lock()

    def inc(self, amount: float = 1.0) -> None:
        """Add ``amount``, which must not be negative."""
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self.value += amount

    def collect(self) -> list[Sample]:
        """Return the current value as a single sample."""
        labels = dict(zip(self.label_names, self._label_values))
        return [Sample(self.name, labels, self.value)]


class CounterVec:
    """A family of counters partitioned by label values."""

    kind = "counter"

    def __init__(self, name: str, help: str, label_names: Iterable[str]) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._children: dict[tuple[str, ...], Counter] = {}
        self._lock = threading.Lock()

    def labels(self, *args: str) -> Counter:
        """Return the counter for the given label values, creating it at zero."""
        if len(args) != len(self.label_names):
            raise ValueError(
                f"inconsistent label cardinality: expected {len(self.label_names)} "
                f"label values but got {len(args)}"
            )
        key = tuple(str(arg) for arg in args)
        with self._lock:
            child = self._children.get(key)
            if child is None:
                child = Counter(self.name, self.help)
                child.label_names = self.label_names
                child._label_values = key
                self._children[key] = child
            return child

    def collect(self) -> list[Sample]:
        """Return one sample per label combination seen so far."""
        with self._lock:
            children = list(self._children.values())
        return [sample for child in children for sample in child.collect()]


def increase_counter(vec: CounterVec, *args: str) -> None:
    """Increment the counter of ``vec`` with the given label values."""
    vec.labels(*args).inc()


def init_counter(vec: CounterVec, *args: str) -> None:
    """Create the counter of ``vec`` with the given label values at zero."""
    vec.labels(*args)


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "0"
    number = Decimal(repr(float(value))).normalize()
    sign, digits, exponent = number.as_tuple()
    prefix = "-" if sign else ""
    sci_exponent = len(digits) + exponent - 1
    if sci_exponent < -4 or sci_exponent >= 6:
        text = "".join(str(d) for d in digits)
        mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
        exp_sign = "-" if sci_exponent < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(sci_exponent):02d}"
    return prefix + format(abs(number), "f")


class Registry:
    """A set of collectors exposed together in the text format."""

    def __init__(self) -> None:
        self._collectors: dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, *args: Any) -> None:
        """Register collectors; invalid or duplicate names raise ValueError."""
        with self._lock:
            for collector in args:
                name = collector.name
                if not _METRIC_NAME.match(name or ""):
                    raise ValueError(f"{name!r} is not a valid metric name")
                for label in collector.label_names:
                    if not _LABEL_NAME.match(label) or label.startswith("__"):
                        raise ValueError(f"{label!r} is not a valid label name")
                if name in self._collectors:
                    raise ValueError(
                        f"duplicate metrics collector registration attempted: {name}"
                    )
                self._collectors[name] = collector

    def expose(self) -> str:
        """Render every registered metric in the Prometheus text format."""
        with self._lock:
            collectors = sorted(self._collectors.values(), key=lambda c: c.name)
        lines: list[str] = []
        for collector in collectors:
            samples = collector.collect()
            if not samples:
                continue
            lines.append(f"# HELP {collector.name} {_escape_help(collector.help)}")
            lines.append(f"# TYPE {collector.name} {collector.kind}")
            ordered = sorted(
                samples,
                key=lambda s: tuple(s.labels.get(n, "") for n in collector.label_names),
            )
            for sample in ordered:
                if sample.labels:
                    pairs = ",".join(
                        f'{key}="{_escape_label(val)}"'
                        for key, val in sample.labels.items()
                    )
                    head = f"{sample.name}{{{pairs}}}"
                else:
                    head = sample.name
                lines.append(f"{head} {_format_value(sample.value)}")
        return "".join(line + "\n" for line in lines)