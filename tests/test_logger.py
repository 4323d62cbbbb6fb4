import contextvars
import io
import shlex

import pytest

from auth0_exporter.logger import (
    Logger,
    logger_from_context,
    new_prom_logger,
    new_prom_logger_with_opts,
    set_context_logger,
)


def _parse(line):
    return dict(part.split("=", 1) for part in shlex.split(line))


def _lines(buf):
    return [line for line in buf.getvalue().splitlines() if line]


def test_info_writes_message_and_pairs():
    buf = io.StringIO()
    Logger(stream=buf).info("starting exporter", "port", 9301)
    (line,) = _lines(buf)
    fields = _parse(line)
    assert fields["msg"] == "starting exporter"
    assert fields["port"] == "9301"
    assert fields["level"] == "info"


def test_info_below_threshold_is_dropped():
    buf = io.StringIO()
    Logger(level="error", stream=buf).info("hidden")
    assert _lines(buf) == []


def test_verbose_info_is_debug_and_hidden_by_default():
    buf = io.StringIO()
    Logger(stream=buf).v(1).info("hidden")
    assert _lines(buf) == []


def test_verbose_info_shown_at_debug_level():
    buf = io.StringIO()
    Logger(level="debug", stream=buf).v(1).info("shown")
    (line,) = _lines(buf)
    assert _parse(line)["level"] == "debug"


def test_error_includes_error_text():
    buf = io.StringIO()
    Logger(level="error", stream=buf).error(RuntimeError("boom"), "failed")
    (line,) = _lines(buf)
    fields = _parse(line)
    assert fields["err"] == "boom"
    assert fields["msg"] == "failed"
    assert fields["level"] == "error"


def test_with_values_adds_pairs_and_leaves_original_alone():
    buf = io.StringIO()
    base = Logger(stream=buf)
    derived = base.with_values("requestID", "abc")
    derived.info("incoming request", "status", 200)
    assert base.values == ()
    assert derived.values == ("requestID", "abc")
    fields = _parse(_lines(buf)[0])
    assert fields["requestID"] == "abc"
    assert fields["status"] == "200"


def test_dangling_key_gets_missing_marker():
    buf = io.StringIO()
    Logger(stream=buf).info("msg", "dangling")
    assert _parse(_lines(buf)[0])["dangling"] == "(MISSING)"


def test_negative_verbosity_is_rejected():
    with pytest.raises(ValueError):
        Logger().v(-1)


def test_unknown_level_is_rejected_by_logger():
    with pytest.raises(ValueError):
        Logger(level="loud")


@pytest.mark.parametrize("level", ["debug", "info", "warn", "error"])
def test_new_prom_logger_with_opts_keeps_known_levels(level):
    assert new_prom_logger_with_opts(level).level == level


def test_new_prom_logger_with_opts_falls_back_on_unknown_level():
    assert new_prom_logger_with_opts("verbose") == new_prom_logger()


def test_context_logger_round_trip():
    logger = Logger(level="warn")

    def run():
        set_context_logger(logger)
        return logger_from_context()

    assert contextvars.copy_context().run(run) is logger


def test_context_without_logger_gives_default():
    found = contextvars.Context().run(logger_from_context)
    assert found == new_prom_logger()