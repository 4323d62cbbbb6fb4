from datetime import datetime

import pytest

from auth0_exporter.auth0api import (
    APIRateLimitReached,
    ClientInitError,
    FetchCancelled,
    Log,
    QuotaLimitExceeded,
)
from auth0_exporter.logs import LogClient, MaxAttemptsReached, new


class FakeManagement:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def list_logs(self, **kwargs):
        self.calls.append(kwargs)
        return self.handler(**kwargs)


def test_new_fails_without_domain():
    with pytest.raises(ClientInitError):
        new("", "some id", "some secret", "random token")


def test_new_fails_with_incomplete_credentials():
    with pytest.raises(ClientInitError):
        new("domain", "some id", "", "")


def test_new_with_token_only():
    assert new("domain", "", "", "random token").mgmt.domain == "domain"


def test_new_with_client_credentials_only():
    assert new("domain", "id", "secret", "").mgmt.domain == "domain"


def test_list_rejects_non_time_start():
    client = LogClient(FakeManagement(lambda **kwargs: []))
    with pytest.raises(TypeError):
        client.list("not a valid time type")


def test_rate_limit_becomes_api_rate_limit_reached():
    def handler(**kwargs):
        raise QuotaLimitExceeded("api request limit was reached")

    with pytest.raises(APIRateLimitReached):
        LogClient(FakeManagement(handler)).list(datetime.now())


def test_list_fetches_all_logs_across_pages():
    total = 220
    stored = [Log(log_id=f"log-{i}", type="f") for i in range(total)]
    state = {"checkpoint": 0, "take": 1, "first": True}

    def handler(**kwargs):
        if not state["first"]:
            state["take"] = 100
        if state["checkpoint"] >= total:
            return []
        result = stored[state["checkpoint"]: state["checkpoint"] + state["take"]]
        state["checkpoint"] += state["take"]
        state["first"] = False
        return result

    logs = LogClient(FakeManagement(handler)).list(datetime.now())
    assert len(logs) == total - 1


def test_fetch_logs_uses_checkpoint_id():
    mgmt = FakeManagement(lambda **kwargs: [])
    LogClient(mgmt).fetch_logs(Log(log_id="log-7"))
    assert mgmt.calls[0]["from_id"] == "log-7"
    assert mgmt.calls[0]["take"] == 100


def test_list_without_start_skips_checkpoint_search():
    mgmt = FakeManagement(lambda **kwargs: [])
    assert LogClient(mgmt).list() == []
    assert len(mgmt.calls) == 1
    assert "from_id" not in mgmt.calls[0]


def test_list_continues_when_no_checkpoint_is_found():
    mgmt = FakeManagement(lambda **kwargs: [])
    assert LogClient(mgmt).list(datetime.now()) == []
    assert "query" not in mgmt.calls[-1]
    assert "query" in mgmt.calls[0]


def test_list_cancelled_keeps_partial_logs():
    batch = [Log(log_id="a"), Log(log_id="b")]
    responses = [batch]

    def handler(**kwargs):
        if "query" in kwargs:
            return []
        if responses:
            return responses.pop(0)
        raise FetchCancelled("client went away")

    with pytest.raises(FetchCancelled) as info:
        LogClient(FakeManagement(handler)).list(datetime.now())
    assert info.value.partial == batch


def test_find_latest_checkpoint_found():
    mgmt = FakeManagement(lambda **kwargs: [Log(log_id="foo")])
    checkpoint = LogClient(mgmt).find_latest_checkpoint(datetime.now(), 2, 30)
    assert checkpoint.log_id == "foo"


def test_find_latest_checkpoint_queries_previous_day():
    mgmt = FakeManagement(lambda **kwargs: [Log(log_id="foo")])
    LogClient(mgmt).find_latest_checkpoint(datetime(2023, 5, 10), 0, 30)
    assert mgmt.calls[0]["query"] == "date:[2023-05-09 TO 2023-05-09]"
    assert mgmt.calls[0]["per_page"] == 1


def test_find_latest_checkpoint_max_attempts_reached():
    mgmt = FakeManagement(lambda **kwargs: [Log(log_id="foo")])
    with pytest.raises(MaxAttemptsReached):
        LogClient(mgmt).find_latest_checkpoint(datetime.now(), 12, 10)
    assert mgmt.calls == []


def test_find_latest_checkpoint_without_start():
    mgmt = FakeManagement(lambda **kwargs: [Log(log_id="foo")])
    assert LogClient(mgmt).find_latest_checkpoint(None, 0, 30) is None
    assert mgmt.calls == []