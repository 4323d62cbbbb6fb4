from types import SimpleNamespace

import pytest

from auth0_exporter import mfa_events as mfa
from auth0_exporter.auth0api import Application, Log
from auth0_exporter.auth_events import InvalidLogEvent

APP = "test-app"
APPS = [Application(name=APP)]


def _value(vec):
    return sum(sample.value for sample in vec.collect())


def _metrics():
    return SimpleNamespace(
        passwordless_code_link=mfa.passwordless_send_code_link_counter("", "", APPS),
        push_notification_total=mfa.push_notification_total_counter("", "", APPS),
        push_notification_fail=mfa.push_notification_fail_counter("", "", APPS),
        send_email=mfa.send_email_counter("", "", APPS),
        send_sms_total=mfa.send_sms_total_counter("", "", APPS),
        send_sms_fail=mfa.send_sms_fail_counter("", "", APPS),
        voice_call_total=mfa.send_voice_call_total_counter("", "", APPS),
        voice_call_fail=mfa.send_voice_call_fail_counter("", "", APPS),
    )


PAIRED = [
    (mfa.push_notification, "push_notification_total", "push_notification_fail",
     mfa.SUCCESSFUL_MFA_PUSH_NOTIFICATION, mfa.FAILURE_MFA_PUSH_NOTIFICATION),
    (mfa.send_sms, "send_sms_total", "send_sms_fail",
     mfa.SUCCESS_MFA_SEND_SMS, mfa.FAILURE_MFA_SEND_SMS),
    (mfa.send_voice_call, "voice_call_total", "voice_call_fail",
     mfa.SUCCESS_MFA_SEND_VOICE_CALL, mfa.FAILED_MFA_SEND_VOICE_CALL),
]

HANDLERS = [
    mfa.passwordless_send_code_link,
    mfa.push_notification,
    mfa.send_email,
    mfa.send_sms,
    mfa.send_voice_call,
]


@pytest.mark.parametrize("handler,total,fail,success,failure", PAIRED)
def test_paired_counters_start_at_zero_per_client(handler, total, fail, success, failure):
    m = _metrics()
    for attr in (total, fail):
        samples = getattr(m, attr).collect()
        assert [(s.labels, s.value) for s in samples] == [({"client": APP}, 0.0)]


@pytest.mark.parametrize("handler,total,fail,success,failure", PAIRED)
def test_paired_counters_increase(handler, total, fail, success, failure):
    m = _metrics()
    codes = [failure, success, success]
    for code in codes:
        handler(m, Log(type=code, client_name=APP))
    assert _value(getattr(m, fail)) == codes.count(failure)
    assert _value(getattr(m, total)) == len(codes)


@pytest.mark.parametrize("handler", HANDLERS)
def test_handlers_reject_missing_event(handler):
    with pytest.raises(InvalidLogEvent):
        handler(_metrics(), None)


@pytest.mark.parametrize(
    "handler,label",
    [
        (mfa.passwordless_send_code_link, "code_link"),
        (mfa.push_notification, "push_notification"),
        (mfa.send_email, "send_email"),
        (mfa.send_sms, "send_sms"),
        (mfa.send_voice_call, "send_voice_call"),
    ],
)
def test_handlers_reject_unknown_event(handler, label):
    m = _metrics()
    with pytest.raises(InvalidLogEvent, match=f"{label} event handler can't handle event"):
        handler(m, Log(type="invalid-error", client_name=APP))


def test_unknown_event_leaves_counters_unchanged():
    m = _metrics()
    with pytest.raises(InvalidLogEvent):
        mfa.send_sms(m, Log(type="invalid-error", client_name=APP))
    assert _value(m.send_sms_total) == 0
    assert _value(m.send_sms_fail) == 0


def test_passwordless_counter_initialises_both_types():
    vec = mfa.passwordless_send_code_link_counter("", "", APPS)
    labels = sorted((s.labels["type"], s.labels["client"]) for s in vec.collect())
    assert labels == [("cls", APP), ("cs", APP)]
    assert vec.label_names == ("type", "client")


def test_passwordless_counts_by_type():
    m = _metrics()
    codes = [mfa.SUCCESS_SEND_CODE_LINK, mfa.SUCCESS_SEND_CODE, mfa.SUCCESS_SEND_CODE]
    for code in codes:
        mfa.passwordless_send_code_link(m, Log(type=code, client_name=APP))
    vec = m.passwordless_code_link
    assert vec.labels("cls", APP).value == codes.count("cls")
    assert vec.labels("cs", APP).value == codes.count("cs")


def test_send_email_counts_successes():
    m = _metrics()
    events = [Log(type=mfa.SUCCESS_MFA_EMAIL_SENT, client_name=APP)] * 3
    for event in events:
        mfa.send_email(m, event)
    assert _value(m.send_email) == len(events)


def test_counter_names_include_namespace_and_subsystem():
    vec = mfa.send_sms_total_counter("auth0", "my_app", APPS)
    assert vec.name == "auth0_my_app_tenant_send_sms_operations_total"
    assert mfa.send_email_counter("", "", APPS).name == "tenant_send_email_operations_total"