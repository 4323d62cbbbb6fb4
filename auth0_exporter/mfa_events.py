"""Counters and handlers for passwordless and multi-factor log events."""

from __future__ import annotations

from typing import Any, Iterable

from .auth0api import Application, Log
from .auth_events import InvalidLogEvent, client_counter
from .prom import CounterVec, build_fq_name, increase_counter, init_counter

# Passwordless login code/link has been sent.
SUCCESS_SEND_CODE_LINK = "cls"
# Passwordless login code has been sent.
SUCCESS_SEND_CODE = "cs"
# Push notification for MFA successfully sent.
SUCCESSFUL_MFA_PUSH_NOTIFICATION = "gd_send_pn"
# Push notification for MFA failed.
FAILURE_MFA_PUSH_NOTIFICATION = "gd_send_pn_failure"
# Email for MFA successfully sent.
SUCCESS_MFA_EMAIL_SENT = "gd_send_email"
# SMS for MFA successfully sent.
SUCCESS_MFA_SEND_SMS = "gd_send_sms"
# Attempt to send SMS for MFA failed.
FAILURE_MFA_SEND_SMS = "gd_send_sms_failure"
# Voice call for MFA successfully made.
SUCCESS_MFA_SEND_VOICE_CALL = "gd_send_voice"
# Attempt to make a voice call for MFA failed.
FAILED_MFA_SEND_VOICE_CALL = "gd_send_voice_failure"

TENANT_SEND_CODE_LINK = "tenant_send_code_link_total"
TENANT_TOTAL_PUSH_NOTIFICATION = "tenant_push_notification_total"
TENANT_FAIL_PUSH_NOTIFICATION = "tenant_failed_push_notification_total"
TENANT_SEND_EMAIL_OPERATIONS = "tenant_send_email_operations_total"
TENANT_TOTAL_SEND_SMS = "tenant_send_sms_operations_total"
TENANT_FAILED_SEND_SMS = "tenant_failed_send_sms_operations_total"
TENANT_TOTAL_SEND_VOICE_CALL = "tenant_send_voice_call_operations_total"
TENANT_FAILED_SEND_VOICE_CALL = "tenant_failed_send_voice_call_operations_total"


def _unhandled(handler: str) -> InvalidLogEvent:
    return InvalidLogEvent(
        f"{handler} event handler can't handle event: {InvalidLogEvent.default_message}"
    )


def _record(
    log: Log | None,
    total: CounterVec,
    fail: CounterVec,
    successes: tuple[str, ...],
    failures: tuple[str, ...],
    handler: str,
) -> None:
    if log is None:
        raise InvalidLogEvent()
    if log.type in successes:
        increase_counter(total, log.client_name)
    elif log.type in failures:
        increase_counter(fail, log.client_name)
        increase_counter(total, log.client_name)
    else:
        raise _unhandled(handler)


def passwordless_send_code_link_counter(
    namespace: str, subsystem: str, applications: Iterable[Application]
) -> CounterVec:
    """Counter of passwordless codes and links sent, by type and client."""
    vec = CounterVec(
        build_fq_name(namespace, subsystem, TENANT_SEND_CODE_LINK),
        "The total number of send_code_link operations. (codes: cls,cs)",
        ["type", "client"],
    )
    for application in applications:
        init_counter(vec, SUCCESS_SEND_CODE_LINK, application.name)
        init_counter(vec, SUCCESS_SEND_CODE, application.name)
    return vec


def passwordless_send_code_link(metrics: Any, log: Log | None) -> None:
    """Count passwordless code and link events."""
    if log is None:
        raise InvalidLogEvent()
    if log.type not in (SUCCESS_SEND_CODE_LINK, SUCCESS_SEND_CODE):
        raise _unhandled("code_link")
    increase_counter(metrics.passwordless_code_link, log.type, log.client_name)


def push_notification_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_PUSH_NOTIFICATION,
        "The total number of push_notification operations. "
        "(codes: gd_send_pn,gd_send_pn_failure)",
        applications,
    )


def push_notification_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAIL_PUSH_NOTIFICATION,
        "The number of failed push_notification operations. (codes: gd_send_pn_failure)",
        applications,
    )


def push_notification(metrics: Any, log: Log | None) -> None:
    """Count MFA push notification events."""
    _record(
        log, metrics.push_notification_total, metrics.push_notification_fail,
        (SUCCESSFUL_MFA_PUSH_NOTIFICATION,), (FAILURE_MFA_PUSH_NOTIFICATION,),
        "push_notification",
    )


def send_email_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_SEND_EMAIL_OPERATIONS,
        "The number of successful send email operations. (codes: gd_send_email)",
        applications,
    )


def send_email(metrics: Any, log: Log | None) -> None:
    """Count MFA e-mails sent."""
    if log is None:
        raise InvalidLogEvent()
    if log.type != SUCCESS_MFA_EMAIL_SENT:
        raise _unhandled("send_email")
    increase_counter(metrics.send_email, log.client_name)


def send_sms_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_SEND_SMS,
        "The total number of successful send_sms operations.",
        applications,
    )


def send_sms_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_SEND_SMS,
        "The number of failed send_sms operations. (codes: gd_send_sms_failure)",
        applications,
    )


def send_sms(metrics: Any, log: Log | None) -> None:
    """Count MFA SMS events."""
    _record(
        log, metrics.send_sms_total, metrics.send_sms_fail,
        (SUCCESS_MFA_SEND_SMS,), (FAILURE_MFA_SEND_SMS,), "send_sms",
    )


def send_voice_call_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_SEND_VOICE_CALL,
        "The total number of voice_call operations.",
        applications,
    )


def send_voice_call_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_SEND_VOICE_CALL,
        "The number of failed voice_call operations. (codes: gd_send_voice_failure)",
        applications,
    )


def send_voice_call(metrics: Any, log: Log | None) -> None:
    """Count MFA voice call events."""
    _record(
        log, metrics.voice_call_total, metrics.voice_call_fail,
        (SUCCESS_MFA_SEND_VOICE_CALL,), (FAILED_MFA_SEND_VOICE_CALL,),
        "send_voice_call",
    )