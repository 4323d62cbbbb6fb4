"""Counters and handlers for login, logout, signup and account log events."""

from __future__ import annotations

from typing import Any, Iterable

from .auth0api import Application, Log
from .prom import CounterVec, build_fq_name, increase_counter, init_counter

FAIL_API_OPERATION = "fapi"
SUCCESS_API_OPERATION = "sapi"
FAILED_CHANGE_EMAIL = "fce"
SUCCESSFUL_CHANGE_EMAIL = "sce"
FAILED_CHANGE_PHONE_NUMBER = "fcpn"
SUCCESSFUL_CHANGE_PHONE_NUMBER = "scpn"
FAILED_DELETE_USER = "fdu"
SUCCESSFUL_DELETE_USER = "du"
SUCCESSFUL_LOGIN = "s"
FAILED_LOGIN = "f"
FAILED_LOGIN_WRONG_CREDENTIALS = "fp"
FAILED_LOGIN_INCORRECT_USERNAME = "fu"
FAILED_LOGOUT = "flo"
SUCCESSFUL_LOGOUT = "slo"
FAILED_SIGNUP = "fs"
SUCCESSFUL_SIGNUP = "ss"

TENANT_TOTAL_API_OPERATIONS = "tenant_api_operations_total"
TENANT_FAILED_API_OPERATIONS = "tenant_failed_api_operations_total"
TENANT_TOTAL_CHANGE_EMAIL = "tenant_change_email_total"
TENANT_FAILED_CHANGE_EMAIL = "tenant_failed_change_email_total"
TENANT_TOTAL_CHANGE_PHONE_NUMBER = "tenant_change_phone_number_total"
TENANT_FAILED_CHANGE_PHONE_NUMBER = "tenant_failed_change_phone_number_total"
TENANT_TOTAL_DELETE_USER = "tenant_delete_user_total"
TENANT_FAILED_DELETE_USER = "tenant_failed_delete_user_total"
TENANT_FAILED_LOGIN = "tenant_failed_login_operations_total"
TENANT_TOTAL_LOGIN = "tenant_login_operations_total"
TENANT_FAILED_LOGOUT = "tenant_failed_logout_operations_total"
TENANT_TOTAL_LOGOUT = "tenant_logout_operations_total"
TENANT_TOTAL_SIGNUP = "tenant_sign_up_operations_total"
TENANT_FAILED_SIGNUP = "tenant_failed_sign_up_operations_total"


class InvalidLogEvent(Exception):
    """A handler was given a log event it does not count."""

    default_message = "event handler doesn't accept the event log type"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


def client_counter(
    namespace: str, subsystem: str, name: str, help: str, applications: Iterable[Application]
) -> CounterVec:
    """Build a counter labelled by client, with every application at zero."""
    vec = CounterVec(build_fq_name(namespace, subsystem, name), help, ["client"])
    for application in applications:
        init_counter(vec, application.name)
    return vec


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
        raise InvalidLogEvent(
            f"{handler} event handler can't handle event: {InvalidLogEvent.default_message}"
        )


def api_operation_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_API_OPERATIONS,
        "The total number of API operations on the tenant. (codes: sapi,fapi)",
        applications,
    )


def api_operation_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_API_OPERATIONS,
        "The number of failed API operations on the tenant. (codes: fapi)",
        applications,
    )


def api_operations(metrics: Any, log: Log | None) -> None:
    """Count API operation events."""
    _record(
        log, metrics.api_operation_total, metrics.api_operation_fail,
        (SUCCESS_API_OPERATION,), (FAIL_API_OPERATION,), "api operations",
    )


def change_email_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_CHANGE_EMAIL,
        "The total number of change_user_email operations on the tenant. (codes: sce,fce)",
        applications,
    )


def change_email_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_CHANGE_EMAIL,
        "The number of failed change user email operations on the tenant. (codes: fce)",
        applications,
    )


def change_email(metrics: Any, log: Log | None) -> None:
    """Count change-email events."""
    _record(
        log, metrics.change_email_total, metrics.change_email_fail,
        (SUCCESSFUL_CHANGE_EMAIL,), (FAILED_CHANGE_EMAIL,),
        "change user email operations",
    )


def change_phone_number_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_CHANGE_PHONE_NUMBER,
        "The total number of change_phone_number operations on the tenant. (codes: scpn,fcpn)",
        applications,
    )


def change_phone_number_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_CHANGE_PHONE_NUMBER,
        "The number of failed change phone number operations on the tenant. (codes: fcpn)",
        applications,
    )


def change_phone_number(metrics: Any, log: Log | None) -> None:
    """Count change-phone-number events."""
    _record(
        log, metrics.change_phone_number_total, metrics.change_phone_number_fail,
        (SUCCESSFUL_CHANGE_PHONE_NUMBER,), (FAILED_CHANGE_PHONE_NUMBER,),
        "change phone number operations",
    )


def delete_user_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_DELETE_USER,
        "The total number of delete user operations on the tenant. (codes: du,fdu)",
        applications,
    )


def delete_user_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_DELETE_USER,
        "The number of failed delete user operations on the tenant. (codes: fdu)",
        applications,
    )


def delete_user(metrics: Any, log: Log | None) -> None:
    """Count delete-user events."""
    _record(
        log, metrics.delete_user_total, metrics.delete_user_fail,
        (SUCCESSFUL_DELETE_USER,), (FAILED_DELETE_USER,),
        "delete user operations",
    )


def login_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_LOGIN,
        "The total number of login operations.",
        applications,
    )


def login_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_LOGIN,
        "The number of failed login operations. (codes: f,fp,fu)",
        applications,
    )


def login(metrics: Any, log: Log | None) -> None:
    """Count login events."""
    _record(
        log, metrics.login_total, metrics.login_fail,
        (SUCCESSFUL_LOGIN,),
        (FAILED_LOGIN, FAILED_LOGIN_WRONG_CREDENTIALS, FAILED_LOGIN_INCORRECT_USERNAME),
        "login",
    )


def logout_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_LOGOUT,
        "The total number of logout operations.",
        applications,
    )


def logout_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_LOGOUT,
        "The number of failed logout operations. (codes: flo)",
        applications,
    )


def logout(metrics: Any, log: Log | None) -> None:
    """Count logout events."""
    _record(
        log, metrics.logout_total, metrics.logout_fail,
        (SUCCESSFUL_LOGOUT,), (FAILED_LOGOUT,), "logout",
    )


def signup_total_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_TOTAL_SIGNUP,
        "The total number of signup operations.",
        applications,
    )


def signup_fail_counter(namespace, subsystem, applications) -> CounterVec:
    return client_counter(
        namespace, subsystem, TENANT_FAILED_SIGNUP,
        "The number of failed signup operations. (codes: fs)",
        applications,
    )


def signup(metrics: Any, log: Log | None) -> None:
    """Count signup events."""
    _record(
        log, metrics.signup_total, metrics.signup_fail,
        (SUCCESSFUL_SIGNUP,), (FAILED_SIGNUP,), "signup",
    )