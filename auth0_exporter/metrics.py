"""The full set of tenant metrics and the dispatch of log events to them."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from . import auth_events, mfa_events
from .auth0api import Application, Log, User
from .auth_events import InvalidLogEvent
from .prom import Counter, build_fq_name

TENANT_TOTAL_MONTHLY_ACTIVE_USERS = "tenant_total_monthly_active_users"

LogEventHandler = Callable[[Any, "Log | None"], None]

_HANDLERS: tuple[LogEventHandler, ...] = (
    auth_events.login,
    auth_events.logout,
    auth_events.change_email,
    auth_events.api_operations,
    auth_events.change_phone_number,
    mfa_events.passwordless_send_code_link,
    auth_events.delete_user,
    mfa_events.push_notification,
    mfa_events.send_email,
    mfa_events.send_sms,
    auth_events.signup,
    mfa_events.send_voice_call,
)


def monthly_active_users_counter(namespace: str, subsystem: str) -> Counter:
    """Counter of users who logged in during the last 30 days."""
    return Counter(
        build_fq_name(namespace, subsystem, TENANT_TOTAL_MONTHLY_ACTIVE_USERS),
        "The total number of monthly active users on the tenant.",
    )


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def process_monthly_active_users(metrics: Any, users: Iterable[User]) -> None:
    """Count every user whose last login falls within the last 30 days."""
    start = datetime.now(timezone.utc) - timedelta(days=30)
    for user in users:
        if user.last_login is not None and _as_utc(user.last_login) > start:
            metrics.monthly_active_users.inc()


class Metrics:
    """Every counter the exporter exposes for one scrape."""

    def __init__(
        self, namespace: str, subsystem: str, applications: Iterable[Application]
    ) -> None:
        apps = list(applications)
        ns, sub = namespace, subsystem

        self.login_total = auth_events.login_total_counter(ns, sub, apps)
        self.login_fail = auth_events.login_fail_counter(ns, sub, apps)
        self.logout_total = auth_events.logout_total_counter(ns, sub, apps)
        self.logout_fail = auth_events.logout_fail_counter(ns, sub, apps)
        self.signup_total = auth_events.signup_total_counter(ns, sub, apps)
        self.signup_fail = auth_events.signup_fail_counter(ns, sub, apps)
        self.change_email_total = auth_events.change_email_total_counter(ns, sub, apps)
        self.change_email_fail = auth_events.change_email_fail_counter(ns, sub, apps)
        self.api_operation_total = auth_events.api_operation_total_counter(ns, sub, apps)
        self.api_operation_fail = auth_events.api_operation_fail_counter(ns, sub, apps)
        self.change_phone_number_total = auth_events.change_phone_number_total_counter(
            ns, sub, apps
        )
        self.change_phone_number_fail = auth_events.change_phone_number_fail_counter(
            ns, sub, apps
        )
        self.delete_user_total = auth_events.delete_user_total_counter(ns, sub, apps)
        self.delete_user_fail = auth_events.delete_user_fail_counter(ns, sub, apps)

        self.passwordless_code_link = mfa_events.passwordless_send_code_link_counter(
            ns, sub, apps
        )
        self.push_notification_total = mfa_events.push_notification_total_counter(
            ns, sub, apps
        )
        self.push_notification_fail = mfa_events.push_notification_fail_counter(
            ns, sub, apps
        )
        self.send_email = mfa_events.send_email_counter(ns, sub, apps)
        self.send_sms_total = mfa_events.send_sms_total_counter(ns, sub, apps)
        self.send_sms_fail = mfa_events.send_sms_fail_counter(ns, sub, apps)
        self.voice_call_total = mfa_events.send_voice_call_total_counter(ns, sub, apps)
        self.voice_call_fail = mfa_events.send_voice_call_fail_counter(ns, sub, apps)

        self.monthly_active_users = monthly_active_users_counter(ns, sub)

    def collectors(self) -> list[Any]:
        """Return every metric, for registration with a registry."""
        return [
            self.login_total,
            self.login_fail,
            self.api_operation_total,
            self.api_operation_fail,
            self.logout_total,
            self.logout_fail,
            self.change_email_total,
            self.change_email_fail,
            self.delete_user_total,
            self.delete_user_fail,
            self.push_notification_total,
            self.push_notification_fail,
            self.passwordless_code_link,
            self.send_email,
            self.send_sms_total,
            self.send_sms_fail,
            self.signup_total,
            self.signup_fail,
            self.voice_call_total,
            self.voice_call_fail,
            self.change_phone_number_total,
            self.change_phone_number_fail,
            self.monthly_active_users,
        ]

    def update(self, log: Log | None) -> None:
        """Hand ``log`` to the first handler that accepts it; others are ignored."""
        for handler in _HANDLERS:
            try:
                handler(self, log)
            except InvalidLogEvent:
                continue
            return

    def process_users(self, users: Iterable[User]) -> None:
        """Update the user based metrics."""
        process_monthly_active_users(self, users)