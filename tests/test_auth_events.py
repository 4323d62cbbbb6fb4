from types import SimpleNamespace

import pytest

from auth0_exporter import auth_events as ev
from auth0_exporter.auth0api import Application, Log

NAME = "test-app"


def make_metrics(namespace="", subsystem="", applications=None):
    apps = applications if applications is not None else [Application(name=NAME)]
    return SimpleNamespace(
        api_operation_total=ev.api_operation_total_counter(namespace, subsystem, apps),
        api_operation_fail=ev.api_operation_fail_counter(namespace, subsystem, apps),
        change_email_total=ev.change_email_total_counter(namespace, subsystem, apps),
        change_email_fail=ev.change_email_fail_counter(namespace, subsystem, apps),
        change_phone_number_total=ev.change_phone_number_total_counter(namespace, subsystem, apps),
        change_phone_number_fail=ev.change_phone_number_fail_counter(namespace, subsystem, apps),
        delete_user_total=ev.delete_user_total_counter(namespace, subsystem, apps),
        delete_user_fail=ev.delete_user_fail_counter(namespace, subsystem, apps),
        login_total=ev.login_total_counter(namespace, subsystem, apps),
        login_fail=ev.login_fail_counter(namespace, subsystem, apps),
        logout_total=ev.logout_total_counter(namespace, subsystem, apps),
        logout_fail=ev.logout_fail_counter(namespace, subsystem, apps),
        signup_total=ev.signup_total_counter(namespace, subsystem, apps),
        signup_fail=ev.signup_fail_counter(namespace, subsystem, apps),
    )


def get_metric_value(vec):
    return vec.collect()[0].value


HANDLERS = [
    (ev.api_operations, "api_operation", ["fapi"], "sapi"),
    (ev.change_email, "change_email", ["fce"], "sce"),
    (ev.change_phone_number, "change_phone_number", ["fcpn"], "scpn"),
    (ev.delete_user, "delete_user", ["fdu"], "du"),
    (ev.login, "login", ["f", "fp", "fu"], "s"),
    (ev.logout, "logout", ["flo"], "slo"),
    (ev.signup, "signup", ["fs"], "ss"),
]


@pytest.mark.parametrize("handler, prefix, fail_codes, success_code", HANDLERS)
def test_counters_initialised_to_zero(handler, prefix, fail_codes, success_code):
    m = make_metrics()
    assert int(get_metric_value(getattr(m, prefix + "_fail"))) == 0
    assert int(get_metric_value(getattr(m, prefix + "_total"))) == 0


@pytest.mark.parametrize("handler, prefix, fail_codes, success_code", HANDLERS)
def test_counter_not_zero_when_increased(handler, prefix, fail_codes, success_code):
    m = make_metrics()
    getattr(m, prefix + "_fail").labels(NAME).inc()
    assert int(get_metric_value(getattr(m, prefix + "_fail"))) == 1
    assert int(get_metric_value(getattr(m, prefix + "_total"))) == 0


@pytest.mark.parametrize("handler, prefix, fail_codes, success_code", HANDLERS)
def test_handler_errors_on_missing_log(handler, prefix, fail_codes, success_code):
    m = make_metrics()
    with pytest.raises(ev.InvalidLogEvent):
        handler(m, None)
    assert int(get_metric_value(getattr(m, prefix + "_fail"))) == 0
    assert int(get_metric_value(getattr(m, prefix + "_total"))) == 0


@pytest.mark.parametrize("handler, prefix, fail_codes, success_code", HANDLERS)
def test_handler_errors_on_unhandled_code(handler, prefix, fail_codes, success_code):
    m = make_metrics()
    with pytest.raises(ev.InvalidLogEvent):
        handler(m, Log(client_name=NAME, type="invalid-error"))
    assert int(get_metric_value(getattr(m, prefix + "_total"))) == 0


@pytest.mark.parametrize("handler, prefix, fail_codes, success_code", HANDLERS)
def test_handler_counts_valid_events(handler, prefix, fail_codes, success_code):
    m = make_metrics()
    for code in fail_codes + [success_code]:
        handler(m, Log(client_name=NAME, type=code))
    assert int(get_metric_value(getattr(m, prefix + "_fail"))) == len(fail_codes)
    assert int(get_metric_value(getattr(m, prefix + "_total"))) == len(fail_codes) + 1


def test_login_counts_match_source_case():
    m = make_metrics()
    for code in ("f", "fp", "fu", "s"):
        ev.login(m, Log(client_name=NAME, type=code))
    assert int(get_metric_value(m.login_fail)) == 3
    assert int(get_metric_value(m.login_total)) == 4


def test_api_operations_counts_match_source_case():
    m = make_metrics()
    ev.api_operations(m, Log(client_name=NAME, type="fapi"))
    ev.api_operations(m, Log(client_name=NAME, type="sapi"))
    assert int(get_metric_value(m.api_operation_fail)) == 1
    assert int(get_metric_value(m.api_operation_total)) == 2


def test_unhandled_event_message_names_the_handler():
    m = make_metrics()
    with pytest.raises(ev.InvalidLogEvent, match="login event handler can't handle event"):
        ev.login(m, Log(client_name=NAME, type="sapi"))


def test_unknown_client_gets_its_own_series():
    m = make_metrics()
    ev.logout(m, Log(client_name="other-app", type="slo"))
    values = {s.labels["client"]: s.value for s in m.logout_total.collect()}
    assert values == {NAME: 0, "other-app": 1}


def test_metric_names_use_namespace():
    m = make_metrics(namespace="auth0")
    assert m.login_total.name == "auth0_tenant_login_operations_total"
    assert m.signup_fail.name == "auth0_tenant_failed_sign_up_operations_total"
    assert m.api_operation_total.name == "auth0_tenant_api_operations_total"
    assert m.login_total.label_names == ("client",)


def test_no_applications_means_no_series():
    m = make_metrics(applications=[])
    assert m.delete_user_total.collect() == []
    ev.delete_user(m, Log(client_name=NAME, type="fdu"))
    assert int(get_metric_value(m.delete_user_fail)) == 1