"""Tests for the production log filter."""

import logging

from variant_tracker.logging_config import REDACTED, SensitiveDataFilter


def _record(msg, args):
    return logging.LogRecord("variant_tracker.test", logging.INFO, __file__, 1, msg, args, None)


def test_dict_arguments_lose_sensitive_values():
    record = _record("config %s", ({"apiKey": "abc", "Password": "hunter2", "gene": "BRCA1"},))

    SensitiveDataFilter(environment="production", debug=False).filter(record)

    assert record.getMessage() == "config {'apiKey': '[REDACTED]', 'Password': '[REDACTED]', 'gene': 'BRCA1'}"


def test_credential_like_strings_are_dropped():
    record = _record("header %s, user %s", ("Authorization token: abc123", "u1"))

    SensitiveDataFilter(environment="production", debug=False).filter(record)

    assert record.args == (REDACTED, "u1")


def test_nested_values_are_scrubbed():
    record = _record("%s", ([{"secret": "s"}],))

    SensitiveDataFilter(environment="production", debug=False).filter(record)

    assert record.args == ([{"secret": REDACTED}],)


def test_inactive_outside_production_or_in_debug():
    for flt in (
        SensitiveDataFilter(environment="development", debug=False),
        SensitiveDataFilter(environment="production", debug=True),
    ):
        record = _record("%s", ("token: abc",))
        assert flt.filter(record) is True
        assert record.args == ("token: abc",)
