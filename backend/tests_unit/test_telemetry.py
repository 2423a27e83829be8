"""Unit tests for telemetry helpers (Sentry setup + QA run logging)."""

import logging

from adinsight.telemetry import capture_exception, init_sentry, log_qa_run


def test_sentry_disabled_without_dsn():
    assert init_sentry(None) is False
    assert init_sentry("") is False


def test_capture_exception_is_a_noop_without_sentry():
    capture_exception(RuntimeError("not reported"), extra={"stage": "test"})


def test_qa_run_log_record_carries_fields(caplog):
    caplog.set_level(logging.INFO, logger="adinsight.telemetry.qa_log")

    log_qa_run(
        question="q" * 300,
        mode="basic",
        latency_ms=12,
        campaign_count=3,
        ad_count=7,
        intent="count",
        gateway_error="timeout after 15.0s",
    )

    record = caplog.records[-1]
    assert record.getMessage().startswith("[QA_RUN] mode=basic intent=count latency=12ms campaigns=3 ads=7")
    assert "gateway_error='timeout after 15.0s'" in record.getMessage()
    assert record.qa_intent == "count"
    assert record.qa_ads == 7
    assert len(record.qa_question) == 120
