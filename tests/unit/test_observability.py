"""Unit tests for structured logging and metrics helpers"""

import json
import logging
from prometheus_client import REGISTRY
from finance_tracker.domain.models import ChannelResult, ChannelStatus, NotificationChannel
from finance_tracker.infrastructure.observability.logging import CustomJsonFormatter, log_run_outcome
from finance_tracker.infrastructure.observability.metrics import record_channel_result, record_run


def test_json_formatter_adds_service_metadata():
    """Test formatted record is JSON with level, service and extra fields"""
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service="tracker-test")
    record = logging.LogRecord("finance_tracker.test", logging.WARNING, __file__, 1, "hello", None, None)
    record.channel = "sms"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "hello"
    assert payload["level"] == "WARNING"
    assert payload["service"] == "tracker-test"
    assert payload["channel"] == "sms"
    assert "timestamp" in payload


def test_log_run_outcome_fields(caplog):
    """Test run outcome log carries stage and per-channel status"""
    caplog.set_level(logging.INFO)
    results = [
        ChannelResult(NotificationChannel.SMS, ChannelStatus.FAILED, "down"),
        ChannelResult(NotificationChannel.EMAIL, ChannelStatus.SENT, "ok"),
    ]

    log_run_outcome("notified", "done", 12.5, changed_accounts=("acct_1",), channel_results=results)

    record = caplog.records[-1]
    assert record.outcome == "notified"
    assert record.stage == "done"
    assert record.changed_accounts == ["acct_1"]
    assert record.channels == {"sms": "failed", "email": "sent"}


def test_record_helpers_increment_counters():
    """Test metric helpers bump labelled counters"""
    def sample(name, labels):
        return REGISTRY.get_sample_value(name, labels) or 0.0

    runs_before = sample("finance_tracker_runs_total", {"outcome": "cooldown"})
    sent_before = sample("notifications_total", {"channel": "ntfy", "status": "sent"})

    record_run("cooldown")
    record_channel_result("ntfy", "sent")

    assert sample("finance_tracker_runs_total", {"outcome": "cooldown"}) == runs_before + 1
    assert sample("notifications_total", {"channel": "ntfy", "status": "sent"}) == sent_before + 1
