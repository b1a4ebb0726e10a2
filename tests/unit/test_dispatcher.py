"""Unit tests for notification fan-out"""

import pytest
from finance_tracker.domain.models import (
    ChannelStatus,
    NotificationChannel,
    NotificationContext,
    NotificationTopic,
)
from finance_tracker.infrastructure.notifications.dispatcher import NotificationDispatcher

ALL = list(NotificationChannel)


@pytest.mark.asyncio
async def test_dispatch_sends_to_every_requested_channel(dispatcher, channels):
    """Test each configured channel receives the message once"""
    results = await dispatcher.dispatch("hello", NotificationContext(), ALL)

    assert [r.channel for r in results] == ALL
    assert all(r.status == ChannelStatus.SENT for r in results)
    for sender in channels.values():
        assert [m for m, _ in sender.sent] == ["hello"]


@pytest.mark.asyncio
async def test_dispatch_only_requested_channels_in_enum_order(dispatcher, channels):
    """Test unrequested channels are untouched and order is fixed"""
    results = await dispatcher.dispatch(
        "hello",
        NotificationContext(),
        [NotificationChannel.PUSH_ALERT, NotificationChannel.SMS],
    )

    assert [r.channel for r in results] == [NotificationChannel.SMS, NotificationChannel.PUSH_ALERT]
    assert channels[NotificationChannel.EMAIL].sent == []


@pytest.mark.asyncio
async def test_failure_is_isolated_to_its_channel(channels, failing_sms):
    """Test a failing channel does not stop the others"""
    dispatcher = NotificationDispatcher(
        [failing_sms, channels[NotificationChannel.EMAIL], channels[NotificationChannel.PUSH_ALERT]]
    )

    results = await dispatcher.dispatch("hello", NotificationContext(), ALL)

    by_channel = {r.channel: r for r in results}
    assert by_channel[NotificationChannel.SMS].status == ChannelStatus.FAILED
    assert "twilio down" in by_channel[NotificationChannel.SMS].detail
    assert by_channel[NotificationChannel.EMAIL].status == ChannelStatus.SENT
    assert by_channel[NotificationChannel.PUSH_ALERT].status == ChannelStatus.SENT


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained(channels, make_channel):
    """Test a non-channel exception is reported as a failure, not raised"""
    broken = make_channel(NotificationChannel.EMAIL, error=RuntimeError("template bug"))
    dispatcher = NotificationDispatcher([broken, channels[NotificationChannel.PUSH_ALERT]])

    results = await dispatcher.dispatch("hello", NotificationContext(), ALL)

    by_channel = {r.channel: r for r in results}
    assert by_channel[NotificationChannel.EMAIL].status == ChannelStatus.FAILED
    assert by_channel[NotificationChannel.EMAIL].detail == "RuntimeError: template bug"
    assert by_channel[NotificationChannel.PUSH_ALERT].status == ChannelStatus.SENT


@pytest.mark.asyncio
async def test_unconfigured_and_missing_channels_are_skipped(make_channel):
    """Test skip results for unconfigured and unregistered channels"""
    unconfigured = make_channel(NotificationChannel.SMS, configured=False)
    dispatcher = NotificationDispatcher([unconfigured])

    results = await dispatcher.dispatch("hello", NotificationContext(), ALL)

    assert [(r.status, r.detail) for r in results] == [
        (ChannelStatus.SKIPPED, "not configured"),
        (ChannelStatus.SKIPPED, "no sender registered"),
        (ChannelStatus.SKIPPED, "no sender registered"),
    ]
    assert unconfigured.sent == []


@pytest.mark.asyncio
async def test_alert_goes_to_push_channel_warning_topic(dispatcher, channels):
    """Test warnings use only the push channel with the warning topic"""
    results = await dispatcher.alert("Account Savings is not synced")

    assert [r.channel for r in results] == [NotificationChannel.PUSH_ALERT]
    message, context = channels[NotificationChannel.PUSH_ALERT].sent[0]
    assert message == "Account Savings is not synced"
    assert context.topic == NotificationTopic.WARNING
    assert channels[NotificationChannel.SMS].sent == []
    assert channels[NotificationChannel.EMAIL].sent == []
