"""Fan-out of a message to the requested notification channels"""

import logging
from typing import Dict, Iterable, List, Protocol

from finance_tracker.domain.exceptions import ChannelSendError
from finance_tracker.domain.models import (
    ChannelResult,
    ChannelStatus,
    NotificationChannel,
    NotificationContext,
    NotificationTopic,
)
from finance_tracker.infrastructure.observability.metrics import record_channel_result

LOGGER = logging.getLogger(__name__)


class ChannelSender(Protocol):
    """Uniform contract every notification channel implements"""

    channel: NotificationChannel

    def is_configured(self) -> bool:
        ...

    async def send(self, message: str, context: NotificationContext) -> str:
        ...


class NotificationDispatcher:
    """Dispatches sequentially, isolating per-channel failures"""

    def __init__(self, senders: Iterable[ChannelSender]):
        self.senders: Dict[NotificationChannel, ChannelSender] = {s.channel: s for s in senders}

    async def _dispatch_one(self, channel: NotificationChannel, message: str, context: NotificationContext) -> ChannelResult:
        sender = self.senders.get(channel)
        if sender is None:
            return ChannelResult(channel, ChannelStatus.SKIPPED, "no sender registered")
        if not sender.is_configured():
            LOGGER.info("Skipping unconfigured channel", extra={"channel": channel.value})
            return ChannelResult(channel, ChannelStatus.SKIPPED, "not configured")

        try:
            detail = await sender.send(message, context)
        except ChannelSendError as e:
            LOGGER.error("Channel send failed", extra={"channel": channel.value, "error": str(e)})
            return ChannelResult(channel, ChannelStatus.FAILED, str(e))
        except Exception as e:
            # Any channel bug is contained to that channel
            LOGGER.exception("Unexpected channel error", extra={"channel": channel.value})
            return ChannelResult(channel, ChannelStatus.FAILED, f"{type(e).__name__}: {e}")

        return ChannelResult(channel, ChannelStatus.SENT, detail or "")

    async def dispatch(
        self,
        message: str,
        context: NotificationContext,
        requested_channels: Iterable[NotificationChannel],
    ) -> List[ChannelResult]:
        """
        Send `message` to each requested channel in enum order.

        Never raises on partial failure; every channel gets a result.
        """
        requested = set(requested_channels)
        results = []
        for channel in NotificationChannel:
            if channel not in requested:
                continue
            result = await self._dispatch_one(channel, message, context)
            record_channel_result(channel.value, result.status.value)
            results.append(result)
        return results

    async def alert(self, message: str, title: str = "Finance Tracker warning") -> List[ChannelResult]:
        """Out-of-band warning on the push channel's warning topic"""
        context = NotificationContext(topic=NotificationTopic.WARNING, title=title)
        return await self.dispatch(message, context, [NotificationChannel.PUSH_ALERT])
