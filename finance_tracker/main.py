"""Entry point: build collaborators from settings and run the pipeline once"""

import asyncio
import logging
import sys
from datetime import date
from typing import Optional

import pydantic

from finance_tracker.config import Settings
from finance_tracker.domain.billing import calculate_date_range
from finance_tracker.domain.exceptions import CooldownActiveError, DomainException
from finance_tracker.domain.models import DateRangeType, RunReport
from finance_tracker.infrastructure.cache.store import CacheStore
from finance_tracker.infrastructure.clients.bridge import BridgeClient
from finance_tracker.infrastructure.clients.summary import SummaryGenerator
from finance_tracker.infrastructure.notifications.channels import EmailChannel, NtfyChannel, SmsChannel
from finance_tracker.infrastructure.notifications.dispatcher import NotificationDispatcher
from finance_tracker.infrastructure.observability.logging import setup_logging
from finance_tracker.pipeline.sync import SyncPipeline

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_COOLDOWN = 75  # EX_TEMPFAIL: try again later


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    return NotificationDispatcher(
        [
            SmsChannel(
                account_sid=settings.twilio_account_sid,
                auth_token=settings.twilio_auth_token,
                from_phone=settings.twilio_from_phone,
                to_phones=settings.twilio_to_phones,
                send_delay=settings.sms_send_delay_seconds,
            ),
            EmailChannel(
                mailer_url=settings.mailer_url,
                mailer_from=settings.mailer_from,
                mailer_to=settings.mailer_to,
            ),
            NtfyChannel(
                server=settings.ntfy_server,
                topic=settings.ntfy_topic,
                warning_topic=settings.ntfy_topic_warning,
                timeout=settings.push_timeout_seconds,
            ),
        ]
    )


def build_pipeline(settings: Settings) -> SyncPipeline:
    """Create and configure the sync pipeline"""
    return SyncPipeline(
        bridge=BridgeClient(settings.simplefin_bridge_url, timeout=settings.bridge_timeout_seconds),
        summarizer=SummaryGenerator(
            url=settings.openrouter_url,
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            timeout=settings.summary_timeout_seconds,
            temperature=settings.summary_temperature,
            policy=settings.retry_policy(),
        ),
        dispatcher=build_dispatcher(settings),
        cache_store=CacheStore(settings.resolved_cache_path()),
        cooldown_seconds=settings.cooldown_seconds,
        staleness_seconds=settings.staleness_seconds,
        notifications_enabled=settings.notifications_enabled,
    )


async def run_once(settings: Settings, today: Optional[date] = None) -> RunReport:
    """
    Run one sync pass with the configured billing period.

    Only the current-month range reads and writes the cache; other ranges are
    one-off reports.
    """
    period = calculate_date_range(settings.date_range, today, settings.start_date, settings.end_date)
    channels = settings.requested_channels()
    pipeline = build_pipeline(settings)
    return await pipeline.run(
        period,
        channels,
        force=settings.force,
        use_cache=settings.date_range == DateRangeType.CURRENT_MONTH,
    )


def main() -> int:
    try:
        settings = Settings()
    except pydantic.ValidationError as e:
        setup_logging()
        LOGGER.error("Invalid configuration", extra={"stage": "validate", "reason": str(e)})
        return EXIT_FAILURE
    setup_logging(settings.log_level, settings.service_name)

    try:
        report = asyncio.run(run_once(settings))
    except CooldownActiveError as e:
        LOGGER.warning("Run suppressed by cooldown", extra={"stage": e.stage, "reason": str(e)})
        return EXIT_COOLDOWN
    except DomainException as e:
        LOGGER.error("Run failed", extra={"stage": getattr(e, "stage", "unknown"), "reason": str(e)})
        return EXIT_FAILURE

    for result in report.channel_results:
        LOGGER.info(
            "Channel result",
            extra={"channel": result.channel.value, "status": result.status.value, "detail": result.detail},
        )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
