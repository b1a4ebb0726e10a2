"""Notification channel adapters: Twilio SMS, SMTP email and ntfy push alerts"""

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Callable, List, Optional
from urllib.parse import unquote, urlsplit

import httpx

from finance_tracker.domain.exceptions import ChannelSendError
from finance_tracker.domain.models import NotificationChannel, NotificationContext, NotificationTopic
from finance_tracker.infrastructure.clients.http import open_client
from finance_tracker.infrastructure.notifications.rendering import EmailRenderer, HtmlEmailRenderer

LOGGER = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com"


def _present(*values: Optional[str]) -> bool:
    return all(value is not None and value.strip() for value in values)


def _split_list(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class SmsChannel:
    """Twilio SMS, one message per recipient"""

    channel = NotificationChannel.SMS

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_phone: Optional[str],
        to_phones: Optional[str],
        send_delay: float = 0.5,
        timeout: float = 10.0,
        api_base: str = TWILIO_API_BASE,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable = asyncio.sleep,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_phone = from_phone
        self.recipients = _split_list(to_phones)
        self.send_delay = send_delay
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self._client = client
        self._sleep = sleep

    def is_configured(self) -> bool:
        return _present(self.account_sid, self.auth_token, self.from_phone) and bool(self.recipients)

    async def send(self, message: str, context: NotificationContext) -> str:
        """
        Send to every recipient, pausing between messages for Twilio rate limits.

        Raises:
            ChannelSendError: One or more recipients failed (all are still attempted)
        """
        url = f"{self.api_base}/2010-04-01/Accounts/{self.account_sid}/Messages.json"
        failures = []

        async with open_client(self._client, self.timeout) as client:
            for index, to_phone in enumerate(self.recipients):
                if index:
                    await self._sleep(self.send_delay)
                try:
                    response = await client.post(
                        url,
                        data={"From": self.from_phone, "To": to_phone, "Body": message},
                        auth=(self.account_sid, self.auth_token),
                        timeout=self.timeout,
                    )
                    response.raise_for_status()
                    LOGGER.info("SMS sent", extra={"to": to_phone})
                except httpx.HTTPStatusError as e:
                    failures.append(f"{to_phone}: status {e.response.status_code} {e.response.text[:200]}")
                except httpx.RequestError as e:
                    failures.append(f"{to_phone}: {e!r}")

        if failures:
            raise ChannelSendError(
                f"SMS failed for {len(failures)}/{len(self.recipients)} recipients: " + "; ".join(failures)
            )
        return f"SMS: {len(self.recipients)} recipients"


class EmailChannel:
    """SMTP email, one message per recipient"""

    channel = NotificationChannel.EMAIL

    def __init__(
        self,
        mailer_url: Optional[str],
        mailer_from: Optional[str],
        mailer_to: Optional[str],
        renderer: Optional[EmailRenderer] = None,
        subject: str = "Finance Tracker - Transaction Summary",
        timeout: float = 30.0,
        smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None,
    ):
        self.mailer_url = mailer_url
        self.mailer_from = mailer_from
        self.recipients = _split_list(mailer_to)
        self.renderer = renderer or HtmlEmailRenderer()
        self.subject = subject
        self.timeout = timeout
        self._smtp_factory = smtp_factory

    def is_configured(self) -> bool:
        return _present(self.mailer_url, self.mailer_from) and bool(self.recipients)

    def build_message(self, body: str, recipient: str) -> MIMEText:
        message = MIMEText(body, "html", "utf-8")
        message["Subject"] = self.subject
        message["From"] = self.mailer_from
        message["To"] = recipient
        return message

    def _deliver(self, messages: List[MIMEText]) -> List[str]:
        parts = urlsplit(self.mailer_url)
        implicit_tls = parts.scheme == "smtps"
        port = parts.port or (465 if implicit_tls else 587)
        factory = self._smtp_factory or (smtplib.SMTP_SSL if implicit_tls else smtplib.SMTP)

        failures = []
        with factory(parts.hostname, port, timeout=self.timeout) as smtp:
            if not implicit_tls:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if parts.username:
                smtp.login(unquote(parts.username), unquote(parts.password or ""))
            for message in messages:
                try:
                    smtp.send_message(message)
                except smtplib.SMTPException as e:
                    failures.append(f"{message['To']}: {e}")
        return failures

    async def send(self, message: str, context: NotificationContext) -> str:
        """
        Raises:
            ChannelSendError: SMTP connection failed or any recipient was refused
        """
        body = self.renderer.render(message, context)
        messages = [self.build_message(body, recipient) for recipient in self.recipients]

        try:
            failures = await asyncio.to_thread(self._deliver, messages)
        except (smtplib.SMTPException, OSError) as e:
            raise ChannelSendError(f"SMTP delivery failed: {e}") from e

        if failures:
            raise ChannelSendError(
                f"Email failed for {len(failures)}/{len(messages)} recipients: " + "; ".join(failures)
            )
        LOGGER.info("Email sent", extra={"recipients": self.recipients})
        return f"Email: {', '.join(self.recipients)}"


class NtfyChannel:
    """ntfy push alerts; warnings go to a separate topic"""

    channel = NotificationChannel.PUSH_ALERT

    def __init__(
        self,
        server: str,
        topic: Optional[str],
        warning_topic: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.server = (server or "https://ntfy.sh").strip().rstrip("/")
        self.topic = topic.strip() if topic else None
        self.warning_topic = warning_topic.strip() if warning_topic else None
        self.timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        return _present(self.topic)

    def topic_for(self, topic: NotificationTopic) -> str:
        if topic == NotificationTopic.WARNING:
            return self.warning_topic or f"{self.topic}-warning"
        return self.topic

    async def send(self, message: str, context: NotificationContext) -> str:
        """
        Raises:
            ChannelSendError: Transport error or non-2xx status
        """
        url = f"{self.server}/{self.topic_for(context.topic)}"
        headers = {"Title": context.title, "Content-Type": "text/plain; charset=utf-8"}
        if context.topic == NotificationTopic.WARNING:
            headers["Priority"] = "high"

        async with open_client(self._client, self.timeout) as client:
            try:
                response = await client.post(
                    url,
                    content=message.encode("utf-8"),
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ChannelSendError(
                    f"ntfy failed with status {e.response.status_code}: {e.response.text[:200]}"
                ) from e
            except httpx.RequestError as e:
                raise ChannelSendError(f"ntfy request error: {e!r}") from e

        LOGGER.info("Push alert sent", extra={"url": url, "topic": context.topic.value})
        return f"Ntfy: {self.topic_for(context.topic)}"
