"""Email body rendering"""

import html
from typing import Protocol

from finance_tracker.domain.models import NotificationContext
from finance_tracker.utils.date_utils import format_timestamp


class EmailRenderer(Protocol):
    """Turns a summary into an HTML email body"""

    def render(self, summary: str, context: NotificationContext) -> str:
        ...


class HtmlEmailRenderer:
    """Plain HTML body: escaped summary followed by the transaction list"""

    def render(self, summary: str, context: NotificationContext) -> str:
        paragraphs = "".join(
            f"<p>{html.escape(block).replace(chr(10), '<br>')}</p>"
            for block in summary.split("\n\n")
            if block.strip()
        )
        period = ""
        if context.period is not None:
            period = f"<p>Billing period: {context.period.start.isoformat()} to {context.period.end.isoformat()}</p>"

        rows = "".join(
            "<tr><td>{}</td><td>{:.2f}</td><td>{}</td></tr>".format(
                html.escape(txn.description),
                txn.amount,
                format_timestamp(txn.timestamp, "%Y-%m-%d %H:%M"),
            )
            for txn in context.transactions
        )
        table = ""
        if rows:
            table = (
                "<table><tr><th>Description</th><th>Amount</th><th>Date</th></tr>"
                f"{rows}</table>"
            )

        return (
            "<!DOCTYPE html><html><head><meta charset=\"UTF-8\"></head><body>"
            f"<h1>{html.escape(context.title)}</h1>{period}{paragraphs}{table}"
            "<p>This is an automated message. Please do not reply to this email.</p>"
            "</body></html>"
        )
