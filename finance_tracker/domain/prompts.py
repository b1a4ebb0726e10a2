"""Prompt construction for the spending summary"""

from typing import Iterable

from finance_tracker.domain.models import Account, SummaryRequest, Transaction
from finance_tracker.utils.date_utils import format_date

SYSTEM_PROMPT = (
    "You are an expert financial analyst specializing in personal finance and spending "
    "pattern analysis. Provide clear, actionable insights from transaction data. Focus on "
    "identifying trends, categorizing expenses accurately, and highlighting notable patterns "
    "or concerns. Be concise, specific, and use data to support your observations."
)

PROMPT_TEMPLATE = """## Financial Transaction Analysis
Billing Period: {start} to {end}

I need a structured analysis of the provided financial transactions. Please create a concise report (max 150 words total) with the following sections:

### Summary
Provide a human-friendly overview of spending patterns during this period. Be specific about trends and notable observations.

### Analysis Breakdown
1. **Total Expenses**: Sum of all purchases, excluding payments, credits, and refunds
2. **Major Categories**: List the top 4-5 spending categories with their totals
3. **Largest Expenses**: The top 3 individual expenses with amount, merchant and date
4. **Account Status**: Each account with its balance and last sync date

Notes:
- Consider only outgoing expenses in your analysis (ignore incoming payments, credits, refunds)
- Format all monetary values consistently (e.g., $1,234.56)
- If a category has no transactions, indicate 'No spending in this category'

Accounts Information:
{accounts}

Transactions:
{transactions}"""


def format_accounts(accounts: Iterable[Account]) -> str:
    """Markdown table of accounts"""
    lines = [
        "| Account | Balance | Last Synced |",
        "|---------|---------|-------------|",
    ]
    for account in accounts:
        lines.append(f"| {account.name} | {account.balance:.2f} | {format_date(account.balance_timestamp)} |")
    return "\n".join(lines)


def format_transactions(transactions: Iterable[Transaction]) -> str:
    """Markdown table of transactions, dated by transacted_at when known"""
    lines = [
        "| Description | Amount | Date |",
        "|-------------|--------|------|",
    ]
    for txn in transactions:
        lines.append(f"| {txn.description} | {txn.amount:.2f} | {format_date(txn.timestamp)} |")
    return "\n".join(lines)


def build_prompt(request: SummaryRequest) -> str:
    return PROMPT_TEMPLATE.format(
        start=request.period.start.isoformat(),
        end=request.period.end.isoformat(),
        accounts=request.accounts_text,
        transactions=request.transactions_text,
    )
