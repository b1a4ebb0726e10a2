"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Billing period or other input is malformed"""

    stage = "validate"


class PipelineError(DomainException):
    """A pipeline stage failed and the run was terminated"""

    stage = "pipeline"


class FetchError(PipelineError):
    """Bridge is unreachable or returned an invalid response"""

    stage = "fetch"


class NoTransactionsError(PipelineError):
    """Accounts changed but there are no transactions to summarize"""

    stage = "collect"


class CooldownActiveError(PipelineError):
    """Last notification was sent too recently; the run was suppressed"""

    stage = "cooldown"

    def __init__(self, message: str, last_notification: int, retry_after_seconds: int):
        super().__init__(message)
        self.last_notification = last_notification
        self.retry_after_seconds = retry_after_seconds


class SummaryFailedError(PipelineError):
    """Summary generation exhausted its retry budget"""

    stage = "summarize"

    def __init__(self, message: str, attempts: int, last_error: Optional[str] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class CacheIOError(PipelineError):
    """Cache snapshot could not be written; read failures degrade to an empty cache"""

    stage = "persist"


class ChannelSendError(DomainException):
    """A single notification channel failed to deliver"""

    pass
